"""
Logging configuration and utilities for MeloMo
Provides colored console output and file logging with separation between user and technical messages
"""

import functools
import inspect
import logging
import logging.handlers
import re
import sys
import time
from pathlib import Path
from typing import Optional
import colorama
from colorama import Fore, Back, Style

from ..config.settings import get_settings


# Initialize colorama for Windows compatibility
colorama.init()

# Third-party loggers that only add noise to the console
EXTERNAL_LIBS = [
    'aiohttp', 'aiohttp.access', 'aiohttp.client', 'urllib3', 'asyncio',
    'asyncio_throttle',
]


class ConsoleMessageFilter(logging.Filter):
    """Filter to allow only user-facing messages to console"""

    def filter(self, record):
        # Allow all WARNING+ messages
        if record.levelno >= logging.WARNING:
            return True

        # Allow messages explicitly marked for console
        if getattr(record, 'console_output', False):
            return True

        # Allow messages from specific console loggers
        if record.name.endswith('.console') or record.name.endswith('.user'):
            return True

        return False


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colored output for console"""

    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Back.WHITE + Style.BRIGHT,
    }

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True):
        """
        Initialize colored formatter

        Args:
            fmt: Log format string
            use_colors: Whether to use colored output
        """
        super().__init__()
        self.use_colors = use_colors
        self.fmt = fmt or '%(message)s'

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors"""
        formatter = logging.Formatter(self.fmt)
        if self.use_colors and record.levelname in self.COLORS:
            # Work on a copy so other handlers see the plain level name
            record_copy = logging.makeLogRecord(record.__dict__)
            record_copy.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{Style.RESET_ALL}"
            return formatter.format(record_copy)
        return formatter.format(record)


class ConsoleHandler(logging.StreamHandler):
    """Stream handler bound to stdout at emit time so redirected streams are honoured"""

    def __init__(self):
        super().__init__(sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        self.stream = sys.stdout
        super().emit(record)


def _silence_external_libs() -> None:
    for lib in EXTERNAL_LIBS:
        lib_logger = logging.getLogger(lib)
        lib_logger.setLevel(logging.CRITICAL)
        lib_logger.propagate = False


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    colored_output: bool = True,
    max_size: str = "10MB",
    backup_count: int = 3
) -> None:
    """
    Setup application logging configuration with separated console/file output

    Args:
        level: Logging level for the file handler (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (None to disable file logging)
        console_output: Enable console logging
        colored_output: Enable colored console output
        max_size: Maximum log file size before rotation
        backup_count: Number of backup log files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    # Only touch the package logger so host applications keep their own handlers
    app_logger = logging.getLogger('melomo')
    app_logger.setLevel(logging.DEBUG)
    for handler in app_logger.handlers[:]:
        handler.close()
        app_logger.removeHandler(handler)

    if console_output:
        console_handler = ConsoleHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.addFilter(ConsoleMessageFilter())
        console_handler.setFormatter(ColoredFormatter(fmt='%(message)s', use_colors=colored_output))
        app_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=parse_size(max_size),
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(funcName)-20s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        app_logger.addHandler(file_handler)

    _silence_external_libs()

    app_logger.info(f"Logging initialized - Level: {level}, Console: {console_output}, File: {log_file}")


def get_current_log_file() -> Optional[Path]:
    """
    Get the current log file path from active file handlers

    Returns:
        Path to current log file or None if no file logging
    """
    for handler in logging.getLogger('melomo').handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            return Path(handler.baseFilename)
    return None


def parse_size(size_str: str) -> int:
    """
    Parse size string to bytes

    Args:
        size_str: Size string like "10MB", "1GB", "500KB"

    Returns:
        Size in bytes

    Raises:
        ValueError: If the string is not a recognised size
    """
    size_str = size_str.upper().strip()

    multipliers = {
        'B': 1,
        'KB': 1024,
        'MB': 1024 ** 2,
        'GB': 1024 ** 3,
        'TB': 1024 ** 4,
    }

    match = re.match(r'^(\d+(?:\.\d+)?)\s*([KMGT]?B)$', size_str)
    if not match:
        raise ValueError(f"Invalid size format: {size_str}")

    number, unit = match.groups()
    return int(float(number) * multipliers[unit])


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance for a module

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance with a console_info helper attached
    """
    logger = logging.getLogger(name)

    def console_info(message: str):
        """Log message that should appear on console for user"""
        logger.info(message, extra={'console_output': True})

    logger.console_info = console_info

    return logger


def configure_from_settings() -> None:
    """Configure logging from application settings"""
    settings = get_settings()

    log_file_path = None
    if settings.logging.file:
        if Path(settings.logging.file).is_absolute():
            log_file_path = settings.logging.file
        else:
            log_file_path = settings.get_config_directory() / settings.logging.file

    setup_logging(
        level=settings.logging.level,
        log_file=str(log_file_path) if log_file_path else None,
        console_output=settings.logging.console_output,
        colored_output=settings.logging.colored_output,
        max_size=settings.logging.max_size,
        backup_count=settings.logging.backup_count
    )


def log_performance(func):
    """Decorator to log function performance (to file only); works on coroutines too"""

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
                logger.debug(f"{func.__name__} completed in {time.perf_counter() - start_time:.3f}s")
                return result
            except Exception as e:
                logger.debug(f"{func.__name__} failed after {time.perf_counter() - start_time:.3f}s: {e}")
                raise

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            logger.debug(f"{func.__name__} completed in {time.perf_counter() - start_time:.3f}s")
            return result
        except Exception as e:
            logger.debug(f"{func.__name__} failed after {time.perf_counter() - start_time:.3f}s: {e}")
            raise

    return wrapper
