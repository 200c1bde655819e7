"""
Utility functions and helpers for MeloMo
Common functions for URL building, retry handling, and display formatting
"""

import asyncio
import functools
from datetime import datetime
from typing import Optional, Tuple, Type, Union
from urllib.parse import quote, urlsplit


# Characters left literal when percent-encoding a URL query component
# (RFC 3986 unreserved plus the sub-delims, ':', '@', '/' and '?')
QUERY_SAFE_CHARACTERS = "!$&'()*+,;=:@/?~"


def encode_query_component(text: str) -> str:
    """
    Percent-encode text for use inside a URL query or path component

    Letters, digits, ``-._~`` and the query-allowed punctuation stay literal;
    everything else (space included) becomes ``%XX`` of its UTF-8 bytes.

    Args:
        text: Raw text to encode

    Returns:
        Encoded string

    Raises:
        UnicodeEncodeError: If the text cannot be represented as UTF-8
                            (e.g. lone surrogates)
    """
    return quote(text, safe=QUERY_SAFE_CHARACTERS, encoding='utf-8', errors='strict')


def is_valid_url(url: str) -> bool:
    """
    Check whether a string is a usable absolute URL

    Accepts custom schemes (``spotify://``), which is why this only checks
    for a scheme, a non-empty remainder and the absence of whitespace or
    control characters.

    Args:
        url: URL string to validate

    Returns:
        True if the URL can be handed to an opener
    """
    if not url:
        return False

    if any(ch.isspace() or ord(ch) < 32 or ord(ch) == 127 for ch in url):
        return False

    try:
        parts = urlsplit(url)
    except ValueError:
        return False

    if not parts.scheme or not (parts.netloc or parts.path):
        return False

    if parts.scheme in ('http', 'https') and not parts.netloc:
        return False

    return True


def async_retry_on_failure(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,)
):
    """
    Decorator for retrying coroutine functions on failure

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between attempts in seconds
        backoff: Delay multiplier for exponential backoff
        exceptions: Exception types that trigger a retry; anything else propagates at once
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempt = 1
            current_delay = delay

            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions:
                    if attempt >= max_attempts:
                        raise

                    await asyncio.sleep(current_delay)
                    current_delay *= backoff
                    attempt += 1

        return wrapper
    return decorator


def format_duration(seconds: Union[int, float]) -> str:
    """
    Format duration in seconds to human readable string

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (e.g., "3:45", "1:23:45")
    """
    if seconds < 0:
        return "0:00"

    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate string to maximum length with suffix

    Args:
        text: Text to truncate
        max_length: Maximum length including suffix
        suffix: Suffix to add when truncating

    Returns:
        Truncated string
    """
    if len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix


def get_current_timestamp() -> str:
    """Get current timestamp in ISO format"""
    return datetime.now().isoformat()


def format_timestamp(timestamp: Optional[Union[str, datetime]]) -> str:
    """
    Format timestamp for display

    Args:
        timestamp: Timestamp string (ISO format) or datetime object

    Returns:
        Formatted timestamp string, "never" when missing
    """
    if timestamp is None:
        return "never"

    if isinstance(timestamp, str):
        try:
            timestamp = datetime.fromisoformat(timestamp)
        except ValueError:
            return timestamp

    return timestamp.strftime("%Y-%m-%d %H:%M:%S")
