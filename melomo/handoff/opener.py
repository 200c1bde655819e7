"""
Opening links in the user's browser or music app

SystemURLOpener implements the URL-open interface with the standard
``webbrowser`` module. Web URLs can always be opened; custom app schemes
(``spotify://``, ``youtubemusic://``) need a desktop URL handler, which is
looked up as ``xdg-open`` (Linux), ``open`` (macOS) or ``start`` (Windows).
"""

import asyncio
import shutil
import subprocess
import sys
import webbrowser
from typing import Optional
from urllib.parse import urlsplit

from ..utils.helpers import is_valid_url
from ..utils.logger import get_logger

logger = get_logger(__name__)

WEB_SCHEMES = ('http', 'https')


def _system_handler() -> Optional[str]:
    if sys.platform.startswith('win'):
        return 'start'
    if sys.platform == 'darwin':
        return shutil.which('open')
    return shutil.which('xdg-open')


class SystemURLOpener:
    """Open URLs through the platform browser or URL handler"""

    def __init__(self, handler: Optional[str] = None):
        self.handler = handler if handler is not None else _system_handler()

    async def can_open(self, url: str) -> bool:
        if not is_valid_url(url):
            return False

        scheme = urlsplit(url).scheme.lower()
        if scheme in WEB_SCHEMES:
            return True
        return bool(self.handler)

    async def open(self, url: str) -> None:
        """
        Open a URL

        Raises:
            RuntimeError: If the URL could not be handed to any handler
        """
        scheme = urlsplit(url).scheme.lower()
        loop = asyncio.get_running_loop()

        if scheme in WEB_SCHEMES:
            opened = await loop.run_in_executor(None, webbrowser.open, url)
            if not opened:
                raise RuntimeError(f"No browser available to open {url}")
            return

        if not self.handler:
            raise RuntimeError(f"No handler registered for {scheme}:// links")

        logger.debug(f"Opening {url} with {self.handler}")
        if self.handler == 'start':
            command = ['cmd', '/c', 'start', '', url]
        else:
            command = [self.handler, url]
        await loop.run_in_executor(None, lambda: subprocess.run(command, check=True))
