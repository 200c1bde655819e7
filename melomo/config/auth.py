"""
Apple Music authorization and token management

Apple Music catalog requests need two credentials:
- a developer token (signed JWT for the Apple Developer account), taken from
  settings or the ``APPLE_MUSIC_DEVELOPER_TOKEN`` environment variable;
- a music user token, obtained once per user and stored locally.

This module tracks which of the two are available and reports an
authorization status the generation orchestrator can act on:

- user token present           -> AUTHORIZED
- developer token only         -> NOT_DETERMINED (a request can still succeed)
- no developer token           -> DENIED

Security considerations:
- The user token is stored with restrictive file permissions (600)
- The developer token is never written to disk by this module
"""

import inspect
import json
import os
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from .settings import Settings, get_settings
from ..moods.models import AuthorizationStatus
from ..utils.exceptions import StorageError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Supplies a music user token on request; returning None or "" means the user declined
TokenPrompt = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


class AppleMusicAuth:
    """
    Apple Music credential holder and authorization capability

    Implements the authorization interface used by MusicController:
    ``current_status()`` and ``async request()``.

    Attributes:
        settings: Application settings instance
        token_file: Path to the user token storage file
        token_prompt: Callable asked for a user token when authorization is requested
    """

    def __init__(self, settings: Optional[Settings] = None, token_prompt: Optional[TokenPrompt] = None):
        self.settings = settings or get_settings()
        self.token_file = self.settings.get_token_storage_path()
        self.token_prompt = token_prompt
        self._token_info: Optional[Dict[str, Any]] = None

    @property
    def developer_token(self) -> str:
        return self.settings.apple_music.developer_token

    @property
    def user_token(self) -> Optional[str]:
        """Music user token from the environment, falling back to the stored token"""
        env_token = os.getenv('APPLE_MUSIC_USER_TOKEN')
        if env_token:
            return env_token

        if self._token_info is None:
            self._token_info = self._load_token()

        if self._token_info:
            return self._token_info.get('music_user_token')
        return None

    def _load_token(self) -> Optional[Dict[str, Any]]:
        """
        Load the stored user token

        Returns:
            Token dictionary if present and well formed, None otherwise
        """
        if not self.token_file.exists():
            return None

        try:
            with open(self.token_file, 'r', encoding='utf-8') as f:
                token_data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load stored token: {e}")
            return None

        if not isinstance(token_data, dict) or not token_data.get('music_user_token'):
            logger.warning("Invalid token structure, authorization required")
            return None

        return token_data

    def _save_token(self, token_info: Dict[str, Any]) -> None:
        """
        Save token information with a timestamp and owner-only permissions

        Raises:
            StorageError: If the token file cannot be written
        """
        token_data = {
            **token_info,
            'saved_at': datetime.now().isoformat(),
            'storefront': self.settings.apple_music.storefront,
        }

        try:
            self.token_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.token_file, 'w', encoding='utf-8') as f:
                json.dump(token_data, f, indent=2)
        except OSError as e:
            raise StorageError(f"Failed to save token: {e}", details={'path': str(self.token_file)}) from e

        try:
            self.token_file.chmod(0o600)
        except OSError:
            # Windows doesn't support chmod
            logger.debug(f"Could not restrict permissions on {self.token_file}")

        self._token_info = token_data

    def current_status(self) -> AuthorizationStatus:
        if not self.developer_token:
            return AuthorizationStatus.DENIED
        if self.user_token:
            return AuthorizationStatus.AUTHORIZED
        return AuthorizationStatus.NOT_DETERMINED

    async def request(self) -> AuthorizationStatus:
        """
        Request authorization from the user

        Asks the token prompt for a music user token and stores it. Without
        a developer token nothing can be authorized and the prompt is not
        shown.

        Returns:
            Resulting authorization status
        """
        status = self.current_status()
        if status != AuthorizationStatus.NOT_DETERMINED:
            return status

        if self.token_prompt is None:
            logger.debug("No token prompt configured, authorization stays undetermined")
            return status

        token = self.token_prompt()
        if inspect.isawaitable(token):
            token = await token

        if not token or not token.strip():
            logger.info("User declined Apple Music authorization")
            return AuthorizationStatus.DENIED

        self.login(token.strip())
        return AuthorizationStatus.AUTHORIZED

    def login(self, music_user_token: str) -> None:
        """Store a music user token"""
        if not music_user_token:
            raise ValueError("Music user token cannot be empty")
        self._save_token({'music_user_token': music_user_token})
        logger.info("Apple Music user token saved")

    def revoke_token(self) -> None:
        """Forget the stored user token"""
        self._token_info = None
        try:
            if self.token_file.exists():
                self.token_file.unlink()
                logger.info("Apple Music user token removed")
        except OSError as e:
            raise StorageError(f"Failed to remove token: {e}", details={'path': str(self.token_file)}) from e

    def get_token_info(self) -> Dict[str, Any]:
        """Describe the stored credentials for diagnostics, without the secrets"""
        if self._token_info is None:
            self._token_info = self._load_token()

        return {
            'status': self.current_status().value,
            'developer_token': bool(self.developer_token),
            'user_token': bool(self.user_token),
            'user_token_source': 'environment' if os.getenv('APPLE_MUSIC_USER_TOKEN') else 'file',
            'saved_at': (self._token_info or {}).get('saved_at'),
            'token_file': str(self.token_file),
        }


_auth_instance: Optional[AppleMusicAuth] = None


def get_auth() -> AppleMusicAuth:
    """Get the global authorization instance"""
    global _auth_instance
    if not _auth_instance:
        _auth_instance = AppleMusicAuth()
    return _auth_instance


def reset_auth() -> None:
    """
    Reset the global authorization instance

    Only clears the in-memory instance; use AppleMusicAuth.revoke_token()
    to delete the stored user token.
    """
    global _auth_instance
    _auth_instance = None
