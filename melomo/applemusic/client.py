"""
Apple Music API client for catalog search

This module provides the catalog search capability used by the mood search
strategy. It talks to the Apple Music Web API with aiohttp, throttles
requests with asyncio-throttle and converts API payloads to CatalogSong
objects.

Error Recovery:
- 401/403 Unauthorized: the developer or user token is invalid, raised as
  AuthorizationFailedError (never retried)
- 429 Rate Limited: waits for Retry-After (seconds or an HTTP date), then retried
- 5xx and connection failures: retried with exponential backoff
- Anything left after the retries is raised as NetworkError

Usage Examples:

    async with AppleMusicClient() as client:
        songs = await client.search("feel good OR pop uplifting", limit=25)
"""

import asyncio
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional

import aiohttp
from asyncio_throttle import Throttler

from ..config.auth import AppleMusicAuth, get_auth
from ..config.settings import Settings, get_settings
from ..moods.models import CatalogSong
from ..utils.exceptions import AuthorizationFailedError, MeloMoError, NetworkError
from ..utils.helpers import async_retry_on_failure
from ..utils.logger import get_logger

# Apple Music caps catalog search pages at 25 items
MAX_SEARCH_LIMIT = 25


class TransientAPIError(NetworkError):
    """Server-side failure worth retrying (rate limiting, 5xx)"""


class AppleMusicClient:
    """
    Apple Music Web API client

    Implements the catalog search interface: ``async search(query, limit)``.
    The aiohttp session is created lazily on first request and must be
    closed with ``close()`` or by using the client as an async context
    manager.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        auth: Optional[AppleMusicAuth] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.settings = settings or get_settings()
        self.auth = auth or get_auth()
        self.logger = get_logger(__name__)
        self._session = session
        self._owns_session = session is None

        self.throttler = Throttler(rate_limit=max(1, self.settings.apple_music.requests_per_second), period=1.0)

        retry = async_retry_on_failure(
            max_attempts=max(1, self.settings.network.max_retries),
            delay=self.settings.network.retry_delay,
            exceptions=(TransientAPIError, aiohttp.ClientConnectionError, asyncio.TimeoutError)
        )
        self._request = retry(self._request_once)

    async def __aenter__(self) -> 'AppleMusicClient':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def base_url(self) -> str:
        return self.settings.apple_music.api_base_url.rstrip('/')

    def _headers(self) -> Dict[str, str]:
        headers = {
            'Authorization': f"Bearer {self.auth.developer_token}",
            'User-Agent': self.settings.network.user_agent,
        }
        user_token = self.auth.user_token
        if user_token:
            headers['Music-User-Token'] = user_token
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.settings.network.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _retry_after_seconds(self, value: Optional[str]) -> float:
        """Seconds to wait from a Retry-After header: delta seconds or an HTTP date"""
        fallback = float(self.settings.network.retry_delay)
        if not value:
            return fallback

        try:
            return max(0.0, float(value))
        except ValueError:
            pass

        try:
            retry_at = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            self.logger.debug(f"Unparseable Retry-After header: {value!r}")
            return fallback

        if retry_at.tzinfo is None:
            retry_at = retry_at.replace(tzinfo=timezone.utc)
        return max(0.0, (retry_at - datetime.now(timezone.utc)).total_seconds())

    async def _request_once(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Perform one throttled GET request against the API

        Args:
            path: Path below the API base URL
            params: Query parameters

        Returns:
            Decoded JSON body

        Raises:
            AuthorizationFailedError: On 401/403
            TransientAPIError: On 429 and 5xx
            NetworkError: On other HTTP errors
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        session = self._get_session()

        async with self.throttler:
            async with session.get(url, params=params, headers=self._headers()) as response:
                if response.status in (401, 403):
                    raise AuthorizationFailedError(details={'status': response.status, 'url': url})

                if response.status == 429:
                    retry_after = self._retry_after_seconds(response.headers.get('Retry-After'))
                    self.logger.warning(f"Rate limited by Apple Music, waiting {retry_after:g} seconds...")
                    await asyncio.sleep(retry_after)
                    raise TransientAPIError(details={'status': 429, 'url': url})

                if response.status >= 500:
                    raise TransientAPIError(details={'status': response.status, 'url': url})

                if response.status >= 400:
                    raise NetworkError(details={'status': response.status, 'url': url})

                return await response.json()

    async def search(self, query: str, limit: int = MAX_SEARCH_LIMIT) -> List[CatalogSong]:
        """
        Search the Apple Music catalog for songs

        Args:
            query: Search term
            limit: Maximum number of results (capped at 25)

        Returns:
            Songs in API order; empty for an empty query

        Raises:
            AuthorizationFailedError: If no developer token is configured or the API rejects it
            NetworkError: If the request fails after retries
        """
        if not query.strip():
            return []

        if not self.auth.developer_token:
            raise AuthorizationFailedError("Apple Music developer token is not configured")

        storefront = self.settings.apple_music.storefront
        params = {
            'term': query,
            'types': 'songs',
            'limit': max(1, min(limit, MAX_SEARCH_LIMIT)),
        }

        try:
            payload = await self._request(f"catalog/{storefront}/search", params)
        except MeloMoError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(details={'query': query, 'original_error': str(e)}) from e

        songs = self._parse_songs(payload)
        self.logger.debug(f"Apple Music search '{query}' returned {len(songs)} songs")
        return songs[:limit]

    def _parse_songs(self, payload: Dict[str, Any]) -> List[CatalogSong]:
        items = payload.get('results', {}).get('songs', {}).get('data', [])

        songs = []
        for item in items:
            if not item.get('id'):
                self.logger.debug("Skipping catalog item without id")
                continue
            try:
                songs.append(CatalogSong.from_api_data(item))
            except (KeyError, TypeError, ValueError) as e:
                self.logger.debug(f"Skipping malformed catalog item {item.get('id')}: {e}")
        return songs

    async def check_connection(self) -> bool:
        """Probe the API with a minimal search; used by diagnostics"""
        try:
            await self.search("music", limit=1)
            return True
        except MeloMoError as e:
            self.logger.debug(f"Apple Music connection check failed: {e}")
            return False
