"""Test the Apple Music catalog client against a fake HTTP session"""

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import aiohttp
import pytest

from melomo.applemusic.client import AppleMusicClient
from melomo.config.auth import AppleMusicAuth
from melomo.utils.exceptions import AuthorizationFailedError, NetworkError


def song_item(song_id, name="Song"):
    return {
        'id': str(song_id),
        'type': 'songs',
        'attributes': {
            'name': name,
            'artistName': 'Artist',
            'albumName': 'Album',
            'durationInMillis': 200000,
            'genreNames': ['Pop', 'Music'],
            'artwork': {'url': 'https://is1.example/{w}x{h}bb.jpg', 'width': 1000, 'height': 1000},
        },
    }


class FakeResponse:
    def __init__(self, status=200, payload=None, headers=None):
        self.status = status
        self.payload = payload if payload is not None else {}
        self.headers = headers or {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self):
        return self.payload


class FakeSession:
    """Returns queued responses (or raises queued exceptions) in order"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def get(self, url, params=None, headers=None):
        self.requests.append({'url': url, 'params': params, 'headers': headers})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True


@pytest.fixture
def auth(settings, monkeypatch):
    monkeypatch.delenv("APPLE_MUSIC_USER_TOKEN", raising=False)
    return AppleMusicAuth(settings)


def make_client(settings, auth, *responses):
    session = FakeSession(*responses)
    return AppleMusicClient(settings=settings, auth=auth, session=session), session


@pytest.mark.asyncio
class TestSearch:
    """Test catalog search requests and parsing"""

    async def test_parses_songs(self, settings, auth):
        payload = {'results': {'songs': {'data': [song_item(1, "Good as Hell"), song_item(2)]}}}
        client, session = make_client(settings, auth, FakeResponse(payload=payload))

        songs = await client.search("feel good OR pop uplifting", limit=25)

        assert [s.title for s in songs] == ["Good as Hell", "Song"]
        assert songs[0].genres == ["Pop"]
        request = session.requests[0]
        assert request['url'] == "https://api.music.apple.com/v1/catalog/us/search"
        assert request['params'] == {'term': "feel good OR pop uplifting", 'types': 'songs', 'limit': 25}
        assert request['headers']['Authorization'] == "Bearer dev-token"
        assert 'Music-User-Token' not in request['headers']

    async def test_user_token_header(self, settings, auth):
        auth.login("user-token")
        client, session = make_client(settings, auth, FakeResponse(payload={}))

        await client.search("chill")

        assert session.requests[0]['headers']['Music-User-Token'] == "user-token"

    async def test_limit_is_capped(self, settings, auth):
        client, session = make_client(settings, auth, FakeResponse(payload={}))

        await client.search("chill", limit=100)

        assert session.requests[0]['params']['limit'] == 25

    async def test_no_results(self, settings, auth):
        client, _ = make_client(settings, auth, FakeResponse(payload={'results': {}}))
        assert await client.search("zzzz") == []

    async def test_items_without_id_skipped(self, settings, auth):
        payload = {'results': {'songs': {'data': [{'type': 'songs'}, song_item(3)]}}}
        client, _ = make_client(settings, auth, FakeResponse(payload=payload))

        songs = await client.search("night")

        assert [s.id for s in songs] == ["3"]

    async def test_empty_query(self, settings, auth):
        client, session = make_client(settings, auth)

        assert await client.search("   ") == []
        assert session.requests == []

    async def test_missing_developer_token(self, settings, auth):
        settings.apple_music.developer_token = ""
        client, session = make_client(settings, auth)

        with pytest.raises(AuthorizationFailedError):
            await client.search("happy")
        assert session.requests == []


@pytest.mark.asyncio
class TestErrorHandling:
    """Test HTTP error classification and retries"""

    async def test_unauthorized_is_not_retried(self, settings, auth):
        client, session = make_client(settings, auth, FakeResponse(status=401), FakeResponse(payload={}))

        with pytest.raises(AuthorizationFailedError):
            await client.search("happy")
        assert len(session.requests) == 1

    async def test_server_error_retried(self, settings, auth):
        payload = {'results': {'songs': {'data': [song_item(1)]}}}
        client, session = make_client(settings, auth, FakeResponse(status=503), FakeResponse(payload=payload))

        songs = await client.search("happy")

        assert len(songs) == 1
        assert len(session.requests) == 2

    async def test_server_error_exhausts_retries(self, settings, auth):
        client, session = make_client(settings, auth, FakeResponse(status=500), FakeResponse(status=500))

        with pytest.raises(NetworkError):
            await client.search("happy")
        assert len(session.requests) == settings.network.max_retries

    async def test_rate_limit_waits_and_retries(self, settings, auth):
        client, session = make_client(
            settings, auth,
            FakeResponse(status=429, headers={'Retry-After': '0'}),
            FakeResponse(payload={}),
        )

        assert await client.search("happy") == []
        assert len(session.requests) == 2

    async def test_client_error_not_retried(self, settings, auth):
        client, session = make_client(settings, auth, FakeResponse(status=400), FakeResponse(payload={}))

        with pytest.raises(NetworkError):
            await client.search("happy")
        assert len(session.requests) == 1

    async def test_connection_error_wrapped(self, settings, auth):
        error = aiohttp.ClientConnectionError("refused")
        client, session = make_client(settings, auth, error, error)

        with pytest.raises(NetworkError) as exc_info:
            await client.search("happy")

        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)
        assert len(session.requests) == 2

    async def test_rate_limit_with_http_date(self, settings, auth):
        client, session = make_client(
            settings, auth,
            FakeResponse(status=429, headers={'Retry-After': 'Wed, 21 Oct 2015 07:28:00 GMT'}),
            FakeResponse(payload={}),
        )

        assert await client.search("happy") == []
        assert len(session.requests) == 2

    async def test_rate_limit_with_unreadable_header(self, settings, auth):
        client, session = make_client(
            settings, auth,
            FakeResponse(status=429, headers={'Retry-After': 'soon'}),
            FakeResponse(payload={}),
        )

        assert await client.search("happy") == []
        assert len(session.requests) == 2

    async def test_check_connection(self, settings, auth):
        client, _ = make_client(settings, auth, FakeResponse(status=403))
        assert await client.check_connection() is False

    async def test_injected_session_not_closed(self, settings, auth):
        client, session = make_client(settings, auth)

        async with client:
            pass

        assert session.closed is False


class TestRetryAfter:
    """Test how long a rate limited request waits"""

    def test_delta_seconds(self, settings, auth):
        client, _ = make_client(settings, auth)

        assert client._retry_after_seconds("3") == 3.0
        assert client._retry_after_seconds("-5") == 0.0

    def test_http_date(self, settings, auth):
        client, _ = make_client(settings, auth)
        later = format_datetime(datetime.now(timezone.utc) + timedelta(seconds=30), usegmt=True)

        assert 0 < client._retry_after_seconds(later) <= 30
        assert client._retry_after_seconds("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0

    def test_falls_back_to_retry_delay(self, settings, auth):
        settings.network.retry_delay = 1.5
        client, _ = make_client(settings, auth)

        assert client._retry_after_seconds(None) == 1.5
        assert client._retry_after_seconds("soon") == 1.5
