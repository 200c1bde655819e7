"""Test configuration and fixtures"""

import random
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

from melomo.applemusic.player import QueuePlayer
from melomo.config.settings import Settings
from melomo.controller.music_controller import MusicController
from melomo.controller.persistence import MemoryKeyValueStore
from melomo.moods.catalog import load_catalog
from melomo.moods.models import (
    Artwork,
    AuthorizationStatus,
    CatalogSong,
    Mood,
    MoodCategory,
)


class FakeSearch:
    """Catalog search backend answering from a query -> songs table"""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.queries = []

    async def search(self, query, limit):
        self.queries.append((query, limit))
        result = self.responses.get(query, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakeAuthorization:
    def __init__(self, status=AuthorizationStatus.AUTHORIZED, request_result=AuthorizationStatus.AUTHORIZED):
        self.status = status
        self.request_result = request_result
        self.request_calls = 0

    def current_status(self):
        return self.status

    async def request(self):
        self.request_calls += 1
        self.status = self.request_result
        return self.request_result


class FakeOpener:
    def __init__(self, openable=True):
        self.openable = openable
        self.checked = []
        self.opened = []

    async def can_open(self, url):
        self.checked.append(url)
        return self.openable

    async def open(self, url):
        self.opened.append(url)


class FakeClock:
    """Monotonic clock advanced by hand"""

    def __init__(self, start=100.0):
        self.value = start

    def __call__(self):
        return self.value

    def advance(self, seconds):
        self.value += seconds


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def settings(temp_dir):
    """Settings isolated from the user's config and state"""
    settings = Settings(config_path=str(temp_dir / "config.yaml"))
    settings.apple_music.developer_token = "dev-token"
    settings.apple_music.storefront = "us"
    settings.apple_music.search_limit = 25
    settings.apple_music.api_base_url = "https://api.music.apple.com/v1"
    settings.generation.cooldown_seconds = 2.0
    settings.generation.recent_moods_limit = 10
    settings.generation.popular_threshold = 4
    settings.generation.auto_open_handoff = True
    settings.storage.directory = str(temp_dir / "state")
    settings.security.token_storage_path = str(temp_dir / "tokens.json")
    settings.security.config_directory = str(temp_dir)
    settings.network.max_retries = 2
    settings.network.retry_delay = 0
    return settings


@pytest.fixture
def happy_mood():
    """Mood with two seeds, as used in the generation scenarios"""
    return Mood(
        id="happy",
        emoji="😀",
        title="Happy",
        seeds=["feel good", "pop uplifting"],
        energy=0.9,
        category=MoodCategory.ENERGETIC,
        popularity=5,
        description="Feeling joyful and upbeat",
        image_name="happy",
    )


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def make_song():
    """Factory for catalog songs"""
    def factory(song_id="1", title=None, artwork=True, max_size=3000):
        return CatalogSong(
            id=str(song_id),
            title=title or f"Song {song_id}",
            artist=f"Artist {song_id}",
            album="Album",
            artwork=Artwork(f"https://art.example/{song_id}/{{w}}x{{h}}bb.jpg", max_size, max_size) if artwork else None,
            duration=210.0,
            genres=["Pop"],
        )
    return factory


@pytest.fixture
def fake_search():
    return FakeSearch()


@pytest.fixture
def fake_auth():
    return FakeAuthorization()


@pytest.fixture
def fake_opener():
    return FakeOpener()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def player():
    return QueuePlayer()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def now():
    return datetime(2026, 1, 1, 12, 0, 0)


@pytest.fixture
def controller_factory(fake_search, player, fake_auth, fake_opener, store, catalog, settings, clock, now):
    """Build controllers sharing the same fakes (and therefore the same stored state)"""
    def factory(**overrides):
        kwargs = dict(
            search=fake_search,
            player=player,
            authorization=fake_auth,
            opener=fake_opener,
            store=store,
            catalog=catalog,
            settings=settings,
            clock=clock,
            rng=random.Random(7),
            now=lambda: now,
        )
        kwargs.update(overrides)
        return MusicController(**kwargs)
    return factory


@pytest.fixture
def controller(controller_factory):
    return controller_factory()
