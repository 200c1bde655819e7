"""
Generation orchestrator

MusicController owns all mutable generation state: the active provider,
recent and favorite moods, usage statistics, preferences and the observable
GenerationState. It is an explicitly constructed service; every external
capability (catalog search, playback, authorization, URL opening, storage)
is injected.

Generation flow:

1. Guards: a call while another generation is in flight, or within the
   cooldown window of the previous accepted start, is dropped with a
   feedback signal and changes nothing.
2. Bookkeeping: current mood, cleared messages, loading flag, start time,
   recent history and statistics are updated and persisted. A store that
   cannot be written is logged and does not stop the generation.
3. Dispatch on the active provider:
   - Apple Music: search strategies, queue and start playback
   - Spotify: build a deep link, no auto-open
   - YouTube Music: build a deep link and open it when possible
4. Failures set ``error_message``; ``is_loading`` is always cleared.

All mutation happens on the event loop that awaits ``generate``; at most
one generation runs at a time.
"""

import random
import time
from dataclasses import fields
from datetime import datetime
from typing import Any, Callable, List, Optional

from ..applemusic.player import PlaybackQueueBuilder, resolve_artwork_url
from ..applemusic.searcher import MoodSearcher
from ..config.settings import Settings, get_settings
from ..handoff.links import ProviderLinkBuilder, apple_music_search_url
from ..moods.catalog import MoodCatalog, get_catalog
from ..moods.models import (
    AppStatistics,
    AppTheme,
    AuthorizationStatus,
    GenerationState,
    Mood,
    MoodCategory,
    MusicTrack,
    PlaybackStatus,
    PlaylistLink,
    Provider,
    UserPreferences,
)
from ..utils.exceptions import AuthorizationFailedError, MeloMoError, NetworkError, StorageError
from ..utils.logger import get_logger, log_performance
from .feedback import Feedback, FeedbackDispatcher, FeedbackListener
from .interfaces import AuthorizationProvider, CatalogSearch, KeyValueStore, PlaybackControl, URLOpener
from .persistence import (
    FAVORITE_MOODS_KEY,
    PREFERENCES_KEY,
    PROVIDER_KEY,
    RECENT_MOODS_KEY,
    STATISTICS_KEY,
    JsonState,
)

logger = get_logger(__name__)

SPOTIFY_READY_MESSAGE = "Spotify playlist ready! Tap to open Spotify."

DEFAULT_TRACK_ENERGY = 0.5


def _decode_moods(data: Any) -> List[Mood]:
    if not isinstance(data, list):
        raise TypeError(f"Expected a list of moods, got {type(data).__name__}")
    return [Mood.from_dict(item) for item in data]


def _dedupe(moods: List[Mood]) -> List[Mood]:
    seen = set()
    unique = []
    for mood in moods:
        if mood.id not in seen:
            seen.add(mood.id)
            unique.append(mood)
    return unique


class MusicController:
    """
    Mood-to-playlist generation service

    Args:
        search: Catalog search capability (Apple Music path)
        player: Playback capability (Apple Music path)
        authorization: Apple Music authorization capability
        opener: URL-open capability (YouTube Music path)
        store: Key-value store for persisted state
        catalog: Mood catalog; defaults to the bundled one
        settings: Application settings; supply the generation policy
        clock: Monotonic clock used for the cooldown
        rng: Random source for shuffling and random mood picks
        now: Wall clock used for statistics timestamps
    """

    def __init__(
        self,
        search: CatalogSearch,
        player: PlaybackControl,
        authorization: AuthorizationProvider,
        opener: URLOpener,
        store: KeyValueStore,
        catalog: Optional[MoodCatalog] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        now: Callable[[], datetime] = datetime.now
    ):
        self.settings = settings or get_settings()
        self.catalog = catalog if catalog is not None else get_catalog()
        self.player = player
        self.authorization = authorization
        self.opener = opener
        self.rng = rng or random.Random()

        self.searcher = MoodSearcher(search, limit=self.settings.apple_music.search_limit)
        self.queue_builder = PlaybackQueueBuilder(player, rng=self.rng)
        self.link_builder = ProviderLinkBuilder()
        self.feedback = FeedbackDispatcher()

        self._clock = clock
        self._now = now
        self._state = JsonState(store)

        self.state = GenerationState()
        self.is_authorized = False

        self._provider = self._state.load(PROVIDER_KEY, Provider, Provider.APPLE_MUSIC)
        self.preferences = self._state.load(PREFERENCES_KEY, UserPreferences.from_dict, UserPreferences())
        self.statistics = self._state.load(STATISTICS_KEY, AppStatistics.from_dict, AppStatistics())
        self.recent_moods: List[Mood] = _dedupe(
            self._state.load(RECENT_MOODS_KEY, _decode_moods, [])
        )[:self.recent_limit]
        self.favorite_moods: List[Mood] = _dedupe(self._state.load(FAVORITE_MOODS_KEY, _decode_moods, []))

    # Configuration

    @property
    def cooldown(self) -> float:
        return float(self.settings.generation.cooldown_seconds)

    @property
    def recent_limit(self) -> int:
        return max(1, int(self.settings.generation.recent_moods_limit))

    @property
    def provider(self) -> Provider:
        return self._provider

    def add_feedback_listener(self, listener: FeedbackListener) -> Callable[[], None]:
        return self.feedback.add_listener(listener)

    # Generation

    @log_performance
    async def generate(self, mood: Mood) -> None:
        """
        Generate a playlist for a mood with the active provider

        The outcome is observed through ``state``: ``last_generated_link`` on
        success, ``error_message`` on failure.
        """
        if self.state.is_loading:
            logger.debug(f"Ignoring '{mood.title}': a generation is already running")
            self.feedback.emit(Feedback.BUSY)
            return

        started = self._clock()
        last = self.state.last_generation_time
        if last is not None and started - last < self.cooldown:
            logger.debug(f"Ignoring '{mood.title}': cooldown active ({started - last:.2f}s elapsed)")
            self.feedback.emit(Feedback.WARNING)
            return

        self.state.current_mood = mood
        self.state.error_message = None
        self.state.status_message = None
        self.state.is_loading = True
        self.state.last_generation_time = started

        try:
            self._add_to_recent_moods(mood)
            self._record_generation()
            self.feedback.emit(Feedback.MOOD_SELECTED)

            provider = self._provider
            logger.info(f"Generating {provider.value} playlist for mood: {mood.title}")

            if provider == Provider.APPLE_MUSIC:
                await self._generate_apple_music(mood)
            elif provider == Provider.SPOTIFY:
                await self._generate_spotify(mood)
            else:
                await self._generate_youtube_music(mood)

        except MeloMoError as e:
            self._fail(mood, e)
        except Exception as e:
            logger.debug(f"Unexpected error while generating '{mood.title}'", exc_info=True)
            self._fail(mood, NetworkError(details={'mood': mood.title, 'original_error': str(e)}))
        finally:
            self.state.is_loading = False

    def _fail(self, mood: Mood, error: MeloMoError) -> None:
        logger.error(f"{self._provider.value} generation failed for '{mood.title}': {error}")
        if error.details:
            logger.debug(f"Details: {error.details}")
        self.state.error_message = error.message
        self.feedback.emit(Feedback.ERROR)

    async def _generate_apple_music(self, mood: Mood) -> None:
        if not self.is_authorized:
            raise AuthorizationFailedError(details={'mood': mood.title})

        outcome = await self.searcher.find_songs(mood)
        logger.info(f"Found {len(outcome.songs)} songs for '{mood.title}' with the {outcome.strategy} strategy")

        if self.authorization.current_status() != AuthorizationStatus.AUTHORIZED:
            self.is_authorized = False
            raise AuthorizationFailedError(details={'mood': mood.title})

        result = await self.queue_builder.play(outcome.songs)

        self.state.current_track_artwork_url = result.artwork_url
        self.state.last_generated_link = PlaylistLink(Provider.APPLE_MUSIC, apple_music_search_url(mood))
        self.feedback.emit(Feedback.PLAYLIST_GENERATED)

    async def _generate_spotify(self, mood: Mood) -> None:
        link = self.link_builder.build(Provider.SPOTIFY, mood)
        self.state.last_generated_link = link
        logger.info(f"Generated Spotify playlist link for mood: {mood.title}")

        self.state.status_message = SPOTIFY_READY_MESSAGE
        self.feedback.emit(Feedback.PLAYLIST_GENERATED)

    async def _generate_youtube_music(self, mood: Mood) -> None:
        link = self.link_builder.build(Provider.YOUTUBE_MUSIC, mood)
        self.state.last_generated_link = link
        logger.info(f"Generated YouTube Music link for mood: {mood.title}")

        if not self.settings.generation.auto_open_handoff:
            self.feedback.emit(Feedback.PLAYLIST_GENERATED)
            return

        if not await self.opener.can_open(link.url):
            logger.info("YouTube Music cannot be opened here, link kept for sharing")
            self.feedback.emit(Feedback.WARNING)
            return

        try:
            await self.opener.open(link.url)
        except Exception as e:
            logger.warning(f"Failed to open YouTube Music: {e}")
            self.feedback.emit(Feedback.WARNING)
            return

        self.feedback.emit(Feedback.PLAYLIST_GENERATED)

    # History, favorites and statistics

    def _persist(self, key: str, value: Any) -> None:
        """Save a state document; a failing store is logged, in-memory state stays current"""
        try:
            self._state.save(key, value)
        except StorageError as e:
            logger.warning(f"Could not save '{key}': {e}")

    def _add_to_recent_moods(self, mood: Mood) -> None:
        moods = [m for m in self.recent_moods if m.id != mood.id]
        moods.insert(0, mood)
        self.recent_moods = moods[:self.recent_limit]
        self._persist(RECENT_MOODS_KEY, [m.to_dict() for m in self.recent_moods])

    def _record_generation(self) -> None:
        self.statistics.total_playlists_generated += 1
        self.statistics.last_used_date = self._now()
        self.statistics.most_used_provider = self._provider
        self._save_statistics()

    def _save_statistics(self) -> None:
        self._persist(STATISTICS_KEY, self.statistics.to_dict())

    def toggle_favorite(self, mood: Mood) -> bool:
        """
        Add a mood to favorites, or remove it if already there

        Returns:
            True if the mood is a favorite afterwards
        """
        if self.is_favorite(mood):
            self.favorite_moods = [m for m in self.favorite_moods if m.id != mood.id]
            self.feedback.emit(Feedback.LIGHT)
            is_favorite = False
        else:
            self.favorite_moods.append(mood)
            self.feedback.emit(Feedback.SUCCESS)
            is_favorite = True

        self._persist(FAVORITE_MOODS_KEY, [m.to_dict() for m in self.favorite_moods])
        return is_favorite

    def is_favorite(self, mood: Mood) -> bool:
        return any(m.id == mood.id for m in self.favorite_moods)

    # Catalog queries

    def get_moods_by_category(self, category: MoodCategory) -> List[Mood]:
        return self.catalog.by_category(category)

    def get_popular_moods(self) -> List[Mood]:
        return self.catalog.popular(self.settings.generation.popular_threshold)

    def get_moods_by_energy(self, minimum: float, maximum: float) -> List[Mood]:
        return self.catalog.by_energy(minimum, maximum)

    def get_random_mood(self) -> Optional[Mood]:
        """Random mood not in recent history; any mood once all were seen recently"""
        return self.catalog.random(exclude=self.recent_moods, rng=self.rng)

    # Provider and preferences

    def set_provider(self, provider: Provider) -> None:
        """Switch the active provider; history and favorites are kept"""
        if provider != self._provider:
            logger.info(f"Switching provider: {self._provider.value} -> {provider.value}")

        self._provider = provider
        self._persist(PROVIDER_KEY, provider.value)

        self.statistics.most_used_provider = provider
        self._save_statistics()

    def update_preferences(self, **changes: Any) -> UserPreferences:
        """
        Update user preferences and persist them

        Unknown fields are ignored with a warning. Provider and theme accept
        either enum members or their display values.
        """
        known = {f.name for f in fields(UserPreferences)}

        for name, value in changes.items():
            if name not in known:
                logger.warning(f"Ignoring unknown preference: {name}")
                continue
            if name == 'preferred_provider' and not isinstance(value, Provider):
                value = Provider.from_name(str(value))
            elif name == 'theme' and not isinstance(value, AppTheme):
                value = AppTheme(value)
            setattr(self.preferences, name, value)

        self._persist(PREFERENCES_KEY, self.preferences.to_dict())
        return self.preferences

    # Authorization

    async def refresh_authorization_status(self) -> bool:
        """
        Query Apple Music authorization and cache the result

        An undetermined status triggers an authorization request.

        Returns:
            Whether Apple Music is authorized
        """
        try:
            status = self.authorization.current_status()
            if status == AuthorizationStatus.AUTHORIZED:
                self.is_authorized = True
            elif status == AuthorizationStatus.NOT_DETERMINED:
                status = await self.authorization.request()
                self.is_authorized = status == AuthorizationStatus.AUTHORIZED
            else:
                self.is_authorized = False
        except Exception as e:
            logger.error(f"Authorization error: {e}")
            self.is_authorized = False

        self.feedback.emit(Feedback.SUCCESS if self.is_authorized else Feedback.ERROR)
        return self.is_authorized

    async def request_authorization(self) -> bool:
        return await self.refresh_authorization_status()

    # Playback

    @property
    def is_playing(self) -> bool:
        return self.player.playback_status() == PlaybackStatus.PLAYING

    async def skip_to_next(self) -> None:
        try:
            await self.player.skip_to_next()
            logger.info("Skipped to next track")
        except Exception as e:
            logger.error(f"Failed to skip to next track: {e}")

    async def skip_to_previous(self) -> None:
        try:
            await self.player.skip_to_previous()
            logger.info("Skipped to previous track")
        except Exception as e:
            logger.error(f"Failed to skip to previous track: {e}")

    def current_playing_track(self) -> Optional[MusicTrack]:
        """Snapshot of the player's current entry, None when nothing is queued"""
        song = self.player.current_entry()
        if song is None:
            return None

        mood = self.state.current_mood
        return MusicTrack.from_song(
            song,
            energy=mood.energy if mood else DEFAULT_TRACK_ENERGY,
            artwork_url=resolve_artwork_url(song),
            mood=mood.title if mood else None,
        )
