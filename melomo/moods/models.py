"""
Data models for moods, providers, playlist links and tracks

This module defines the data structures shared by every part of MeloMo: the
read-only mood records, the provider enumeration, the provider-tagged
playlist link produced by a generation, catalog search hits, and the
aggregates that are persisted between sessions.

Architecture Overview:

1. **Enums Layer**: fixed vocabularies
   - MoodCategory: grouping tag for moods
   - Provider: the three music services the app can target
   - AppTheme: user interface theme preference
   - AuthorizationStatus / PlaybackStatus: states reported by collaborators

2. **Catalog Layer**: immutable reference data
   - Mood: a named mood with search seeds and an energy score

3. **Generation Layer**: values produced while generating
   - Artwork / CatalogSong: Apple Music search hits
   - MusicTrack: snapshot of the currently playing track
   - PlaylistLink: provider-tagged result URL
   - GenerationState: observable controller state

4. **Persistence Layer**: aggregates stored as JSON documents
   - UserPreferences
   - AppStatistics

Every persisted model has ``to_dict`` / ``from_dict`` so it can be written as
one JSON document per aggregate.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class MoodCategory(Enum):
    """
    Grouping tag for moods

    The category drives the broad genre query used as the last search
    strategy, and the category filters offered to the user.
    """
    ENERGETIC = "Energetic"
    RELAXED = "Relaxed"
    EMOTIONAL = "Emotional"
    FOCUSED = "Focused"
    SOCIAL = "Social"
    GENERAL = "General"
    MELANCHOLY = "Melancholy"
    CHILL = "Chill"
    ROMANTIC = "Romantic"
    MAGICAL = "Magical"

    @classmethod
    def from_name(cls, name: str) -> 'MoodCategory':
        """Look up a category by value or member name, case-insensitively"""
        needle = name.strip().lower()
        for category in cls:
            if needle in (category.value.lower(), category.name.lower()):
                return category
        raise ValueError(f"Unknown mood category: {name}")


class Provider(Enum):
    """
    Music services the app can target

    Apple Music supports catalog search and in-app playback; Spotify and
    YouTube Music are handoff-only and receive a deep link instead.
    """
    APPLE_MUSIC = "Apple Music"
    SPOTIFY = "Spotify"
    YOUTUBE_MUSIC = "YouTube Music"

    @property
    def link_type(self) -> str:
        """Tag used for this provider in serialized playlist links"""
        return _LINK_TYPES[self]

    @property
    def supports_playback(self) -> bool:
        return self is Provider.APPLE_MUSIC

    @classmethod
    def from_name(cls, name: str) -> 'Provider':
        """
        Resolve a provider from user input

        Accepts the display value ("YouTube Music"), the link tag
        ("youtubeMusic"), the member name ("YOUTUBE_MUSIC") or a dashed form
        ("youtube-music"), all case-insensitive.
        """
        needle = name.strip().lower().replace('-', ' ').replace('_', ' ')
        for provider in cls:
            candidates = {
                provider.value.lower(),
                provider.name.lower().replace('_', ' '),
                provider.link_type.lower(),
            }
            if needle in candidates or needle.replace(' ', '') in {c.replace(' ', '') for c in candidates}:
                return provider
        raise ValueError(f"Unknown provider: {name}")


_LINK_TYPES = {
    Provider.APPLE_MUSIC: "appleMusic",
    Provider.SPOTIFY: "spotify",
    Provider.YOUTUBE_MUSIC: "youtubeMusic",
}


class AppTheme(Enum):
    LIGHT = "Light"
    DARK = "Dark"
    SYSTEM = "System"


class AuthorizationStatus(Enum):
    """Authorization states reported by the catalog provider"""
    AUTHORIZED = "authorized"
    NOT_DETERMINED = "notDetermined"
    DENIED = "denied"
    RESTRICTED = "restricted"


class PlaybackStatus(Enum):
    """Playback states reported by the playback capability"""
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class Mood:
    """
    A named emotional or activity category with music-search keywords

    Moods come from the static catalog and are never mutated. Copies are
    stored in the recent history and favorites lists, which is why equality
    and hashing use the stable ``id`` only.

    Attributes:
        id: Stable opaque identifier (also the persistence key)
        emoji: Emoji shown next to the title
        image_name: Artwork asset name for the mood
        title: Display title, also used in fallback search queries
        description: Short human description
        seeds: Ordered search keywords used to build catalog queries
        energy: Energy score from 0.0 (calm) to 1.0 (intense)
        category: Grouping tag
        popularity: Popularity score; 4 and above counts as popular
    """
    id: str
    emoji: str = field(compare=False)
    title: str = field(compare=False)
    seeds: Tuple[str, ...] = field(default_factory=tuple, compare=False)
    energy: float = field(default=0.5, compare=False)
    category: MoodCategory = field(default=MoodCategory.GENERAL, compare=False)
    popularity: int = field(default=1, compare=False)
    description: str = field(default="", compare=False)
    image_name: str = field(default="", compare=False)

    def __post_init__(self):
        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, 'seeds', tuple(self.seeds))
        if not self.id:
            raise ValueError("Mood id cannot be empty")
        if not 0.0 <= float(self.energy) <= 1.0:
            raise ValueError(f"Mood energy must be between 0.0 and 1.0: {self.energy}")

    def __hash__(self) -> int:
        return hash(self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'emoji': self.emoji,
            'imageName': self.image_name,
            'title': self.title,
            'description': self.description,
            'seeds': list(self.seeds),
            'energy': self.energy,
            'category': self.category.value,
            'popularity': self.popularity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Mood':
        """
        Factory method to construct a Mood from its JSON form

        Accepts both the persisted camelCase keys and the snake_case keys
        used in the bundled catalog file.

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field has an invalid value
        """
        return cls(
            id=str(data['id']),
            emoji=data.get('emoji', ''),
            image_name=data.get('imageName', data.get('image_name', '')),
            title=data['title'],
            description=data.get('description', ''),
            seeds=tuple(data.get('seeds', ())),
            energy=float(data.get('energy', 0.5)),
            category=MoodCategory.from_name(data.get('category', MoodCategory.GENERAL.value)),
            popularity=int(data.get('popularity', 1)),
        )


@dataclass(frozen=True)
class PlaylistLink:
    """
    Provider-tagged URL representing the outcome of a generation

    A tagged variant: the provider is the tag, the URL the payload. For
    Apple Music it is a shareable catalog search URL (playback has already
    started); for handoff providers it is the deep link itself.
    """
    provider: Provider
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {'type': self.provider.link_type, 'url': self.url}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlaylistLink':
        """
        Raises:
            ValueError: If the provider type tag is unknown
        """
        link_type = data.get('type')
        for provider, tag in _LINK_TYPES.items():
            if tag == link_type:
                return cls(provider=provider, url=str(data['url']))
        raise ValueError(f"Unknown provider type: {link_type}")


@dataclass
class Artwork:
    """
    Apple Music artwork descriptor

    Apple returns a URL template such as ``.../{w}x{h}bb.jpg`` together with
    the largest available dimensions. A concrete URL exists only for sizes
    within those bounds.
    """
    url_template: Optional[str]
    max_width: int = 0
    max_height: int = 0

    def url(self, width: int, height: int) -> Optional[str]:
        if not self.url_template:
            return None
        if self.max_width and width > self.max_width:
            return None
        if self.max_height and height > self.max_height:
            return None
        return self.url_template.replace('{w}', str(width)).replace('{h}', str(height))

    @classmethod
    def from_api_data(cls, data: Optional[Dict[str, Any]]) -> Optional['Artwork']:
        if not data:
            return None
        return cls(
            url_template=data.get('url'),
            max_width=int(data.get('width') or 0),
            max_height=int(data.get('height') or 0),
        )


@dataclass
class CatalogSong:
    """
    One song returned by an Apple Music catalog search

    Attributes:
        id: Apple Music catalog identifier
        title: Song name
        artist: Artist display name
        album: Album name if available
        artwork: Artwork descriptor if available
        duration: Duration in seconds
        genres: Genre names attached by Apple
        url: Apple Music web URL for the song
    """
    id: str
    title: str
    artist: str
    album: Optional[str] = None
    artwork: Optional[Artwork] = None
    duration: float = 0.0
    genres: List[str] = field(default_factory=list)
    url: Optional[str] = None

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]) -> 'CatalogSong':
        """
        Factory method to construct a CatalogSong from an Apple Music API resource

        Args:
            data: One item of ``results.songs.data`` from the search endpoint

        Returns:
            CatalogSong with defaults for missing optional attributes
        """
        attributes = data.get('attributes', {})
        duration_ms = attributes.get('durationInMillis') or 0
        return cls(
            id=str(data['id']),
            title=attributes.get('name', 'Unknown Title'),
            artist=attributes.get('artistName', 'Unknown Artist'),
            album=attributes.get('albumName'),
            artwork=Artwork.from_api_data(attributes.get('artwork')),
            duration=duration_ms / 1000.0,
            genres=[g for g in attributes.get('genreNames', []) if g != 'Music'],
            url=attributes.get('url'),
        )


@dataclass
class MusicTrack:
    """
    Snapshot of a track for display

    Built from the player's current entry; not persisted beyond the session.
    """
    id: str
    title: str
    artist: str
    duration: float
    energy: float
    album: Optional[str] = None
    artwork_url: Optional[str] = None
    genre: Optional[str] = None
    mood: Optional[str] = None

    @classmethod
    def from_song(
        cls,
        song: CatalogSong,
        energy: float,
        artwork_url: Optional[str] = None,
        mood: Optional[str] = None
    ) -> 'MusicTrack':
        return cls(
            id=song.id,
            title=song.title,
            artist=song.artist,
            album=song.album,
            artwork_url=artwork_url,
            duration=song.duration,
            energy=energy,
            genre=song.genres[0] if song.genres else None,
            mood=mood,
        )


@dataclass
class GenerationState:
    """
    Observable state of the generation orchestrator

    Mutated exclusively by MusicController. ``is_loading`` is true only
    while a generation is in flight.
    """
    is_loading: bool = False
    current_mood: Optional[Mood] = None
    last_generated_link: Optional[PlaylistLink] = None
    error_message: Optional[str] = None
    status_message: Optional[str] = None
    last_generation_time: Optional[float] = None
    current_track_artwork_url: Optional[str] = None


@dataclass
class UserPreferences:
    preferred_provider: Provider = Provider.APPLE_MUSIC
    auto_play: bool = True
    notifications_enabled: bool = True
    theme: AppTheme = AppTheme.SYSTEM

    def to_dict(self) -> Dict[str, Any]:
        return {
            'preferredProvider': self.preferred_provider.value,
            'autoPlay': self.auto_play,
            'notificationsEnabled': self.notifications_enabled,
            'theme': self.theme.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserPreferences':
        defaults = cls()
        return cls(
            preferred_provider=Provider(data.get('preferredProvider', defaults.preferred_provider.value)),
            auto_play=bool(data.get('autoPlay', defaults.auto_play)),
            notifications_enabled=bool(data.get('notificationsEnabled', defaults.notifications_enabled)),
            theme=AppTheme(data.get('theme', defaults.theme.value)),
        )


@dataclass
class AppStatistics:
    """
    Usage counters persisted between sessions

    ``most_used_provider`` follows the active provider: it is updated on
    every accepted generation and whenever the provider is switched.
    """
    total_playlists_generated: int = 0
    favorite_mood: Optional[Mood] = None
    total_listening_time: float = 0.0
    most_used_provider: Provider = Provider.APPLE_MUSIC
    last_used_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalPlaylistsGenerated': self.total_playlists_generated,
            'favoriteMood': self.favorite_mood.to_dict() if self.favorite_mood else None,
            'totalListeningTime': self.total_listening_time,
            'mostUsedProvider': self.most_used_provider.value,
            'lastUsedDate': self.last_used_date.isoformat() if self.last_used_date else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppStatistics':
        favorite = data.get('favoriteMood')
        last_used = data.get('lastUsedDate')
        return cls(
            total_playlists_generated=int(data.get('totalPlaylistsGenerated', 0)),
            favorite_mood=Mood.from_dict(favorite) if favorite else None,
            total_listening_time=float(data.get('totalListeningTime', 0.0)),
            most_used_provider=Provider(data.get('mostUsedProvider', Provider.APPLE_MUSIC.value)),
            last_used_date=datetime.fromisoformat(last_used) if last_used else None,
        )
