"""
Mood data models and the bundled mood catalog

    from melomo.moods import get_catalog
    happy = get_catalog().find("happy")
"""

from .models import (
    Mood,
    MoodCategory,
    Provider,
    PlaylistLink,
    CatalogSong,
    MusicTrack,
    GenerationState,
    UserPreferences,
    AppStatistics
)
from .catalog import MoodCatalog, get_catalog, load_catalog, asset_name_for

__all__ = [
    'Mood',
    'MoodCategory',
    'Provider',
    'PlaylistLink',
    'CatalogSong',
    'MusicTrack',
    'GenerationState',
    'UserPreferences',
    'AppStatistics',
    'MoodCatalog',
    'get_catalog',
    'load_catalog',
    'asset_name_for'
]
