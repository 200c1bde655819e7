"""
Handoff to Spotify and YouTube Music through search deep links
"""

from .links import ProviderLinkBuilder, apple_music_search_url
from .opener import SystemURLOpener

__all__ = [
    'ProviderLinkBuilder',
    'apple_music_search_url',
    'SystemURLOpener'
]
