"""
Apple Music integration: catalog search, mood search strategies and playback

The client talks to the Apple Music Web API; MoodSearcher runs the fallback
search strategies on top of any catalog search backend; PlaybackQueueBuilder
shuffles the results and starts them on a player.
"""

from .client import AppleMusicClient
from .searcher import MoodSearcher, SearchOutcome
from .player import PlaybackQueueBuilder, QueuePlayer, QueueResult

__all__ = [
    'AppleMusicClient',
    'MoodSearcher',
    'SearchOutcome',
    'PlaybackQueueBuilder',
    'QueuePlayer',
    'QueueResult'
]
