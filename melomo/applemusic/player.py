"""
Playback queue building and the in-process player

PlaybackQueueBuilder turns a list of candidate songs into a started playback
queue: shuffle, pick the lead track, resolve its artwork, submit the queue
and start playback. QueuePlayer is the playback capability used when no
platform player is available; it keeps the queue in memory.
"""

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..moods.models import CatalogSong, PlaybackStatus
from ..utils.exceptions import NetworkError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Artwork sizes tried for the lead track, first match wins
ARTWORK_LADDER: Tuple[Tuple[int, int], ...] = (
    (300, 300),
    (512, 512),
    (200, 200),
    (100, 100),
)


def resolve_artwork_url(song: Optional[CatalogSong]) -> Optional[str]:
    """
    Resolve an artwork URL for a song using the size ladder

    Returns:
        First URL the artwork can provide, or None when it has no artwork
        at any ladder size
    """
    if song is None or song.artwork is None:
        return None

    for width, height in ARTWORK_LADDER:
        url = song.artwork.url(width, height)
        if url:
            return url
    return None


@dataclass
class QueueResult:
    """
    Outcome of a started queue

    Attributes:
        queue: Songs in the order they were submitted
        lead: First song of the shuffled queue
        artwork_url: Lead track artwork, None when unavailable
    """
    queue: List[CatalogSong]
    lead: CatalogSong
    artwork_url: Optional[str]


class PlaybackQueueBuilder:
    """
    Shuffles candidate songs and starts them on a playback capability

    Args:
        player: Object implementing the PlaybackControl interface
        rng: Random source used for shuffling
    """

    def __init__(self, player, rng: Optional[random.Random] = None):
        self.player = player
        self.rng = rng or random.Random()

    async def play(self, songs: Sequence[CatalogSong]) -> QueueResult:
        """
        Shuffle songs, queue them and start playback

        Args:
            songs: Non-empty candidate songs

        Returns:
            QueueResult describing what was queued

        Raises:
            ValueError: If songs is empty
            NetworkError: If queue submission or playback start fails
        """
        if not songs:
            raise ValueError("Cannot build a playback queue without songs")

        queue = list(songs)
        self.rng.shuffle(queue)
        lead = queue[0]
        artwork_url = resolve_artwork_url(lead)

        if artwork_url is None:
            logger.debug(f"No artwork available for lead track '{lead.title}'")

        try:
            await self.player.set_queue(queue)
            await self.player.play()
        except Exception as e:
            logger.error(f"Failed to start playback: {e}")
            raise NetworkError(details={'original_error': str(e), 'lead': lead.id}) from e

        logger.info(f"Playing {len(queue)} songs, starting with '{lead.title}' by {lead.artist}")
        return QueueResult(queue=queue, lead=lead, artwork_url=artwork_url)


class QueuePlayer:
    """
    In-memory playback queue

    Tracks the queue, the current position and a playback status. Skipping
    past the end stops playback; skipping before the start stays on the
    first entry.
    """

    def __init__(self):
        self.queue: List[CatalogSong] = []
        self.index = 0
        self.status = PlaybackStatus.STOPPED

    async def set_queue(self, songs: Sequence[CatalogSong]) -> None:
        self.queue = list(songs)
        self.index = 0
        self.status = PlaybackStatus.STOPPED

    async def play(self) -> None:
        if not self.queue:
            raise RuntimeError("Playback queue is empty")
        self.status = PlaybackStatus.PLAYING

    async def pause(self) -> None:
        if self.status == PlaybackStatus.PLAYING:
            self.status = PlaybackStatus.PAUSED

    async def skip_to_next(self) -> None:
        if not self.queue:
            raise RuntimeError("Playback queue is empty")

        if self.index + 1 >= len(self.queue):
            self.index = len(self.queue)
            self.status = PlaybackStatus.STOPPED
            return
        self.index += 1

    async def skip_to_previous(self) -> None:
        if not self.queue:
            raise RuntimeError("Playback queue is empty")
        self.index = max(0, min(self.index, len(self.queue)) - 1)

    def current_entry(self) -> Optional[CatalogSong]:
        if 0 <= self.index < len(self.queue):
            return self.queue[self.index]
        return None

    def playback_status(self) -> PlaybackStatus:
        return self.status
