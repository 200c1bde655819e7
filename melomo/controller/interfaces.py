"""
Collaborator interfaces consumed by the generation orchestrator

These are structural (duck-typed) interfaces: any object with matching
methods can be injected into MusicController. The shipped implementations
are:

- CatalogSearch: melomo.applemusic.client.AppleMusicClient
- PlaybackControl: melomo.applemusic.player.QueuePlayer
- AuthorizationProvider: melomo.config.auth.AppleMusicAuth
- URLOpener: melomo.handoff.opener.SystemURLOpener
- KeyValueStore: melomo.controller.persistence.FileKeyValueStore / MemoryKeyValueStore
"""

from typing import List, Optional, Protocol, Sequence

from ..moods.models import AuthorizationStatus, CatalogSong, PlaybackStatus


class CatalogSearch(Protocol):
    async def search(self, query: str, limit: int) -> List[CatalogSong]:
        ...


class PlaybackControl(Protocol):
    async def set_queue(self, songs: Sequence[CatalogSong]) -> None:
        ...

    async def play(self) -> None:
        ...

    async def pause(self) -> None:
        ...

    async def skip_to_next(self) -> None:
        ...

    async def skip_to_previous(self) -> None:
        ...

    def current_entry(self) -> Optional[CatalogSong]:
        ...

    def playback_status(self) -> PlaybackStatus:
        ...


class AuthorizationProvider(Protocol):
    def current_status(self) -> AuthorizationStatus:
        ...

    async def request(self) -> AuthorizationStatus:
        """Ask the user for authorization; may suspend on user interaction"""
        ...


class URLOpener(Protocol):
    async def can_open(self, url: str) -> bool:
        ...

    async def open(self, url: str) -> None:
        ...


class KeyValueStore(Protocol):
    """Opaque byte storage, one value per key"""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> None:
        ...

    def remove(self, key: str) -> None:
        ...
