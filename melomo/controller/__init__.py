"""
Generation orchestrator and its collaborators

    controller = MusicController(search, player, auth, opener, store)
    await controller.refresh_authorization_status()
    await controller.generate(mood)
    print(controller.state.last_generated_link)
"""

from .feedback import Feedback
from .music_controller import MusicController
from .persistence import FileKeyValueStore, MemoryKeyValueStore

__all__ = [
    'Feedback',
    'MusicController',
    'FileKeyValueStore',
    'MemoryKeyValueStore'
]
