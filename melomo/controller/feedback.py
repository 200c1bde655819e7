"""
User feedback signals

The controller emits a Feedback value whenever the user should get a
tactile or visual cue (mood picked, playlist ready, warning, error...).
Front ends subscribe with ``add_listener`` and decide how to render it.
"""

from enum import Enum
from typing import Callable, List

from ..utils.logger import get_logger

logger = get_logger(__name__)


class Feedback(Enum):
    MOOD_SELECTED = "mood_selected"
    PLAYLIST_GENERATED = "playlist_generated"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    BUSY = "busy"
    LIGHT = "light"


FeedbackListener = Callable[[Feedback], None]


class FeedbackDispatcher:
    """Delivers feedback signals to registered listeners in registration order"""

    def __init__(self):
        self._listeners: List[FeedbackListener] = []

    def add_listener(self, listener: FeedbackListener) -> Callable[[], None]:
        """
        Register a listener

        Returns:
            Callable that unregisters the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def emit(self, signal: Feedback) -> None:
        logger.debug(f"Feedback: {signal.value}")
        for listener in list(self._listeners):
            try:
                listener(signal)
            except Exception:
                logger.exception(f"Feedback listener failed for {signal.value}")
