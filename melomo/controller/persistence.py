"""
Key-value persistence for controller state

Every persisted aggregate is one JSON document under its own key:

- ``provider``        active provider raw value ("Apple Music")
- ``userPreferences`` UserPreferences
- ``statistics``      AppStatistics
- ``recentMoods``     list of moods, most recent first
- ``favoriteMoods``   list of moods

Stores deal in opaque bytes. JsonState adds the JSON layer on top and
turns corrupt documents into defaults instead of errors.
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from ..utils.exceptions import StorageError
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')

PROVIDER_KEY = 'provider'
PREFERENCES_KEY = 'userPreferences'
STATISTICS_KEY = 'statistics'
RECENT_MOODS_KEY = 'recentMoods'
FAVORITE_MOODS_KEY = 'favoriteMoods'

_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')


def _check_key(key: str) -> str:
    if not key or not _KEY_PATTERN.match(key) or key.startswith('.'):
        raise StorageError(f"Invalid storage key: {key!r}", details={'key': key})
    return key


class MemoryKeyValueStore:
    """Dictionary-backed store; state lives only as long as the object"""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return sorted(self._data)


class FileKeyValueStore:
    """
    Directory-backed store with one ``<key>.json`` file per key

    Writes go to a temporary file in the same directory which then replaces
    the target, so a crash never leaves a half-written document behind.

    Args:
        directory: State directory, created on first write
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self.directory / f"{_check_key(key)}.json"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}", details={'key': key}) from e

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix='.tmp', dir=str(self.directory))
            try:
                with os.fdopen(fd, 'wb') as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}", details={'key': key}) from e

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}", details={'key': key}) from e

    def keys(self):
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob('*.json'))


class JsonState:
    """
    JSON document layer over a key-value store

    Reads never fail: a missing, unreadable or undecodable document yields
    the supplied default and is logged. Writes propagate StorageError.
    """

    def __init__(self, store):
        self.store = store

    def load(self, key: str, decode: Callable[[Any], T], default: T) -> T:
        try:
            raw = self.store.get(key)
        except StorageError as e:
            logger.warning(f"Could not read '{key}', using defaults: {e}")
            return default

        if raw is None:
            return default

        try:
            return decode(json.loads(raw.decode('utf-8')))
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Stored '{key}' is corrupt, using defaults: {e}")
            return default

    def save(self, key: str, value: Any) -> None:
        data = json.dumps(value, ensure_ascii=False, indent=2).encode('utf-8')
        self.store.set(key, data)
