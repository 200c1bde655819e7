"""
Mood catalog loading and queries

The catalog is a fixed, read-only collection of moods bundled with the
package as ``catalog.yaml``. It is loaded once and shared; queries never
mutate it.
"""

import random
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

import yaml

from .models import Mood, MoodCategory
from ..utils.exceptions import CatalogError, InvalidMoodError
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "catalog.yaml"

# Artwork asset per mood id; moods outside the table use their own image name
ASSET_NAMES: Dict[str, str] = {
    'happy': 'happy',
    'chill': 'Chill',
    'hype': 'Hype',
    'heartbreak': 'heartbreak',
    'moody': 'Moody',
    'sunny': 'sunny',
    'focus': 'Focus',
    'run': 'Run',
    'throwback': 'Throwback',
    'magical': 'Magical',
    'adventure': 'Adventure',
    'night': 'Night',
    'dramatic': 'Dramatic',
}

DEFAULT_ASSET_NAME = 'happy'


def asset_name_for(mood: Mood) -> str:
    """Resolve the artwork asset name for a mood"""
    return ASSET_NAMES.get(mood.id) or mood.image_name or DEFAULT_ASSET_NAME


class MoodCatalog:
    """
    Immutable collection of moods with lookup and filter queries

    Order is preserved from the source file and is the order shown to the
    user.
    """

    def __init__(self, moods: Iterable[Mood]):
        self._moods = tuple(moods)
        self._by_id: Dict[str, Mood] = {}

        for mood in self._moods:
            if mood.id in self._by_id:
                raise CatalogError(f"Duplicate mood id in catalog: {mood.id}")
            self._by_id[mood.id] = mood

    def __iter__(self) -> Iterator[Mood]:
        return iter(self._moods)

    def __len__(self) -> int:
        return len(self._moods)

    def __contains__(self, mood: object) -> bool:
        return isinstance(mood, Mood) and mood.id in self._by_id

    @property
    def moods(self) -> List[Mood]:
        return list(self._moods)

    def get(self, mood_id: str) -> Optional[Mood]:
        return self._by_id.get(mood_id)

    def find(self, name: str) -> Mood:
        """
        Resolve user input to a mood

        Matches the mood id first, then the title case-insensitively.

        Args:
            name: Mood id or title

        Returns:
            Matching mood

        Raises:
            InvalidMoodError: If nothing matches
        """
        needle = name.strip().lower()
        if not needle:
            raise InvalidMoodError(details={'mood': name})

        mood = self._by_id.get(needle)
        if mood:
            return mood

        for mood in self._moods:
            if mood.title.lower() == needle:
                return mood

        raise InvalidMoodError(details={'mood': name})

    def by_category(self, category: MoodCategory) -> List[Mood]:
        return [mood for mood in self._moods if mood.category == category]

    def popular(self, threshold: int = 4) -> List[Mood]:
        return [mood for mood in self._moods if mood.popularity >= threshold]

    def by_energy(self, minimum: float, maximum: float) -> List[Mood]:
        """Moods whose energy lies within [minimum, maximum]"""
        return [mood for mood in self._moods if minimum <= mood.energy <= maximum]

    def categories(self) -> List[MoodCategory]:
        """Categories that have at least one mood, in catalog order"""
        seen: List[MoodCategory] = []
        for mood in self._moods:
            if mood.category not in seen:
                seen.append(mood.category)
        return seen

    def random(self, exclude: Iterable[Mood] = (), rng: Optional[random.Random] = None) -> Optional[Mood]:
        """
        Pick a mood uniformly at random

        Moods in ``exclude`` are skipped unless every mood is excluded, in
        which case the whole catalog is used.

        Returns:
            A mood, or None for an empty catalog
        """
        if not self._moods:
            return None

        rng = rng or random.Random()
        excluded_ids = {mood.id for mood in exclude}
        candidates = [mood for mood in self._moods if mood.id not in excluded_ids]
        return rng.choice(candidates or list(self._moods))


def load_catalog(path: Optional[Path] = None) -> MoodCatalog:
    """
    Load a mood catalog from a YAML file

    Args:
        path: Catalog file; defaults to the bundled catalog

    Returns:
        Loaded catalog

    Raises:
        CatalogError: If the file cannot be read or a record is malformed
    """
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH

    try:
        with open(catalog_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise CatalogError(f"Failed to load mood catalog from {catalog_path}: {e}") from e

    records = data.get('moods', []) if isinstance(data, dict) else []
    moods = []
    for index, record in enumerate(records):
        try:
            moods.append(Mood.from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(
                f"Invalid mood record #{index} in {catalog_path}: {e}",
                details={'record': record}
            ) from e

    logger.debug(f"Loaded {len(moods)} moods from {catalog_path}")
    return MoodCatalog(moods)


_catalog: Optional[MoodCatalog] = None


def get_catalog() -> MoodCatalog:
    """Get the shared bundled catalog, loading it on first use"""
    global _catalog
    if _catalog is None:
        _catalog = load_catalog()
    return _catalog
