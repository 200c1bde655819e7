"""
Mood-driven catalog search with escalating fallback strategies

Given a mood, this module produces a non-empty list of candidate songs from
the catalog or fails with NoResultsFoundError. Three strategies are tried
strictly in order, stopping at the first one that returns anything:

1. **Seeds**: all search seeds joined with " OR "
2. **Title**: "<mood title> music"
3. **Genre**: a broad genre query picked from the mood's category and energy

A failure inside one strategy (network error, rejected query) is logged and
treated like an empty result, so the next strategy still runs. Only
exhaustion of all three is surfaced to the caller.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from ..moods.models import CatalogSong, Mood, MoodCategory
from ..utils.exceptions import NoResultsFoundError
from ..utils.logger import get_logger
from .client import MAX_SEARCH_LIMIT

logger = get_logger(__name__)

SEED_SEPARATOR = " OR "

STRATEGY_SEEDS = "seeds"
STRATEGY_TITLE = "title"
STRATEGY_GENRE = "genre"

HIGH_ENERGY_THRESHOLD = 0.8

GENRE_QUERIES = {
    MoodCategory.RELAXED: "chill indie ambient",
    MoodCategory.CHILL: "chill indie ambient",
    MoodCategory.EMOTIONAL: "indie ballad emotional",
    MoodCategory.MELANCHOLY: "indie ballad emotional",
    MoodCategory.FOCUSED: "instrumental focus classical",
    MoodCategory.SOCIAL: "party pop dance",
}

DEFAULT_GENRE_QUERY = "popular music"


def build_seed_query(mood: Mood) -> str:
    """Join the mood's seeds into one disjunctive query"""
    return SEED_SEPARATOR.join(seed for seed in mood.seeds if seed.strip())


def build_title_query(mood: Mood) -> str:
    return f"{mood.title} music"


def broad_genre_query(mood: Mood) -> str:
    """
    Pick the broad genre query for a mood

    Energetic moods split on energy: above 0.8 they get "upbeat pop dance",
    otherwise "pop rock". Other categories use a fixed table.
    """
    if mood.category == MoodCategory.ENERGETIC:
        return "upbeat pop dance" if mood.energy > HIGH_ENERGY_THRESHOLD else "pop rock"
    return GENRE_QUERIES.get(mood.category, DEFAULT_GENRE_QUERY)


@dataclass
class SearchOutcome:
    """
    Result of a successful mood search

    Attributes:
        songs: Non-empty list of candidate songs (at most 25)
        strategy: Name of the strategy that produced them
        query: Query string that produced them
        attempts: Every query tried, in order, including the successful one
    """
    songs: List[CatalogSong]
    strategy: str
    query: str
    attempts: List[str] = field(default_factory=list)


class MoodSearcher:
    """
    Runs the three search strategies against a catalog search backend

    The backend only needs an ``async search(query, limit)`` method; see
    CatalogSearch in melomo.controller.interfaces.
    """

    def __init__(self, backend, limit: int = MAX_SEARCH_LIMIT):
        self.backend = backend
        self.limit = max(1, min(limit, MAX_SEARCH_LIMIT))

    def strategies(self, mood: Mood) -> List[Tuple[str, str]]:
        """
        Ordered (strategy, query) pairs for a mood

        The seed strategy is left out when the mood has no usable seeds.
        """
        plan = []
        seed_query = build_seed_query(mood)
        if seed_query:
            plan.append((STRATEGY_SEEDS, seed_query))
        plan.append((STRATEGY_TITLE, build_title_query(mood)))
        plan.append((STRATEGY_GENRE, broad_genre_query(mood)))
        return plan

    async def _run_strategy(self, strategy: str, query: str) -> List[CatalogSong]:
        try:
            songs = await self.backend.search(query, self.limit)
        except Exception as e:
            logger.warning(f"Search strategy '{strategy}' failed for '{query}': {e}")
            return []

        return list(songs or [])[:self.limit]

    async def find_songs(self, mood: Mood) -> SearchOutcome:
        """
        Find candidate songs for a mood

        Args:
            mood: Mood to search for

        Returns:
            SearchOutcome from the first strategy that returned songs

        Raises:
            NoResultsFoundError: If every strategy came back empty
        """
        attempts: List[str] = []

        for strategy, query in self.strategies(mood):
            attempts.append(query)
            logger.debug(f"Searching '{mood.title}' with {strategy} strategy: {query}")

            songs = await self._run_strategy(strategy, query)
            if songs:
                logger.debug(f"{strategy} strategy found {len(songs)} songs for '{mood.title}'")
                return SearchOutcome(songs=songs, strategy=strategy, query=query, attempts=attempts)

            logger.debug(f"{strategy} strategy found nothing for '{mood.title}'")

        raise NoResultsFoundError(details={'mood': mood.title, 'queries': attempts})

