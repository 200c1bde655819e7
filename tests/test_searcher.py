"""Test the escalating mood search strategies"""

import pytest

from melomo.applemusic.searcher import (
    STRATEGY_GENRE,
    STRATEGY_SEEDS,
    STRATEGY_TITLE,
    MoodSearcher,
    broad_genre_query,
    build_seed_query,
)
from melomo.moods.models import Mood, MoodCategory
from melomo.utils.exceptions import NetworkError, NoResultsFoundError


def mood_with(category, energy=0.5, seeds=("a", "b")):
    return Mood(id="m", emoji="x", title="Test", seeds=list(seeds), energy=energy, category=category)


class TestQueries:
    """Test query construction"""

    def test_seed_query(self, happy_mood):
        assert build_seed_query(happy_mood) == "feel good OR pop uplifting"

    def test_seed_query_skips_blank_seeds(self):
        assert build_seed_query(mood_with(MoodCategory.GENERAL, seeds=("lofi", " ", "jazz"))) == "lofi OR jazz"

    @pytest.mark.parametrize("category,energy,expected", [
        (MoodCategory.ENERGETIC, 0.9, "upbeat pop dance"),
        (MoodCategory.ENERGETIC, 0.8, "pop rock"),
        (MoodCategory.RELAXED, 0.3, "chill indie ambient"),
        (MoodCategory.CHILL, 0.3, "chill indie ambient"),
        (MoodCategory.EMOTIONAL, 0.2, "indie ballad emotional"),
        (MoodCategory.MELANCHOLY, 0.2, "indie ballad emotional"),
        (MoodCategory.FOCUSED, 0.2, "instrumental focus classical"),
        (MoodCategory.SOCIAL, 0.7, "party pop dance"),
        (MoodCategory.ROMANTIC, 0.5, "popular music"),
        (MoodCategory.GENERAL, 0.5, "popular music"),
    ])
    def test_broad_genre_query(self, category, energy, expected):
        assert broad_genre_query(mood_with(category, energy)) == expected


@pytest.mark.asyncio
class TestFindSongs:
    """Test strategy ordering and fallbacks"""

    async def test_first_strategy_wins(self, fake_search, happy_mood, make_song):
        fake_search.responses["feel good OR pop uplifting"] = [make_song(1), make_song(2)]

        outcome = await MoodSearcher(fake_search).find_songs(happy_mood)

        assert outcome.strategy == STRATEGY_SEEDS
        assert len(outcome.songs) == 2
        assert [q for q, _ in fake_search.queries] == ["feel good OR pop uplifting"]

    async def test_title_fallback(self, fake_search, happy_mood, make_song):
        """Seeds come back empty, the title query finds three songs"""
        fake_search.responses["Happy music"] = [make_song(1), make_song(2), make_song(3)]

        outcome = await MoodSearcher(fake_search).find_songs(happy_mood)

        assert outcome.strategy == STRATEGY_TITLE
        assert outcome.query == "Happy music"
        assert [q for q, _ in fake_search.queries] == ["feel good OR pop uplifting", "Happy music"]

    async def test_genre_fallback(self, fake_search, happy_mood, make_song):
        fake_search.responses["upbeat pop dance"] = [make_song(1)]

        outcome = await MoodSearcher(fake_search).find_songs(happy_mood)

        assert outcome.strategy == STRATEGY_GENRE
        assert outcome.attempts == ["feel good OR pop uplifting", "Happy music", "upbeat pop dance"]

    async def test_failed_strategy_is_skipped(self, fake_search, happy_mood, make_song):
        """A network failure in one strategy does not stop the next"""
        fake_search.responses["feel good OR pop uplifting"] = NetworkError()
        fake_search.responses["Happy music"] = [make_song(1)]

        outcome = await MoodSearcher(fake_search).find_songs(happy_mood)

        assert outcome.strategy == STRATEGY_TITLE

    async def test_all_strategies_empty(self, fake_search, happy_mood):
        with pytest.raises(NoResultsFoundError) as exc_info:
            await MoodSearcher(fake_search).find_songs(happy_mood)

        assert len(fake_search.queries) == 3
        assert exc_info.value.message == "No music found for this mood. Try a different mood or search terms."

    async def test_all_strategies_failing(self, fake_search, happy_mood):
        for query in ("feel good OR pop uplifting", "Happy music", "upbeat pop dance"):
            fake_search.responses[query] = RuntimeError("offline")

        with pytest.raises(NoResultsFoundError):
            await MoodSearcher(fake_search).find_songs(happy_mood)

    async def test_mood_without_seeds_starts_with_title(self, fake_search, make_song):
        mood = mood_with(MoodCategory.FOCUSED, seeds=())
        fake_search.responses["Test music"] = [make_song(1)]

        outcome = await MoodSearcher(fake_search).find_songs(mood)

        assert outcome.strategy == STRATEGY_TITLE
        assert [q for q, _ in fake_search.queries] == ["Test music"]

    async def test_results_capped(self, fake_search, happy_mood, make_song):
        fake_search.responses["feel good OR pop uplifting"] = [make_song(i) for i in range(40)]

        outcome = await MoodSearcher(fake_search).find_songs(happy_mood)

        assert len(outcome.songs) == 25
        assert all(limit == 25 for _, limit in fake_search.queries)

    async def test_limit_never_above_25(self, fake_search, happy_mood, make_song):
        fake_search.responses["feel good OR pop uplifting"] = [make_song(1)]

        await MoodSearcher(fake_search, limit=100).find_songs(happy_mood)

        assert fake_search.queries[0][1] == 25
