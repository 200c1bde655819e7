"""Test the bundled mood catalog"""

import random

import pytest

from melomo.moods.catalog import MoodCatalog, asset_name_for, get_catalog, load_catalog
from melomo.moods.models import Mood, MoodCategory
from melomo.utils.exceptions import CatalogError, InvalidMoodError


class TestBundledCatalog:
    """Test the catalog shipped with the package"""

    def test_loads_all_moods(self, catalog):
        assert len(catalog) == 13
        assert [m.id for m in catalog][:3] == ["happy", "hype", "run"]

    def test_ids_are_unique(self, catalog):
        ids = [m.id for m in catalog]
        assert len(ids) == len(set(ids))

    def test_every_mood_has_seeds_and_valid_energy(self, catalog):
        for mood in catalog:
            assert mood.seeds, mood.id
            assert 0.0 <= mood.energy <= 1.0

    def test_happy_record(self, catalog):
        happy = catalog.get("happy")

        assert happy.title == "Happy"
        assert happy.seeds == ("feel good", "pop uplifting", "good vibes", "summer pop", "dance pop")
        assert happy.energy == 0.9
        assert happy.category == MoodCategory.ENERGETIC
        assert happy.popularity == 5

    def test_shared_instance(self):
        assert get_catalog() is get_catalog()


class TestCatalogQueries:
    """Test catalog filters and lookups"""

    def test_by_category(self, catalog):
        relaxed = catalog.by_category(MoodCategory.RELAXED)
        assert [m.title for m in relaxed] == ["Chill", "Sunny", "Magical", "Night"]

    def test_popular(self, catalog):
        popular = catalog.popular(4)

        assert all(m.popularity >= 4 for m in popular)
        assert {m.id for m in popular} == {"happy", "hype", "chill", "sunny", "focus", "throwback"}

    def test_by_energy_is_inclusive(self, catalog):
        moods = catalog.by_energy(0.8, 1.0)
        assert {m.id for m in moods} == {"happy", "hype", "run", "adventure"}

    def test_find_by_id_or_title(self, catalog):
        assert catalog.find("chill").title == "Chill"
        assert catalog.find("  THROWBACK ").id == "throwback"

    def test_find_unknown_mood(self, catalog):
        with pytest.raises(InvalidMoodError) as exc_info:
            catalog.find("grumpy")

        assert exc_info.value.message == "Invalid mood selection. Please try again."

    def test_random_skips_excluded(self, catalog):
        rng = random.Random(1)
        excluded = [m for m in catalog if m.id != "night"]

        for _ in range(10):
            assert catalog.random(exclude=excluded, rng=rng).id == "night"

    def test_random_falls_back_to_whole_catalog(self, catalog):
        mood = catalog.random(exclude=list(catalog), rng=random.Random(3))
        assert mood in catalog

    def test_random_empty_catalog(self):
        assert MoodCatalog([]).random() is None

    def test_categories_in_catalog_order(self, catalog):
        assert catalog.categories() == [
            MoodCategory.ENERGETIC,
            MoodCategory.RELAXED,
            MoodCategory.EMOTIONAL,
            MoodCategory.FOCUSED,
            MoodCategory.SOCIAL,
        ]


class TestCatalogLoading:
    """Test loading catalog files"""

    def test_duplicate_ids_rejected(self):
        mood = Mood(id="same", emoji="x", title="A")
        with pytest.raises(CatalogError):
            MoodCatalog([mood, Mood(id="same", emoji="y", title="B")])

    def test_malformed_record(self, temp_dir):
        path = temp_dir / "moods.yaml"
        path.write_text("moods:\n  - id: broken\n    energy: 2.0\n    title: Broken\n", encoding="utf-8")

        with pytest.raises(CatalogError):
            load_catalog(path)

    def test_missing_file(self, temp_dir):
        with pytest.raises(CatalogError):
            load_catalog(temp_dir / "nope.yaml")

    def test_custom_file(self, temp_dir):
        path = temp_dir / "moods.yaml"
        path.write_text(
            "moods:\n"
            "  - id: rainy\n"
            "    title: Rainy\n"
            "    emoji: '🌧️'\n"
            "    seeds: [rain, lofi]\n"
            "    energy: 0.3\n"
            "    category: Chill\n",
            encoding="utf-8",
        )

        catalog = load_catalog(path)

        assert catalog.find("Rainy").category == MoodCategory.CHILL


class TestAssetNames:
    """Test the mood artwork lookup"""

    def test_known_mood(self, catalog):
        assert asset_name_for(catalog.get("chill")) == "Chill"

    def test_unknown_mood_uses_image_name(self):
        assert asset_name_for(Mood(id="rainy", emoji="x", title="Rainy", image_name="Rain")) == "Rain"

    def test_unknown_mood_without_image(self):
        assert asset_name_for(Mood(id="rainy", emoji="x", title="Rainy")) == "happy"
