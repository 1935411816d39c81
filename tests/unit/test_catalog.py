"""Achievement catalog tests — ordering, lookup, load-time validation."""

import pytest

from fitquest.achievements.catalog import (
    ACHIEVEMENT_DATA,
    CATEGORIES,
    AchievementDefinition,
    AchievementCatalog,
    get_catalog,
    load_catalog,
)
from fitquest.errors import ConfigurationError, NotFoundError


class TestDefaultCatalog:
    def test_has_all_fifteen_achievements(self, catalog):
        assert len(catalog) == 15

    def test_categories_grouped_in_order(self, catalog):
        seen = []
        for d in catalog:
            if not seen or seen[-1] != d.category:
                seen.append(d.category)
        assert seen == list(CATEGORIES)

    def test_requirements_ascend_within_category(self, catalog):
        for category in CATEGORIES:
            reqs = [d.requirement for d in catalog if d.category == category]
            assert reqs == sorted(reqs)

    def test_order_stable_across_calls(self, catalog):
        assert [d.id for d in catalog.list_all()] == [d.id for d in catalog.list_all()]
        assert [d.id for d in catalog.list_all()] == [e["id"] for e in ACHIEVEMENT_DATA]

    def test_duration_requirements_are_seconds(self, catalog):
        assert catalog.find_by_id("duration-60").requirement == 3600
        assert catalog.find_by_id("duration-3600").requirement == 216000

    def test_streak_3_values(self, catalog):
        d = catalog.find_by_id("streak-3")
        assert d.name == "Consistency Starter"
        assert d.requirement == 3
        assert d.reward_points == 50

    def test_get_catalog_is_cached(self):
        assert get_catalog() is get_catalog()


class TestLookup:
    def test_find_by_id_unknown_raises(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.find_by_id("streak-999")

    def test_get_unknown_returns_none(self, catalog):
        assert catalog.get("streak-999") is None

    def test_contains(self, catalog):
        assert "variety-3" in catalog
        assert "variety-4" not in catalog

    def test_definitions_are_immutable(self, catalog):
        d = catalog.find_by_id("streak-3")
        with pytest.raises(AttributeError):
            d.reward_points = 1000  # type: ignore[misc]


class TestValidation:
    def _entry(self, **overrides):
        entry = {
            "id": "x-1",
            "name": "X",
            "description": "x",
            "category": "streak",
            "requirement": 1,
            "reward_points": 10,
        }
        entry.update(overrides)
        return entry

    def test_unknown_category_fails_at_load(self):
        with pytest.raises(ConfigurationError, match="unknown category"):
            load_catalog([self._entry(category="speed")])

    def test_duplicate_id_rejected(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            load_catalog([self._entry(), self._entry()])

    def test_zero_requirement_rejected(self):
        with pytest.raises(ConfigurationError):
            load_catalog([self._entry(requirement=0)])

    def test_negative_points_rejected(self):
        with pytest.raises(ConfigurationError):
            load_catalog([self._entry(reward_points=-5)])

    def test_zero_points_allowed(self):
        catalog = load_catalog([self._entry(reward_points=0)])
        assert catalog.find_by_id("x-1").reward_points == 0

    def test_missing_field_rejected(self):
        entry = self._entry()
        del entry["requirement"]
        with pytest.raises(ConfigurationError, match="Malformed"):
            load_catalog([entry])

    def test_catalog_constructor_validates(self):
        bad = AchievementDefinition("x", "X", "x", "variety", 3, 10)
        dup = AchievementDefinition("x", "Y", "y", "variety", 5, 10)
        with pytest.raises(ConfigurationError):
            AchievementCatalog([bad, dup])
