"""Pure achievement evaluation — no I/O."""

from __future__ import annotations

from collections.abc import Collection

from fitquest.achievements.catalog import AchievementCatalog, AchievementDefinition
from fitquest.achievements.stats import WorkoutStats

# category -> WorkoutStats field
CATEGORY_STAT = {
    "streak": "current_streak_days",
    "duration": "total_duration_seconds",
    "difficulty": "advanced_difficulty_completions",
    "variety": "unique_exercises_count",
}


def stat_for_category(stats: WorkoutStats, category: str) -> int:
    return getattr(stats, CATEGORY_STAT[category])


def evaluate(
    catalog: AchievementCatalog,
    stats: WorkoutStats,
    already_earned: Collection[str],
) -> list[AchievementDefinition]:
    """Return achievements newly qualified for, in catalog order.

    Skips anything in ``already_earned``. Repeated calls with the same
    inputs return the same result.
    """
    earned = set(already_earned)
    return [
        definition
        for definition in catalog
        if definition.id not in earned
        and stat_for_category(stats, definition.category) >= definition.requirement
    ]


def progress_towards(catalog: AchievementCatalog, stats: WorkoutStats) -> dict[str, float]:
    """Fraction (0.0–1.0) of each achievement's requirement currently met."""
    return {
        definition.id: min(stat_for_category(stats, definition.category) / definition.requirement, 1.0)
        for definition in catalog
    }
