"""Achievement catalog — the immutable, ordered list of achievement definitions.

Built once at startup via ``load_catalog()`` and passed by reference to
the evaluator, points aggregator and engine. Order is insertion order:
streak, duration, difficulty, variety, each with ascending requirement.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from fitquest.errors import ConfigurationError, NotFoundError

CATEGORIES = ("streak", "duration", "difficulty", "variety")

HOUR = 60 * 60

ACHIEVEMENT_DATA: list[dict] = [
    # Streak
    {
        "id": "streak-3",
        "name": "Consistency Starter",
        "description": "Complete workouts for 3 days in a row",
        "category": "streak",
        "requirement": 3,
        "reward_points": 50,
    },
    {
        "id": "streak-7",
        "name": "Week Warrior",
        "description": "Complete workouts for 7 days in a row",
        "category": "streak",
        "requirement": 7,
        "reward_points": 100,
    },
    {
        "id": "streak-14",
        "name": "Fortnight Fighter",
        "description": "Complete workouts for 14 days in a row",
        "category": "streak",
        "requirement": 14,
        "reward_points": 200,
    },
    {
        "id": "streak-30",
        "name": "Monthly Master",
        "description": "Complete workouts for 30 days in a row",
        "category": "streak",
        "requirement": 30,
        "reward_points": 500,
    },
    # Duration (requirement in seconds)
    {
        "id": "duration-60",
        "name": "Hour Crusher",
        "description": "Accumulate 1 hour of total workout time",
        "category": "duration",
        "requirement": 1 * HOUR,
        "reward_points": 50,
    },
    {
        "id": "duration-300",
        "name": "Five Hour Force",
        "description": "Accumulate 5 hours of total workout time",
        "category": "duration",
        "requirement": 5 * HOUR,
        "reward_points": 100,
    },
    {
        "id": "duration-1200",
        "name": "Day Dedicator",
        "description": "Accumulate 20 hours of total workout time",
        "category": "duration",
        "requirement": 20 * HOUR,
        "reward_points": 300,
    },
    {
        "id": "duration-3600",
        "name": "Workout Warrior",
        "description": "Accumulate 60 hours of total workout time",
        "category": "duration",
        "requirement": 60 * HOUR,
        "reward_points": 500,
    },
    # Difficulty
    {
        "id": "difficulty-1",
        "name": "Challenge Accepted",
        "description": "Complete 1 advanced difficulty workout",
        "category": "difficulty",
        "requirement": 1,
        "reward_points": 50,
    },
    {
        "id": "difficulty-5",
        "name": "Difficulty Dominator",
        "description": "Complete 5 advanced difficulty workouts",
        "category": "difficulty",
        "requirement": 5,
        "reward_points": 100,
    },
    {
        "id": "difficulty-15",
        "name": "Expert Exerciser",
        "description": "Complete 15 advanced difficulty workouts",
        "category": "difficulty",
        "requirement": 15,
        "reward_points": 300,
    },
    {
        "id": "difficulty-30",
        "name": "Elite Athlete",
        "description": "Complete 30 advanced difficulty workouts",
        "category": "difficulty",
        "requirement": 30,
        "reward_points": 500,
    },
    # Variety
    {
        "id": "variety-3",
        "name": "Variety Beginner",
        "description": "Try 3 different workouts",
        "category": "variety",
        "requirement": 3,
        "reward_points": 50,
    },
    {
        "id": "variety-10",
        "name": "Variety Enthusiast",
        "description": "Try 10 different workouts",
        "category": "variety",
        "requirement": 10,
        "reward_points": 100,
    },
    {
        "id": "variety-20",
        "name": "Variety Master",
        "description": "Try 20 different workouts",
        "category": "variety",
        "requirement": 20,
        "reward_points": 300,
    },
]


@dataclass(frozen=True)
class AchievementDefinition:
    """A named milestone with a numeric requirement and point reward."""

    id: str
    name: str
    description: str
    category: str
    requirement: int
    reward_points: int


class AchievementCatalog:
    """Read-only, ordered collection of achievement definitions."""

    def __init__(self, definitions: Iterable[AchievementDefinition]) -> None:
        self._definitions: tuple[AchievementDefinition, ...] = tuple(definitions)
        self._by_id: dict[str, AchievementDefinition] = {}
        for definition in self._definitions:
            _validate(definition)
            if definition.id in self._by_id:
                raise ConfigurationError(f"Duplicate achievement id: {definition.id}")
            self._by_id[definition.id] = definition

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[AchievementDefinition]:
        return iter(self._definitions)

    def __contains__(self, achievement_id: object) -> bool:
        return achievement_id in self._by_id

    def list_all(self) -> tuple[AchievementDefinition, ...]:
        """All definitions in catalog order."""
        return self._definitions

    def get(self, achievement_id: str) -> AchievementDefinition | None:
        return self._by_id.get(achievement_id)

    def find_by_id(self, achievement_id: str) -> AchievementDefinition:
        """Look up a definition, raising NotFoundError for unknown ids."""
        definition = self._by_id.get(achievement_id)
        if definition is None:
            raise NotFoundError(f"Achievement not found: {achievement_id}")
        return definition


def _validate(definition: AchievementDefinition) -> None:
    if not definition.id:
        raise ConfigurationError("Achievement id must be non-empty")
    if definition.category not in CATEGORIES:
        raise ConfigurationError(
            f"Achievement {definition.id}: unknown category {definition.category!r}"
        )
    if isinstance(definition.requirement, bool) or not isinstance(definition.requirement, int):
        raise ConfigurationError(f"Achievement {definition.id}: requirement must be an integer")
    if definition.requirement < 1:
        raise ConfigurationError(f"Achievement {definition.id}: requirement must be >= 1")
    if isinstance(definition.reward_points, bool) or not isinstance(definition.reward_points, int):
        raise ConfigurationError(f"Achievement {definition.id}: reward_points must be an integer")
    if definition.reward_points < 0:
        raise ConfigurationError(f"Achievement {definition.id}: reward_points must be >= 0")


def load_catalog(entries: Iterable[Mapping[str, Any]] = ACHIEVEMENT_DATA) -> AchievementCatalog:
    """Build a validated catalog from raw entries.

    Raises ConfigurationError on any malformed entry.
    """
    definitions = []
    for entry in entries:
        try:
            definitions.append(AchievementDefinition(**entry))
        except TypeError as exc:
            raise ConfigurationError(f"Malformed achievement entry {entry!r}: {exc}") from exc
    return AchievementCatalog(definitions)


@lru_cache
def get_catalog() -> AchievementCatalog:
    """Process-wide default catalog (FastAPI dependency)."""
    return load_catalog()
