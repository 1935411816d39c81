"""Workout statistics snapshot used by the achievement evaluator.

Streak rules:
  - A streak counts consecutive calendar days (UTC) with at least one workout.
  - The current streak is alive only if the most recent workout was today
    or yesterday; otherwise it is 0.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.db.models import Workout, WorkoutProgress
from fitquest.errors import translate_storage_errors

ADVANCED_DIFFICULTY = "advanced"


@dataclass(frozen=True)
class WorkoutStats:
    """Cumulative workout statistics for one user."""

    total_workouts: int = 0
    total_duration_seconds: int = 0
    current_streak_days: int = 0
    unique_exercises_count: int = 0
    advanced_difficulty_completions: int = 0
    best_streak_days: int = 0


@dataclass(frozen=True)
class CompletedWorkout:
    """The fields of a completion row the aggregator needs."""

    workout_id: str
    completed_at: datetime
    duration_seconds: int
    difficulty: str | None = None


def _to_utc_date(dt: datetime) -> date:
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone(timezone.utc).date()


def compute_current_streak(days: set[date], today: date) -> int:
    """Count consecutive days ending at the most recent workout day."""
    if not days:
        return 0
    latest = max(days)
    if (today - latest).days > 1:
        return 0
    streak = 0
    check = latest
    while check in days:
        streak += 1
        check -= timedelta(days=1)
    return streak


def compute_best_streak(days: set[date]) -> int:
    """Longest run of consecutive workout days."""
    if not days:
        return 0
    ordered = sorted(days)
    best = current = 1
    for prev, curr in zip(ordered, ordered[1:]):
        current = current + 1 if (curr - prev).days == 1 else 1
        best = max(best, current)
    return best


def compute_workout_stats(workouts: Iterable[CompletedWorkout], today: date | None = None) -> WorkoutStats:
    """Aggregate completion rows into a WorkoutStats snapshot."""
    if today is None:
        today = datetime.now(timezone.utc).date()

    rows = list(workouts)
    days = {_to_utc_date(w.completed_at) for w in rows}
    return WorkoutStats(
        total_workouts=len(rows),
        total_duration_seconds=sum(max(w.duration_seconds, 0) for w in rows),
        current_streak_days=compute_current_streak(days, today),
        unique_exercises_count=len({w.workout_id for w in rows}),
        advanced_difficulty_completions=sum(1 for w in rows if w.difficulty == ADVANCED_DIFFICULTY),
        best_streak_days=compute_best_streak(days),
    )


async def get_workout_stats(db: AsyncSession, user_id: str, today: date | None = None) -> WorkoutStats:
    """Load a user's completions and compute their stats."""
    with translate_storage_errors("load workout stats"):
        result = await db.execute(
            select(
                WorkoutProgress.workout_id,
                WorkoutProgress.completed_at,
                WorkoutProgress.duration_seconds,
                Workout.difficulty,
            )
            .outerjoin(Workout, Workout.id == WorkoutProgress.workout_id)
            .where(WorkoutProgress.user_id == user_id)
        )
        rows = [
            CompletedWorkout(
                workout_id=row.workout_id,
                completed_at=row.completed_at,
                duration_seconds=row.duration_seconds,
                difficulty=row.difficulty,
            )
            for row in result
        ]
    return compute_workout_stats(rows, today)
