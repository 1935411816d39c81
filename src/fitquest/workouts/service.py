"""Workout completion recording.

Recording a completion is the primary action; achievement evaluation
layered on top is best-effort and never fails the completion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.achievements.catalog import AchievementCatalog, AchievementDefinition
from fitquest.achievements.engine import AchievementEngine
from fitquest.db.models import Workout, WorkoutProgress
from fitquest.errors import FitQuestError, NotFoundError, translate_storage_errors

logger = logging.getLogger(__name__)


@dataclass
class CompletionResult:
    progress: WorkoutProgress
    new_achievements: list[AchievementDefinition] = field(default_factory=list)


async def get_workout(db: AsyncSession, workout_id: str) -> Workout:
    with translate_storage_errors("load workout"):
        result = await db.execute(select(Workout).where(Workout.id == workout_id))
        workout = result.scalar_one_or_none()
    if workout is None:
        raise NotFoundError(f"Workout not found: {workout_id}")
    return workout


async def record_workout_completion(
    db: AsyncSession,
    catalog: AchievementCatalog,
    user_id: str,
    workout_id: str,
    duration_seconds: int,
    completed_at: datetime | None = None,
    rating: int | None = None,
    notes: str | None = None,
    redis: object | None = None,
) -> CompletionResult:
    """Persist a completed workout, then evaluate achievements best-effort."""
    await get_workout(db, workout_id)

    progress = WorkoutProgress(
        user_id=user_id,
        workout_id=workout_id,
        completed_at=completed_at or datetime.now(timezone.utc),
        duration_seconds=max(duration_seconds, 0),
        rating=rating,
        notes=notes,
    )
    with translate_storage_errors("record workout completion"):
        db.add(progress)
        await db.commit()
    # Detach so a rollback below cannot expire the committed row.
    db.expunge(progress)

    completion = CompletionResult(progress=progress)
    engine = AchievementEngine(db, catalog, redis)
    try:
        completion.new_achievements = await engine.evaluate_and_award(user_id)
    except (FitQuestError, SQLAlchemyError):
        await db.rollback()
        logger.warning(
            "Achievement evaluation failed after workout %s for user %s",
            workout_id, user_id, exc_info=True,
        )
    return completion
