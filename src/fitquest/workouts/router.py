"""Workout completion endpoint."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.achievements.catalog import AchievementCatalog, get_catalog
from fitquest.achievements.schemas import (
    AchievementDefinitionResponse,
    CompleteWorkoutRequest,
    CompleteWorkoutResponse,
)
from fitquest.auth.dependencies import get_current_user_id
from fitquest.database import get_session
from fitquest.redis_client import get_optional_redis
from fitquest.workouts.service import record_workout_completion

router = APIRouter(prefix="/api/v1", tags=["Workouts"])


@router.post("/workouts/{workout_id}/complete", response_model=CompleteWorkoutResponse, status_code=201)
async def complete_workout(
    workout_id: str,
    body: CompleteWorkoutRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    catalog: AchievementCatalog = Depends(get_catalog),
):
    """Record a completed workout and award any achievements it unlocks."""
    result = await record_workout_completion(
        db,
        catalog,
        user_id,
        workout_id,
        duration_seconds=body.duration_seconds,
        completed_at=body.completed_at,
        rating=body.rating,
        notes=body.notes,
        redis=get_optional_redis(),
    )
    return CompleteWorkoutResponse(
        progress_id=str(result.progress.id),
        workout_id=result.progress.workout_id,
        completed_at=result.progress.completed_at,
        new_achievements=[AchievementDefinitionResponse(**asdict(d)) for d in result.new_achievements],
    )
