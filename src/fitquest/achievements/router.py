"""Achievement API endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.achievements.catalog import AchievementCatalog, AchievementDefinition, get_catalog
from fitquest.achievements.engine import AchievementEngine
from fitquest.achievements.schemas import (
    AchievementDefinitionResponse,
    AchievementStatusResponse,
    AllAchievementsResponse,
    EarnedAchievementResponse,
    EvaluateResponse,
    PointsResponse,
    UnearnedAchievementResponse,
    WorkoutStatsResponse,
)
from fitquest.auth.dependencies import get_current_user_id
from fitquest.database import get_session
from fitquest.redis_client import get_optional_redis

router = APIRouter(prefix="/api/v1", tags=["Achievements"])


def _definition(d: AchievementDefinition) -> AchievementDefinitionResponse:
    return AchievementDefinitionResponse(**asdict(d))


@router.get("/achievements", response_model=AllAchievementsResponse)
async def list_achievements(catalog: AchievementCatalog = Depends(get_catalog)):
    """All achievement definitions in catalog order."""
    return AllAchievementsResponse(achievements=[_definition(d) for d in catalog])


@router.get("/achievements/me", response_model=AchievementStatusResponse)
async def my_achievements(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    catalog: AchievementCatalog = Depends(get_catalog),
):
    """Earned and unearned achievements with progress and total points."""
    status = await AchievementEngine(db, catalog).get_status(user_id)
    return AchievementStatusResponse(
        earned=[
            EarnedAchievementResponse(**asdict(d), earned_at=record.earned_at)
            for d, record in status.earned
        ],
        unearned=[
            UnearnedAchievementResponse(**asdict(d), progress=status.progress.get(d.id, 0.0))
            for d in status.unearned
        ],
        total_points=status.total_points,
        stats=WorkoutStatsResponse(**asdict(status.stats)),
    )


@router.get("/achievements/me/points", response_model=PointsResponse)
async def my_points(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    catalog: AchievementCatalog = Depends(get_catalog),
):
    """Total reward points."""
    return PointsResponse(total_points=await AchievementEngine(db, catalog).get_total_points(user_id))


@router.post("/achievements/me/evaluate", response_model=EvaluateResponse)
async def evaluate_my_achievements(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    catalog: AchievementCatalog = Depends(get_catalog),
):
    """Evaluate current stats and award newly earned achievements."""
    engine = AchievementEngine(db, catalog, get_optional_redis())
    awarded = await engine.evaluate_and_award(user_id)
    return EvaluateResponse(
        new_achievements=[_definition(d) for d in awarded],
        total_points=await engine.get_total_points(user_id),
    )
