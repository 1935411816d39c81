"""Reward point aggregation."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.achievements.award_service import get_earned_ids
from fitquest.achievements.catalog import AchievementCatalog


def total_points(catalog: AchievementCatalog, earned_ids: Iterable[str]) -> int:
    """Sum reward points over distinct earned ids; unknown ids count as zero."""
    total = 0
    for achievement_id in set(earned_ids):
        definition = catalog.get(achievement_id)
        if definition is not None:
            total += definition.reward_points
    return total


async def get_total_points(db: AsyncSession, catalog: AchievementCatalog, user_id: str) -> int:
    """Total reward points for a user's earned achievements."""
    return total_points(catalog, await get_earned_ids(db, user_id))
