"""Achievement engine — evaluates a user's workout stats and awards achievements."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.achievements.award_service import award_achievement, get_earned_achievements, get_earned_ids
from fitquest.achievements.catalog import AchievementCatalog, AchievementDefinition
from fitquest.achievements.evaluator import evaluate, progress_towards
from fitquest.achievements.points import total_points
from fitquest.achievements.stats import WorkoutStats, get_workout_stats
from fitquest.db.models import UserAchievement
from fitquest.errors import AuthenticationRequiredError, StorageError, translate_storage_errors
from fitquest.notifications.push import push_notification_to_user
from fitquest.notifications.service import notify

logger = logging.getLogger(__name__)


@dataclass
class AchievementStatus:
    """A user's earned and unearned achievements with progress."""

    earned: list[tuple[AchievementDefinition, UserAchievement]]
    unearned: list[AchievementDefinition]
    total_points: int
    stats: WorkoutStats
    progress: dict[str, float] = field(default_factory=dict)


class AchievementEngine:
    """Evaluates and awards achievements for one user at a time."""

    def __init__(self, db: AsyncSession, catalog: AchievementCatalog, redis: object | None = None) -> None:
        self.db = db
        self.catalog = catalog
        self.redis = redis

    async def evaluate_and_award(self, user_id: str | None) -> list[AchievementDefinition]:
        """Award every achievement the user newly qualifies for.

        Returns the definitions awarded by this call (may be empty). Each
        award is committed before its notification is attempted; a failed
        notification never undoes or blocks the award.
        """
        if not user_id:
            raise AuthenticationRequiredError("evaluate_and_award requires a user id")

        stats = await get_workout_stats(self.db, user_id)
        already_earned = await get_earned_ids(self.db, user_id)
        candidates = evaluate(self.catalog, stats, already_earned)
        if not candidates:
            return []

        awarded: list[AchievementDefinition] = []
        for definition in candidates:
            result = await award_achievement(
                self.db, self.catalog, user_id, definition.id, datetime.now(timezone.utc)
            )
            if not result.created:
                # A concurrent evaluation got there first.
                continue
            with translate_storage_errors("commit award"):
                await self.db.commit()
            awarded.append(definition)
            await self._notify_earned(user_id, definition)

        if awarded:
            logger.info(
                "User %s earned %d achievement(s): %s",
                user_id, len(awarded), [d.id for d in awarded],
            )
        return awarded

    async def _notify_earned(self, user_id: str, definition: AchievementDefinition) -> None:
        """Best-effort achievement notification, pushed only once committed."""
        try:
            notification = await notify(
                self.db,
                user_id,
                "achievement",
                title=f'Achievement Unlocked: "{definition.name}"',
                message=f"+{definition.reward_points} points \u2014 {definition.description}",
                data={
                    "achievement_id": definition.id,
                    "category": definition.category,
                    "reward_points": definition.reward_points,
                },
            )
            await self.db.commit()
        except (StorageError, SQLAlchemyError):
            await self.db.rollback()
            logger.warning(
                "Failed to notify user %s of achievement %s", user_id, definition.id, exc_info=True
            )
            return

        if notification is not None:
            await push_notification_to_user(self.redis, notification)

    async def get_total_points(self, user_id: str) -> int:
        return total_points(self.catalog, await get_earned_ids(self.db, user_id))

    async def get_status(self, user_id: str) -> AchievementStatus:
        """Earned/unearned split in catalog order, with points and progress."""
        records = {r.achievement_id: r for r in await get_earned_achievements(self.db, user_id)}
        stats = await get_workout_stats(self.db, user_id)

        earned = [(d, records[d.id]) for d in self.catalog if d.id in records]
        unearned = [d for d in self.catalog if d.id not in records]
        return AchievementStatus(
            earned=earned,
            unearned=unearned,
            total_points=total_points(self.catalog, records),
            stats=stats,
            progress=progress_towards(self.catalog, stats),
        )
