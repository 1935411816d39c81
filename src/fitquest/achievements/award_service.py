"""Achievement award store with duplicate prevention.

Uniqueness is enforced by the UNIQUE(user_id, achievement_id) constraint:
the insert uses ON CONFLICT DO NOTHING, so two concurrent evaluations
for the same user can both attempt the award and exactly one row is
written. The loser reads back the winner's record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.achievements.catalog import AchievementCatalog
from fitquest.db.models import UserAchievement
from fitquest.errors import translate_storage_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AwardResult:
    """Outcome of an award attempt.

    ``created`` is False when the achievement had already been earned;
    ``earned`` is then the original record.
    """

    earned: UserAchievement
    created: bool


def upsert_insert(db: AsyncSession):
    """Dialect-specific ``insert`` supporting ON CONFLICT clauses."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def get_earned(db: AsyncSession, user_id: str, achievement_id: str) -> UserAchievement | None:
    result = await db.execute(
        select(UserAchievement).where(
            UserAchievement.user_id == user_id,
            UserAchievement.achievement_id == achievement_id,
        )
    )
    return result.scalar_one_or_none()


async def get_earned_achievements(db: AsyncSession, user_id: str) -> list[UserAchievement]:
    """All achievements a user holds, oldest first."""
    with translate_storage_errors("load earned achievements"):
        result = await db.execute(
            select(UserAchievement)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.earned_at.asc(), UserAchievement.id.asc())
        )
        return list(result.scalars().all())


async def get_earned_ids(db: AsyncSession, user_id: str) -> set[str]:
    with translate_storage_errors("load earned achievement ids"):
        result = await db.execute(
            select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
        )
        return {row[0] for row in result}


async def award_achievement(
    db: AsyncSession,
    catalog: AchievementCatalog,
    user_id: str,
    achievement_id: str,
    at: datetime | None = None,
) -> AwardResult:
    """Record that ``user_id`` earned ``achievement_id``, at most once.

    Raises NotFoundError for ids missing from the catalog and
    StorageError when the database is unreachable. Does not commit.
    """
    catalog.find_by_id(achievement_id)
    earned_at = at or datetime.now(timezone.utc)

    insert = upsert_insert(db)
    stmt = (
        insert(UserAchievement)
        .values(user_id=user_id, achievement_id=achievement_id, earned_at=earned_at)
        .on_conflict_do_nothing(index_elements=["user_id", "achievement_id"])
    )

    with translate_storage_errors("award achievement"):
        result = await db.execute(stmt)
        created = result.rowcount == 1
        record = await get_earned(db, user_id, achievement_id)

    if record is None:
        # Row vanished between insert and read; awards are never deleted.
        msg = f"Award for {user_id}/{achievement_id} not readable after insert"
        raise RuntimeError(msg)

    if created:
        logger.info("Awarded achievement %s to user %s", achievement_id, user_id)
    else:
        logger.debug("Achievement %s already earned by user %s", achievement_id, user_id)

    return AwardResult(earned=record, created=created)
