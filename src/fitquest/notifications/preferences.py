"""Notification preference storage.

A user's row is created lazily with all-true defaults the first time it
is read. Only the owning user updates it; rows are never deleted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.achievements.award_service import upsert_insert
from fitquest.db.models import NotificationPreference
from fitquest.errors import translate_storage_errors
from fitquest.notifications.schemas import NotificationPreferences

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS = (
    "achievement_notifications",
    "friend_request_notifications",
    "friend_activity_notifications",
    "streak_notifications",
    "milestone_notifications",
)

# notification type -> preference flag
TYPE_PREFERENCE = {
    "achievement": "achievement_notifications",
    "friend_request": "friend_request_notifications",
    "friend_activity": "friend_activity_notifications",
    "streak": "streak_notifications",
    "milestone": "milestone_notifications",
}

VALID_TYPES = frozenset(TYPE_PREFERENCE)


def default_preferences(user_id: str) -> NotificationPreferences:
    return NotificationPreferences(user_id=user_id)


def should_deliver(preferences: NotificationPreferences, type_: str) -> bool:
    """Check whether a notification of ``type_`` passes the user's gates."""
    return bool(getattr(preferences, TYPE_PREFERENCE[type_]))


def _to_schema(row: NotificationPreference) -> NotificationPreferences:
    return NotificationPreferences.model_validate(row)


async def fetch_preferences(db: AsyncSession, user_id: str) -> NotificationPreferences | None:
    """Read the stored row without creating it. None if absent."""
    with translate_storage_errors("fetch notification preferences"):
        result = await db.execute(
            select(NotificationPreference)
            .where(NotificationPreference.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
    return _to_schema(row) if row is not None else None


async def get_preferences(db: AsyncSession, user_id: str) -> NotificationPreferences:
    """Get a user's preferences, creating the default row if absent. Does not commit."""
    existing = await fetch_preferences(db, user_id)
    if existing is not None:
        return existing

    insert = upsert_insert(db)
    stmt = (
        insert(NotificationPreference)
        .values(user_id=user_id, updated_at=datetime.now(timezone.utc), **dict.fromkeys(PREFERENCE_FIELDS, True))
        .on_conflict_do_nothing(index_elements=["user_id"])
    )
    with translate_storage_errors("create notification preferences"):
        await db.execute(stmt)

    created = await fetch_preferences(db, user_id)
    if created is None:
        msg = f"Notification preferences for {user_id} not readable after insert"
        raise RuntimeError(msg)
    logger.debug("Created default notification preferences for %s", user_id)
    return created


async def update_preferences(
    db: AsyncSession,
    user_id: str,
    changes: Mapping[str, bool],
) -> NotificationPreferences:
    """Apply a partial update and return the full stored preferences. Does not commit."""
    unknown = set(changes) - set(PREFERENCE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown preference fields: {sorted(unknown)}")
    for key, value in changes.items():
        if not isinstance(value, bool):
            raise ValueError(f"Preference {key} must be a boolean")

    now = datetime.now(timezone.utc)
    values = {**dict.fromkeys(PREFERENCE_FIELDS, True), **changes}

    insert = upsert_insert(db)
    stmt = insert(NotificationPreference).values(user_id=user_id, updated_at=now, **values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={**changes, "updated_at": now},
    )
    with translate_storage_errors("update notification preferences"):
        await db.execute(stmt)

    updated = await fetch_preferences(db, user_id)
    if updated is None:
        msg = f"Notification preferences for {user_id} not readable after update"
        raise RuntimeError(msg)
    return updated
