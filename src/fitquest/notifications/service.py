"""Notification dispatch and inbox service.

Notifications are:
1. Gated by the user's notification preferences, read at dispatch time
2. Persisted in the database
3. Pushed to the user via WebSocket (Redis pub/sub) by the caller,
   with push_notification_to_user, once the row is committed

Types: achievement, friend_request, friend_activity, streak, milestone
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.db.models import Notification
from fitquest.errors import translate_storage_errors
from fitquest.notifications.preferences import VALID_TYPES, get_preferences, should_deliver

logger = logging.getLogger(__name__)


async def notify(
    db: AsyncSession,
    user_id: str,
    type_: str,
    title: str,
    message: str,
    data: dict[str, Any] | None = None,
) -> Notification | None:
    """Create a notification unless the user's preferences suppress it.

    Returns None when suppressed. Does not commit or push.
    """
    if type_ not in VALID_TYPES:
        raise ValueError(f"Invalid notification type: {type_}. Must be one of {sorted(VALID_TYPES)}")

    preferences = await get_preferences(db, user_id)
    if not should_deliver(preferences, type_):
        logger.debug("Suppressed %s notification for user %s", type_, user_id)
        return None

    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        data=data or {},
        read=False,
        created_at=datetime.now(timezone.utc),
    )
    with translate_storage_errors("create notification"):
        db.add(notification)
        await db.flush()
    return notification


async def notify_friend_request(
    db: AsyncSession, user_id: str, from_user_id: str, from_name: str
) -> Notification | None:
    return await notify(
        db, user_id, "friend_request",
        title="New friend request",
        message=f"{from_name} sent you a friend request",
        data={"from_user_id": from_user_id},
    )


async def notify_friend_activity(
    db: AsyncSession, user_id: str, friend_id: str, friend_name: str, activity: str
) -> Notification | None:
    return await notify(
        db, user_id, "friend_activity",
        title="Friend activity",
        message=f"{friend_name} {activity}",
        data={"friend_id": friend_id},
    )


async def notify_streak(db: AsyncSession, user_id: str, streak_days: int) -> Notification | None:
    return await notify(
        db, user_id, "streak",
        title=f"{streak_days}-day streak!",
        message=f"You've worked out {streak_days} days in a row. Keep it going!",
        data={"streak_days": streak_days},
    )


async def notify_milestone(
    db: AsyncSession, user_id: str, title: str, message: str, data: dict[str, Any] | None = None,
) -> Notification | None:
    return await notify(db, user_id, "milestone", title=title, message=message, data=data)


async def get_notifications(
    db: AsyncSession,
    user_id: str,
    page: int = 1,
    per_page: int = 20,
    unread_only: bool = False,
) -> tuple[list[Notification], int]:
    """Get user's notifications (paginated, most recent first)."""
    offset = (page - 1) * per_page
    filters = [Notification.user_id == user_id]
    if unread_only:
        filters.append(Notification.read.is_(False))

    with translate_storage_errors("list notifications"):
        total_result = await db.execute(
            select(func.count()).select_from(Notification).where(*filters)
        )
        total = total_result.scalar_one()

        result = await db.execute(
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(per_page)
        )
        notifications = list(result.scalars().all())
    return notifications, total


async def mark_as_read(db: AsyncSession, user_id: str, notification_id: int) -> bool:
    """Mark a single notification as read. Returns True if found."""
    with translate_storage_errors("mark notification read"):
        result = await db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(read=True)
        )
        await db.flush()
    return result.rowcount > 0


async def mark_all_as_read(db: AsyncSession, user_id: str) -> int:
    """Mark all unread notifications as read. Returns count updated."""
    with translate_storage_errors("mark all notifications read"):
        result = await db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        await db.flush()
    return result.rowcount


async def get_unread_count(db: AsyncSession, user_id: str) -> int:
    """Get count of unread notifications."""
    with translate_storage_errors("count unread notifications"):
        result = await db.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
        )
        return result.scalar_one()
