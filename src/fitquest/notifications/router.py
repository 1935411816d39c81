"""Notification and notification-preference API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fitquest.auth.dependencies import get_current_user_id
from fitquest.config import get_settings
from fitquest.database import get_session
from fitquest.errors import StorageError
from fitquest.notifications.preferences import get_preferences, update_preferences
from fitquest.notifications.schemas import (
    NotificationListResponse,
    NotificationPreferences,
    NotificationResponse,
    UnreadCountResponse,
    UpdatePreferencesRequest,
)
from fitquest.notifications.service import (
    get_notifications,
    get_unread_count,
    mark_all_as_read,
    mark_as_read,
)
from fitquest.notifications.sync import PreferenceSync

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Notifications"])


def get_preference_sync(request: Request) -> PreferenceSync:
    return request.app.state.preference_sync


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1, le=100),
    unread_only: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """List user's notifications (paginated, newest first)."""
    per_page = per_page or get_settings().notifications_page_size
    notifications, total = await get_notifications(db, user_id, page, per_page, unread_only)
    return NotificationListResponse(
        notifications=[
            NotificationResponse(
                id=str(n.id),
                type=n.type,
                title=n.title,
                message=n.message,
                data=n.data or {},
                read=n.read,
                created_at=n.created_at,
            )
            for n in notifications
        ],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
async def get_unread_notification_count(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Get unread notification count."""
    return UnreadCountResponse(unread_count=await get_unread_count(db, user_id))


@router.post("/notifications/read-all", status_code=200)
async def mark_all_read(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Mark all notifications as read."""
    count = await mark_all_as_read(db, user_id)
    await db.commit()
    return {"detail": f"Marked {count} notifications as read"}


@router.post("/notifications/{notification_id}/read", status_code=200)
async def mark_notification_read(
    notification_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Mark a notification as read."""
    found = await mark_as_read(db, user_id, notification_id)
    if not found:
        raise HTTPException(status_code=404, detail="Notification not found")
    await db.commit()
    return {"detail": "Notification marked as read"}


@router.get("/notifications/preferences", response_model=NotificationPreferences)
async def read_preferences(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Get notification preferences (created with defaults on first read)."""
    preferences = await get_preferences(db, user_id)
    await db.commit()
    return preferences


@router.patch("/notifications/preferences", response_model=NotificationPreferences)
async def patch_preferences(
    body: UpdatePreferencesRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    sync: PreferenceSync = Depends(get_preference_sync),
):
    """Update some notification preferences and broadcast the change."""
    preferences = await update_preferences(db, user_id, body.model_dump(exclude_none=True))
    await db.commit()
    try:
        await sync.publish(preferences)
    except StorageError:
        # Saved; live subscribers catch up on their next fetch.
        logger.warning("Failed to publish preference change for user %s", user_id, exc_info=True)
    return preferences
