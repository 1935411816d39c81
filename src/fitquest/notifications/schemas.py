"""Pydantic schemas for notifications and notification preferences."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class NotificationPreferences(BaseModel):
    """Per-category notification gates. All default to on."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    user_id: str
    achievement_notifications: bool = True
    friend_request_notifications: bool = True
    friend_activity_notifications: bool = True
    streak_notifications: bool = True
    milestone_notifications: bool = True


class UpdatePreferencesRequest(BaseModel):
    """Partial update: omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    achievement_notifications: bool | None = None
    friend_request_notifications: bool | None = None
    friend_activity_notifications: bool | None = None
    streak_notifications: bool | None = None
    milestone_notifications: bool | None = None


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    title: str
    message: str
    data: dict[str, Any] = {}
    read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int
    page: int
    per_page: int


class UnreadCountResponse(BaseModel):
    unread_count: int
