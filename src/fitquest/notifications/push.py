"""Push formatted notifications over Redis pub/sub for per-user WebSocket delivery."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fitquest.db.models import Notification

logger = logging.getLogger(__name__)


def user_channel(user_id: str) -> str:
    return f"ws:user:{user_id}"


def notification_payload(notification: "Notification") -> dict:
    return {
        "id": str(notification.id),
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data or {},
        "read": notification.read,
        "created_at": (
            notification.created_at.isoformat()
            if notification.created_at
            else None
        ),
    }


async def push_notification_to_user(redis: object | None, notification: "Notification") -> None:
    """Publish a formatted notification to ws:user:{user_id}.

    The notification must already be flushed (have an ``id``). Publishing
    is best-effort: failures are logged, never raised.
    """
    if redis is None:
        return

    ws_payload = {"event": "notification", "data": notification_payload(notification)}
    try:
        await redis.publish(  # type: ignore[union-attr]
            user_channel(notification.user_id),
            json.dumps(ws_payload),
        )
    except Exception:
        logger.warning(
            "Failed to push notification via ws:user:%s",
            notification.user_id,
            exc_info=True,
        )
