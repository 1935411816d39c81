"""WebSocket endpoint streaming live notification-preference changes."""

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
import structlog

from fitquest.auth.dependencies import resolve_user_id
from fitquest.errors import AuthenticationRequiredError, StorageError
from fitquest.notifications.schemas import NotificationPreferences

logger = structlog.get_logger()

router = APIRouter()


@router.websocket("/ws/preferences")
async def preferences_websocket(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    """Stream the user's notification preferences.

    Protocol:
        Server -> Client:
            {"type": "preferences", "data": {...}}   (initial value, then every change)
            {"type": "pong"}
        Client -> Server:
            {"action": "ping"}
    """
    try:
        user_id = resolve_user_id(token)
    except AuthenticationRequiredError as e:
        await websocket.close(code=4001, reason=f"Authentication failed: {e}")
        return

    await websocket.accept()

    async def send(preferences: NotificationPreferences) -> None:
        await websocket.send_json({"type": "preferences", "data": preferences.model_dump()})

    sync = websocket.app.state.preference_sync
    try:
        subscription = await sync.subscribe(user_id, send)
    except StorageError:
        logger.warning("ws_preferences_fetch_failed", user_id=user_id, exc_info=True)
        await websocket.close(code=1011, reason="Preferences unavailable")
        return
    except WebSocketDisconnect:
        logger.info("ws_preferences_disconnected", user_id=user_id)
        return
    except Exception:
        # subscribe() has already dropped the listener.
        logger.warning("ws_preferences_subscribe_failed", user_id=user_id, exc_info=True)
        return

    logger.info("ws_preferences_connected", user_id=user_id)
    try:
        while True:
            msg = await websocket.receive_json()
            if isinstance(msg, dict) and msg.get("action") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("ws_preferences_error", user_id=user_id)
    finally:
        await subscription.unsubscribe()
        logger.info("ws_preferences_disconnected", user_id=user_id)
