"""Integration: preference WebSocket stream."""

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from fitquest.auth.jwt import create_access_token
from fitquest.main import create_app
from fitquest.notifications.sync import LocalPreferenceBroker, PreferenceSync


class _NoopSession:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


@pytest.fixture
def ws_client(monkeypatch):
    import fitquest.notifications.sync as sync_module

    async def no_stored_row(db, user_id):
        return None

    monkeypatch.setattr(sync_module, "fetch_preferences", no_stored_row)
    app = create_app()
    app.state.preference_sync = PreferenceSync(LocalPreferenceBroker(), _NoopSession)
    return TestClient(app)


class TestPreferencesWebSocket:
    def test_bad_token_closes_4001(self, ws_client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with ws_client.websocket_connect("/ws/preferences?token=bad"):
                pass
        assert exc_info.value.code == 4001

    def test_initial_preferences_and_ping(self, ws_client):
        token = create_access_token("ws-user")
        with ws_client.websocket_connect(f"/ws/preferences?token={token}") as ws:
            first = ws.receive_json()
            assert first["type"] == "preferences"
            assert first["data"]["user_id"] == "ws-user"
            assert first["data"]["milestone_notifications"] is True

            ws.send_json({"action": "ping"})
            assert ws.receive_json() == {"type": "pong"}
