"""WebSocket tests for the staff access realtime channel."""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.api.v1 import realtime as realtime_endpoint
from app.db.session import get_db
from app.main import app
from app.models.staff_approval import StaffAccessStatus
from app.services.realtime import ChangeEvent, RealtimeChannel, get_realtime_channel

URL = "/api/v1/realtime/staff-access"


class PendingStatusService:
    """Stands in for the access request service inside the socket handler."""

    def __init__(self, session, channel=None) -> None:
        pass

    async def current_status(self, user_id: str) -> StaffAccessStatus:
        return StaffAccessStatus.PENDING


@pytest.fixture
def ws_client(channel: RealtimeChannel, monkeypatch):
    async def override_get_db():
        yield MagicMock()

    monkeypatch.setattr(realtime_endpoint, "AccessRequestService", PendingStatusService)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_realtime_channel] = lambda: channel
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def token_for(make_headers):
    def _token_for(user_id: str) -> str:
        return make_headers(user_id)["Authorization"].removeprefix("Bearer ")

    return _token_for


def test_snapshot_then_own_changes(
    ws_client: TestClient, channel: RealtimeChannel, token_for
) -> None:
    user_id = str(uuid4())

    with ws_client.websocket_connect(f"{URL}?token={token_for(user_id)}") as websocket:
        assert websocket.receive_json() == {"type": "snapshot", "status": "pending"}

        event = ChangeEvent(
            table="staff_approval_requests",
            operation="UPDATE",
            new_row={"id": "r1", "user_id": user_id, "status": "approved"},
        )
        delivered = ws_client.portal.call(channel.publish, event)

        assert delivered == 1
        assert websocket.receive_json() == {
            "table": "staff_approval_requests",
            "operation": "UPDATE",
            "newRow": {"id": "r1", "user_id": user_id, "status": "approved"},
        }


def test_other_users_changes_are_not_forwarded(
    ws_client: TestClient, channel: RealtimeChannel, token_for
) -> None:
    user_id = str(uuid4())

    with ws_client.websocket_connect(f"{URL}?token={token_for(user_id)}") as websocket:
        websocket.receive_json()

        foreign = ChangeEvent(
            table="notifications",
            operation="INSERT",
            new_row={"id": "n1", "user_id": str(uuid4())},
        )
        notification_update = ChangeEvent(
            table="notifications",
            operation="UPDATE",
            new_row={"id": "n2", "user_id": user_id},
        )

        assert ws_client.portal.call(channel.publish, foreign) == 0
        assert ws_client.portal.call(channel.publish, notification_update) == 0


def test_subscriptions_released_on_disconnect(
    ws_client: TestClient, channel: RealtimeChannel, token_for
) -> None:
    with ws_client.websocket_connect(f"{URL}?token={token_for(str(uuid4()))}") as websocket:
        websocket.receive_json()
        assert channel.subscriber_count == 2

    assert channel.subscriber_count == 0


@pytest.mark.parametrize("query", ["", "?token=not-a-jwt"])
def test_unauthenticated_socket_is_closed(ws_client: TestClient, query: str) -> None:
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with ws_client.websocket_connect(f"{URL}{query}") as websocket:
            websocket.receive_json()

    assert exc_info.value.code == 1008
