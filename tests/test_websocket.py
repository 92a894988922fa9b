# =============================================================================
# tests/test_websocket.py - Real-time Delivery Tests
# =============================================================================
# Connection manager bookkeeping, in-process dispatch, Redis relay parsing
# and the authenticated /ws endpoint.
# =============================================================================

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.config import settings
from app.main import app
from app.websocket import broadcast
from app.websocket.manager import ConnectionManager
from core.models.notification import EventType, NotificationEvent
from tests.conftest import make_token


class FakeSocket:
    """Records what the manager sends; optionally fails like a dead peer."""

    def __init__(self, broken: bool = False):
        self.sent: list[dict] = []
        self.accepted = False
        self.broken = broken

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.broken:
            raise RuntimeError("connection closed")
        self.sent.append(message)


class TestConnectionManager:
    """Tests for ConnectionManager."""

    def test_send_to_all_user_connections(self):
        # Arrange
        manager = ConnectionManager()
        tab_a, tab_b, someone_else = FakeSocket(), FakeSocket(), FakeSocket()
        asyncio.run(manager.connect("u1", tab_a))
        manager.register("u1", tab_b)
        manager.register("u2", someone_else)

        # Act
        sent = asyncio.run(manager.send_to_user("u1", {"type": "new_bid"}))

        # Assert
        assert tab_a.accepted is True
        assert sent == 2
        assert tab_a.sent == tab_b.sent == [{"type": "new_bid"}]
        assert someone_else.sent == []

    def test_dead_connections_are_dropped(self):
        manager = ConnectionManager()
        alive, dead = FakeSocket(), FakeSocket(broken=True)
        manager.register("u1", alive)
        manager.register("u1", dead)

        sent = asyncio.run(manager.send_to_user("u1", {"type": "x"}))

        assert sent == 1
        assert manager.get_connection_count("u1") == 1
        assert manager.get_connection_count() == 1

    def test_offline_user(self):
        assert asyncio.run(ConnectionManager().send_to_user("nobody", {"type": "x"})) == 0

    def test_disconnect_unknown_socket_is_ignored(self):
        manager = ConnectionManager()
        manager.disconnect("u1", FakeSocket())
        assert manager.get_active_users() == []


class TestDispatch:
    """Event delivery from API routes and the Redis relay."""

    @pytest.fixture
    def local_manager(self, monkeypatch):
        manager = ConnectionManager()
        monkeypatch.setattr(broadcast, "websocket_manager", manager)
        monkeypatch.setattr(settings, "NOTIFICATIONS_VIA_REDIS", False)
        return manager

    def test_dispatch_in_process(self, local_manager):
        socket = FakeSocket()
        local_manager.register("u1", socket)
        event = NotificationEvent.create(EventType.NEW_BID, "u1", project_id="p1")

        asyncio.run(broadcast.dispatch_events([event]))

        assert socket.sent == [event.to_message()]

    def test_dispatch_never_raises(self, local_manager, monkeypatch):
        async def explode(user_id, message):
            raise RuntimeError("boom")

        monkeypatch.setattr(local_manager, "send_to_user", explode)
        event = NotificationEvent.create(EventType.NEW_BID, "u1", project_id="p1")

        asyncio.run(broadcast.dispatch_events([event]))

    def test_relay_strips_recipient(self, local_manager):
        socket = FakeSocket()
        local_manager.register("u1", socket)
        event = NotificationEvent.create(EventType.BID_REJECTED, "u1", project_id="p1")

        delivered = asyncio.run(broadcast.deliver_message(broadcast.encode_event(event)))

        assert delivered == 1
        assert socket.sent == [event.to_message()]

    def test_relay_ignores_garbage(self, local_manager):
        assert asyncio.run(broadcast.deliver_message("not json")) == 0
        assert asyncio.run(broadcast.deliver_message(json.dumps({"type": "x"}))) == 0


class TestWebSocketEndpoint:
    """The /ws endpoint authenticates with the access token."""

    def test_connect_and_ping(self):
        user_id = str(uuid4())
        client = TestClient(app)

        with client.websocket_connect(f"/ws?token={make_token(user_id)}") as ws:
            hello = ws.receive_json()
            assert hello["type"] == "connected"
            assert hello["user_id"] == user_id

            ws.send_text("ping")
            assert ws.receive_text() == "pong"

    def test_invalid_token_is_refused(self):
        client = TestClient(app)
        bad_token = make_token(str(uuid4()), secret="not-the-right-secret-0123456789abcdef")

        with client.websocket_connect(f"/ws?token={bad_token}") as ws:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_json()

        assert exc_info.value.code == 4001

    def test_missing_token_is_refused(self):
        client = TestClient(app)

        with client.websocket_connect("/ws") as ws:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_json()

        assert exc_info.value.code == 4001

    def test_expired_token_is_refused(self):
        client = TestClient(app)
        expired = make_token(str(uuid4()), expires_in=-60)

        with client.websocket_connect(f"/ws?token={expired}") as ws:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_json()

        assert exc_info.value.code == 4001


class TestRedisPublishing:
    """Publishing through Redis, with the Redis client mocked."""

    def test_publish_event(self):
        event = NotificationEvent.create(EventType.PROJECT_FILE_ANALYZED, "u1", project_id="p1")
        fake_redis = MagicMock()

        with patch.object(broadcast, "get_redis_client", return_value=fake_redis):
            assert broadcast.publish_event(event) is True

        fake_redis.publish.assert_called_once_with(broadcast.WEBSOCKET_CHANNEL, broadcast.encode_event(event))

    def test_publish_failure_is_reported(self):
        fake_redis = MagicMock()
        fake_redis.publish.side_effect = ConnectionError("redis down")
        event = NotificationEvent.create(EventType.NEW_BID, "u1", project_id="p1")

        with patch.object(broadcast, "get_redis_client", return_value=fake_redis):
            assert broadcast.publish_event(event) is False

    def test_dispatch_via_redis(self, monkeypatch):
        monkeypatch.setattr(settings, "NOTIFICATIONS_VIA_REDIS", True)
        fake_redis = AsyncMock()
        events = [
            NotificationEvent.create(EventType.BID_ACCEPTED, "u1", project_id="p1"),
            NotificationEvent.create(EventType.BID_REJECTED, "u2", project_id="p1"),
        ]

        with patch.object(broadcast, "get_async_redis_client", return_value=fake_redis):
            asyncio.run(broadcast.dispatch_events(events))

        assert fake_redis.publish.await_count == 2
        fake_redis.aclose.assert_awaited_once()
