# =============================================================================
# app/websocket/manager.py - WebSocket Connection Manager
# =============================================================================
# Tracks WebSocket connections per user and delivers events to them.
#
# Usage:
#   from app.websocket import websocket_manager
#
#   await websocket_manager.connect(user_id, websocket)
#   await websocket_manager.send_to_user(user_id, {"type": "new_bid", ...})
#   websocket_manager.disconnect(user_id, websocket)
# =============================================================================

import logging
from typing import Dict, Set
from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Manages WebSocket connections organized by user id.

    A user can be connected from several tabs or devices at once; every
    event addressed to them goes to all of their sockets.
    """

    def __init__(self):
        # user_id -> set of WebSocket connections
        self.connections: Dict[str, Set[WebSocket]] = {}
        self._total_connections = 0

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        """Accept a new WebSocket connection and track it."""
        await websocket.accept()
        self.register(user_id, websocket)

    def register(self, user_id: str, websocket: WebSocket) -> None:
        """Track an already accepted connection."""
        self.connections.setdefault(user_id, set()).add(websocket)
        self._total_connections += 1

        logger.info(
            f"WebSocket connected for user {user_id}. "
            f"Total connections: {self._total_connections}"
        )

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        """Stop tracking a connection. Unknown connections are ignored."""
        sockets = self.connections.get(user_id)
        if sockets is None or websocket not in sockets:
            return

        sockets.discard(websocket)
        self._total_connections -= 1
        if not sockets:
            del self.connections[user_id]

        logger.info(
            f"WebSocket disconnected for user {user_id}. "
            f"Total connections: {self._total_connections}"
        )

    async def send_to_user(self, user_id: str, message: dict) -> int:
        """
        Send a message to every connection of a user.

        Connections that fail are dropped.

        Returns:
            int: Number of connections the message was sent to
        """
        sockets = self.connections.get(user_id)
        if not sockets:
            logger.debug(f"User {user_id} is offline, dropping {message.get('type')}")
            return 0

        dead_connections: Set[WebSocket] = set()
        sent_count = 0

        for websocket in list(sockets):
            try:
                await websocket.send_json(message)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Failed to send to WebSocket: {e}")
                dead_connections.add(websocket)

        for ws in dead_connections:
            self.disconnect(user_id, ws)

        if dead_connections:
            logger.info(f"Cleaned up {len(dead_connections)} dead connections")

        logger.debug(
            f"Sent to user {user_id}: "
            f"type={message.get('type')}, delivered to {sent_count} connections"
        )
        return sent_count

    def get_connection_count(self, user_id: str | None = None) -> int:
        """Number of connections for one user, or in total."""
        if user_id:
            return len(self.connections.get(user_id, set()))
        return self._total_connections

    def get_active_users(self) -> list[str]:
        """User ids with at least one open connection."""
        return list(self.connections.keys())


# Global singleton instance
websocket_manager = ConnectionManager()
