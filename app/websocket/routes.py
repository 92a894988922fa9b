# =============================================================================
# app/websocket/routes.py - WebSocket Routes
# =============================================================================
# Real-time notification channel, one per signed-in user.
#
# Connect: ws://host/ws?token={jwt}
#
# Events (see core/models/notification.py):
#   {"type": "new_bid", "data": {...}, "invalidate": [[...], ...]}
#   bid_accepted, bid_rejected, bid_updated, bid_deleted,
#   delivery_confirmed, new_message, project_file_analyzed
# =============================================================================

import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query

from app.auth.dependencies import TokenError, decode_access_token
from app.websocket.manager import websocket_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def notifications_websocket(
    websocket: WebSocket,
    token: str | None = Query(default=None, description="Supabase access token")
):
    """
    WebSocket endpoint for a user's notifications.

    The user id comes from the verified token, never from the client.
    Invalid tokens are refused with close code 4001. Sending the text
    "ping" returns "pong".
    """
    try:
        if not token:
            raise TokenError("Missing token")
        user = decode_access_token(token)
    except TokenError as e:
        logger.warning(f"WebSocket auth failed: {e}")
        # Accept first so the client receives the 4001 close code
        await websocket.accept()
        await websocket.close(code=4001, reason="Invalid token")
        return

    user_id = str(user.id)
    await websocket_manager.connect(user_id, websocket)

    try:
        await websocket.send_json({
            "type": "connected",
            "user_id": user_id,
            "message": "Connected to notifications"
        })

        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
            else:
                logger.debug(f"WebSocket received: {data[:100]}")

    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected for user {user_id}")
    finally:
        websocket_manager.disconnect(user_id, websocket)


@router.get("/ws/status")
async def websocket_status():
    """Connection statistics of this API process."""
    active_users = websocket_manager.get_active_users()
    return {
        "total_connections": websocket_manager.get_connection_count(),
        "active_users": len(active_users),
    }
