# =============================================================================
# app/websocket/__init__.py - WebSocket Module
# =============================================================================
# Real-time notifications for clients and makers.
#
# Usage:
#   # Deliver events returned by a service (from FastAPI routes)
#   from app.websocket import dispatch_events
#   bid, events = BidService.accept_bid(user.id, bid_id)
#   await dispatch_events(events)
#
#   # Publish events from Celery workers
#   from app.websocket.broadcast import publish_file_analyzed
#   publish_file_analyzed(owner_id, project_id, file_id, analysis)
# =============================================================================

from app.websocket.manager import websocket_manager
from app.websocket.broadcast import (
    dispatch_events,
    publish_event,
    publish_file_analyzed,
    redis_pubsub_listener,
    WEBSOCKET_CHANNEL,
)

__all__ = [
    "websocket_manager",
    "dispatch_events",
    "publish_event",
    "publish_file_analyzed",
    "redis_pubsub_listener",
    "WEBSOCKET_CHANNEL",
]
