# =============================================================================
# core/models/notification.py - Real-time Notification Events
# =============================================================================
# Services describe "who should hear about what" by returning
# NotificationEvent objects; the app layer delivers them over WebSockets.
#
# Every event carries the list of client query-cache keys the receiver should
# invalidate, so the front end refetches exactly what changed.
#
# Wire format (one JSON object per event):
#   {"type": "new_bid", "data": {...}, "invalidate": [["/api/projects", "<id>", "bids"], ...]}
# =============================================================================

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class EventType(str, Enum):
    NEW_BID = "new_bid"
    BID_ACCEPTED = "bid_accepted"
    BID_REJECTED = "bid_rejected"
    BID_UPDATED = "bid_updated"
    BID_DELETED = "bid_deleted"
    DELIVERY_CONFIRMED = "delivery_confirmed"
    NEW_MESSAGE = "new_message"
    PROJECT_FILE_ANALYZED = "project_file_analyzed"


QueryKey = list[str]


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Decimal, datetime)):
        return str(value)
    return value


def invalidation_keys(event_type: EventType, data: dict[str, Any]) -> list[QueryKey]:
    """Query-cache keys a receiver must drop after `event_type`."""
    project_id = str(data.get("project_id") or "")
    project = ["/api/projects", project_id]

    if event_type == EventType.NEW_BID:
        return [
            ["/api/projects/my-projects"],
            ["/api/projects/stats"],
            ["/api/projects/total-unread-bids"],
            project + ["bids"],
            project + ["unread-bid-count"],
        ]
    if event_type == EventType.BID_ACCEPTED:
        return [
            ["/api/projects/available"],
            ["/api/bids/my-bids"],
            ["/api/bids/stats"],
            project,
            project + ["bids"],
            project + ["my-bid"],
        ]
    if event_type == EventType.BID_REJECTED:
        return [
            ["/api/projects/available"],
            ["/api/bids/my-bids"],
            ["/api/bids/stats"],
            project + ["bids"],
            project + ["my-bid"],
        ]
    if event_type in (EventType.BID_UPDATED, EventType.BID_DELETED):
        return [
            project + ["bids"],
            ["/api/projects/my-projects"],
            ["/api/projects/total-unread-bids"],
        ]
    if event_type == EventType.DELIVERY_CONFIRMED:
        return [
            ["/api/bids/my-bids"],
            ["/api/bids/stats"],
            ["/api/projects/my-bids"],
            project,
            project + ["bids"],
            project + ["check-rating-by-maker"],
        ]
    if event_type == EventType.NEW_MESSAGE:
        context_id = str(data.get("project_id") or data.get("marketplace_design_id") or "")
        return [
            ["/api/messages", str(data.get("context_type", "")), context_id, str(data.get("sender_id", ""))],
            ["/api/my-conversations-full"],
        ]
    if event_type == EventType.PROJECT_FILE_ANALYZED:
        return [project, project + ["files"]]
    return []


class NotificationEvent(BaseModel):
    """A typed event addressed to one user."""
    user_id: str = Field(..., description="Recipient user id")
    type: EventType
    data: dict[str, Any] = Field(default_factory=dict)
    invalidate: list[QueryKey] = Field(default_factory=list)

    @classmethod
    def create(cls, event_type: EventType, user_id: Any, **data: Any) -> "NotificationEvent":
        """Build an event, stringifying ids and deriving cache keys."""
        clean = {key: _plain(value) for key, value in data.items()}
        return cls(
            user_id=str(user_id),
            type=event_type,
            data=clean,
            invalidate=invalidation_keys(event_type, clean),
        )

    def to_message(self) -> dict[str, Any]:
        """Payload sent to the WebSocket client (recipient is implicit)."""
        return {
            "type": self.type.value,
            "data": self.data,
            "invalidate": self.invalidate,
        }
