# =============================================================================
# app/websocket/broadcast.py - Event Delivery and Cross-Process Fan-out
# =============================================================================
# Delivers NotificationEvents to connected users.
#
# With NOTIFICATIONS_VIA_REDIS (default), events go through Redis pub/sub:
# - API routes call dispatch_events() after a successful write
# - Celery workers call publish_event()
# - every API process runs redis_pubsub_listener() (started in main.py) and
#   relays messages to the sockets it holds
# Without it, API routes deliver straight to the local connection manager.
#
# Delivery is best effort: failures are logged, never raised to the caller.
# =============================================================================

import asyncio
import json
import logging
from typing import Any, Iterable

from app.config import settings
from app.websocket.manager import websocket_manager
from core.models.notification import EventType, NotificationEvent

logger = logging.getLogger(__name__)

# Redis channel for WebSocket events
WEBSOCKET_CHANNEL = "voxelhub:notifications"


def get_redis_client():
    """Get a synchronous Redis client (used by Celery workers)."""
    import redis
    return redis.from_url(settings.REDIS_URL)


def get_async_redis_client():
    """Get an asyncio Redis client (used inside the API process)."""
    import redis.asyncio as aioredis
    return aioredis.from_url(settings.REDIS_URL)


def encode_event(event: NotificationEvent) -> str:
    """Serialize an event for the pub/sub channel."""
    return json.dumps({"user_id": event.user_id, **event.to_message()})


def publish_event(event: NotificationEvent) -> bool:
    """
    Publish an event from a synchronous context (Celery workers).

    Returns:
        bool: True if published successfully
    """
    try:
        client = get_redis_client()
        client.publish(WEBSOCKET_CHANNEL, encode_event(event))
        logger.debug(f"Published {event.type.value} event for user {event.user_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish event: {e}")
        return False


def publish_file_analyzed(
    owner_id: str,
    project_id: str,
    file_id: str,
    analysis: dict[str, Any] | None,
    error: str | None = None,
) -> bool:
    """Tell a project owner their STL file has been analyzed."""
    return publish_event(NotificationEvent.create(
        EventType.PROJECT_FILE_ANALYZED,
        owner_id,
        project_id=project_id,
        file_id=file_id,
        success=error is None,
        dimensions=(analysis or {}).get("dimensions"),
        is_watertight=(analysis or {}).get("is_watertight"),
        error=error,
    ))


async def deliver_message(raw: str | bytes) -> int:
    """
    Relay one pub/sub message to the local sockets of its recipient.

    Returns:
        int: Number of connections reached
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON in Redis message: {e}")
        return 0

    user_id = data.pop("user_id", None)
    if not user_id:
        logger.warning("Redis message without recipient, skipping")
        return 0
    return await websocket_manager.send_to_user(str(user_id), data)


async def dispatch_events(events: Iterable[NotificationEvent]) -> None:
    """
    Deliver events produced by a service call.

    Never raises: a notification failure must not fail the request that
    already changed the data.
    """
    events = list(events)
    if not events:
        return

    if not settings.NOTIFICATIONS_VIA_REDIS:
        for event in events:
            try:
                await websocket_manager.send_to_user(event.user_id, event.to_message())
            except Exception as e:
                logger.error(f"Failed to deliver {event.type.value} to {event.user_id}: {e}")
        return

    client = get_async_redis_client()
    try:
        for event in events:
            await client.publish(WEBSOCKET_CHANNEL, encode_event(event))
            logger.debug(f"Published {event.type.value} event for user {event.user_id}")
    except Exception as e:
        logger.error(f"Failed to publish {len(events)} events: {e}")
    finally:
        try:
            await client.aclose()
        except Exception as e:
            logger.debug(f"Error closing Redis client: {e}")


async def redis_pubsub_listener(shutdown_event: asyncio.Event | None = None) -> None:
    """
    Background task bridging Redis pub/sub to local WebSocket clients.

    Started from the application lifespan.
    """
    logger.info("Starting Redis pub/sub listener for WebSocket events")

    redis_client = get_async_redis_client()
    pubsub = redis_client.pubsub()
    try:
        await pubsub.subscribe(WEBSOCKET_CHANNEL)

        async for message in pubsub.listen():
            if shutdown_event and shutdown_event.is_set():
                break
            if message["type"] != "message":
                continue
            try:
                await deliver_message(message["data"])
            except Exception as e:
                logger.error(f"Error processing Redis message: {e}")

    except asyncio.CancelledError:
        logger.info("Redis pub/sub listener cancelled")
    except Exception as e:
        logger.error(f"Redis pub/sub listener error: {e}")
    finally:
        try:
            await pubsub.unsubscribe(WEBSOCKET_CHANNEL)
            await redis_client.aclose()
        except Exception as e:
            logger.debug(f"Error closing Redis listener: {e}")
