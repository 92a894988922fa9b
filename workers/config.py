# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Applied to the Celery app via app.config_from_object().
# =============================================================================

from app.config import settings


class CeleryConfig:
    """Broker, queue and timeout settings for the VoxelHub workers."""

    # -------------------------------------------------------------------------
    # Broker and results (Redis, same instance as the notification channel)
    # -------------------------------------------------------------------------

    broker_url = settings.REDIS_URL
    result_backend = settings.REDIS_URL

    # Analysis results are only inspected while debugging
    result_expires = 3600

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    # A crashed worker must not lose an upload's analysis
    task_acks_late = True

    # Mesh analysis is uneven in duration; don't hoard tasks
    worker_prefetch_multiplier = 1

    # Large meshes take a while to split into bodies
    task_time_limit = 300
    task_soft_time_limit = 240

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Queues
    # -------------------------------------------------------------------------

    task_queues = {
        "default": {
            "exchange": "default",
            "routing_key": "default",
        },
        "analysis": {
            "exchange": "analysis",
            "routing_key": "analysis",
        },
    }

    # CPU-bound work gets its own queue so it can be scaled separately
    task_routes = {
        "workers.tasks.analyze_project_file": {"queue": "analysis"},
    }

    task_default_queue = "default"

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    worker_send_task_events = True
    task_send_sent_event = True

    timezone = "UTC"
    enable_utc = True
