# =============================================================================
# workers/celery_app.py - Celery Application Configuration
# =============================================================================
# Creates the Celery application that runs STL analysis off the request path.
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker -Q default,analysis --loglevel=info
#
#   # Check status
#   celery -A workers.celery_app status
# =============================================================================

import logging

from celery import Celery
from celery.signals import task_prerun, task_postrun, task_failure
from dotenv import load_dotenv

# Workers may be started without the API's environment loaded
load_dotenv()

from app.config import settings  # noqa: E402

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _redacted(url: str) -> str:
    """Broker URL without credentials, for logs."""
    return url.split("@")[-1] if "@" in url else url


def create_celery_app() -> Celery:
    """
    Create and configure Celery application.

    Returns:
        Configured Celery app instance
    """
    app = Celery(
        "voxelhub_worker",
        broker=settings.REDIS_URL,
        backend=settings.REDIS_URL,
        include=["workers.tasks"],
    )
    app.config_from_object("workers.config:CeleryConfig")

    logger.info(f"Celery app created with broker: {_redacted(settings.REDIS_URL)}")
    return app


celery_app = create_celery_app()


@celery_app.task(bind=True, name="workers.healthcheck")
def healthcheck(self):
    """Round-trip check that a worker is consuming: returns "OK"."""
    return "OK"


# =============================================================================
# Celery Signals (Lifecycle Hooks)
# =============================================================================

@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **extra):
    logger.info(f"Task started: {task.name} [{task_id}] kwargs={kwargs}")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, retval=None, state=None, **extra):
    logger.info(f"Task completed: {task.name} [{task_id}] - State: {state}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, traceback=None, **extra):
    logger.error(f"Task failed: {sender.name} [{task_id}] - Error: {exception}")


if __name__ == "__main__":
    celery_app.start()
