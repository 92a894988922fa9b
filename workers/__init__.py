# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# Celery configuration and task definitions for work that runs outside the
# API process (STL mesh analysis).
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker (both queues)
#   celery -A workers.celery_app worker -Q default,analysis --loglevel=info
#
#   # Submit task (from API)
#   from workers.tasks import analyze_project_file
#   analyze_project_file.delay(project_id=project_id, file_id=file_id)
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
