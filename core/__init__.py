# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the marketplace logic:
# - models/: Pydantic schemas for data validation
# - services/: Static-method services over the Supabase tables
# - lifecycle.py: Project and bid state rules
#
# Services return (result, events); routers deliver the events.
# Code in this package should NOT import from FastAPI routers or Celery.
# =============================================================================
