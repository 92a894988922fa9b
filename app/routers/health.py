# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Liveness and readiness probes for load balancers and the container runtime.
# Readiness covers the three backing services: Postgres (via Supabase),
# the STL storage bucket and Redis.
# =============================================================================

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.utils import utc_now_iso

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: str
    environment: str
    version: str


class ChecksResponse(BaseModel):
    """Individual service checks."""
    database: str = "unknown"
    storage: str = "unknown"
    redis: str = "unknown"


class ReadinessResponse(BaseModel):
    status: str
    checks: ChecksResponse
    timestamp: str


class LivenessResponse(BaseModel):
    status: str
    timestamp: str


def _failure(e: Exception) -> str:
    return f"unhealthy: {str(e)[:50]}"


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Static health status; touches no backing service."""
    return HealthResponse(
        status="healthy",
        timestamp=utc_now_iso(),
        environment=settings.ENVIRONMENT,
        version="1.0.0",
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    Readiness check endpoint.

    "ready" only when database, storage bucket and Redis all respond;
    otherwise "degraded" with the failing checks spelled out.
    """
    from lib.supabase_client import SupabaseClient
    from app.websocket.broadcast import get_redis_client

    checks = ChecksResponse()

    try:
        client = SupabaseClient.get_client()
        client.table("projects").select("id").limit(1).execute()
        checks.database = "healthy"
    except Exception as e:
        checks.database = _failure(e)

    try:
        client = SupabaseClient.get_client()
        client.storage.get_bucket(settings.STORAGE_BUCKET)
        checks.storage = "healthy"
    except Exception as e:
        checks.storage = _failure(e)

    try:
        get_redis_client().ping()
        checks.redis = "healthy"
    except Exception as e:
        checks.redis = _failure(e)

    all_healthy = all(
        value == "healthy" for value in (checks.database, checks.storage, checks.redis)
    )
    return ReadinessResponse(
        status="ready" if all_healthy else "degraded",
        checks=checks,
        timestamp=utc_now_iso(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """Process is up. Used for restart decisions."""
    return LivenessResponse(status="alive", timestamp=utc_now_iso())
