# =============================================================================
# app/routers/stats.py - Public Platform Statistics
# =============================================================================

from fastapi import APIRouter
from pydantic import BaseModel

from core.services.stats_service import StatsService

router = APIRouter()


class PlatformStats(BaseModel):
    verified_makers: int
    completed_projects: int
    average_rating: float


@router.get("/stats", response_model=PlatformStats)
async def platform_stats():
    """Landing page numbers. No authentication required."""
    return PlatformStats(**StatsService.platform_stats())
