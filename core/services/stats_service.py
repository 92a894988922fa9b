# =============================================================================
# core/services/stats_service.py - Dashboard and Platform Statistics
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from core.models.bid import BidStatus
from core.models.project import ProjectStatus
from core.models.user import UserType
from core.services.bid_service import BidService
from core.services.user_service import UserService
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)


class StatsService:
    """Read-only aggregates for dashboards and the landing page."""

    @staticmethod
    def platform_stats() -> dict[str, Any]:
        """
        Public numbers: verified makers, completed projects, average rating.

        Degrades to zeros when the database is unreachable, since the landing
        page must still render.
        """
        try:
            makers = SupabaseClient.count("users", {
                "user_type": UserType.MAKER,
                "is_email_verified": True,
            })
            completed = SupabaseClient.count("projects", {"status": ProjectStatus.COMPLETED})
            ratings = [
                float(row["rating"])
                for row in SupabaseClient.fetch_many("reviews", columns="rating")
            ]
        except SupabaseClientError as e:
            logger.error(f"Platform stats unavailable: {e}")
            return {"verified_makers": 0, "completed_projects": 0, "average_rating": 0.0}

        average = round(sum(ratings) / len(ratings), 1) if ratings else 0.0
        return {
            "verified_makers": makers,
            "completed_projects": completed,
            "average_rating": average,
        }

    @staticmethod
    def client_stats(user_id: UUID | str) -> dict[str, int]:
        """
        active_projects, projects_with_pending_bids, projects_with_accepted_bids.

        Bid-based counts are over distinct non-deleted projects.
        """
        UserService.require_role(user_id, UserType.CLIENT, "view client statistics")

        projects = SupabaseClient.fetch_many(
            "projects",
            {"user_id": normalize_uuid(user_id), "deleted_at": None},
            columns="id, status",
        )
        project_ids = [str(p["id"]) for p in projects]
        bids = SupabaseClient.fetch_many(
            "bids",
            {"project_id": project_ids, "status": [BidStatus.PENDING, BidStatus.ACCEPTED]},
            columns="project_id, status",
        )

        with_pending = {str(b["project_id"]) for b in bids if b["status"] == BidStatus.PENDING.value}
        with_accepted = {str(b["project_id"]) for b in bids if b["status"] == BidStatus.ACCEPTED.value}

        return {
            "active_projects": sum(1 for p in projects if p["status"] == ProjectStatus.ACTIVE.value),
            "projects_with_pending_bids": len(with_pending),
            "projects_with_accepted_bids": len(with_accepted),
        }

    @staticmethod
    def maker_stats(user_id: UUID | str) -> dict[str, int]:
        return BidService.maker_stats(user_id)
