# =============================================================================
# core/services/maker_profile_service.py - Maker Profiles
# =============================================================================
# Maker capability profiles and the aggregated rating shown next to bids.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, utc_now_iso
from core.lifecycle import fits_build_volume
from core.models.maker import MakerProfileUpdate
from core.models.user import UserProfileUpdate, UserType
from core.services.user_service import UserService
from app.exceptions import MakerProfileNotFoundError

logger = logging.getLogger(__name__)

PROFILES_TABLE = "maker_profiles"
REVIEWS_TABLE = "reviews"


class MakerProfileService:
    """Service for maker profile operations."""

    @staticmethod
    def find_profile(user_id: UUID | str) -> dict[str, Any] | None:
        return SupabaseClient.fetch_one(PROFILES_TABLE, {"user_id": normalize_uuid(user_id)})

    @staticmethod
    def get_profile(user_id: UUID | str) -> dict[str, Any]:
        """
        Get a maker's public profile.

        Raises:
            MakerProfileNotFoundError: If the maker has no profile
        """
        profile = MakerProfileService.find_profile(user_id)
        if not profile:
            raise MakerProfileNotFoundError(str(user_id))
        return profile

    @staticmethod
    def get_profiles(user_ids: list[UUID | str]) -> dict[str, dict[str, Any]]:
        """Fetch several profiles at once, keyed by maker id."""
        ids = sorted({str(user_id) for user_id in user_ids})
        rows = SupabaseClient.fetch_many(PROFILES_TABLE, {"user_id": ids})
        return {str(row["user_id"]): row for row in rows}

    @staticmethod
    def upsert_profile(user_id: UUID | str, update: MakerProfileUpdate) -> dict[str, Any]:
        """
        Create or replace the caller's maker profile.

        Rating fields are never written here; they are derived from reviews.
        """
        UserService.require_role(user_id, UserType.MAKER, "create a maker profile")

        data = update.model_dump(exclude={"show_full_name"})
        data["updated_at"] = utc_now_iso()

        if update.show_full_name is not None:
            UserService.update_profile(
                user_id, UserProfileUpdate(show_full_name=update.show_full_name)
            )

        existing = MakerProfileService.find_profile(user_id)
        if existing:
            rows = SupabaseClient.update(PROFILES_TABLE, data, {"user_id": normalize_uuid(user_id)})
            logger.info(f"Updated maker profile for {user_id}")
            return rows[0] if rows else existing

        data.update({"user_id": normalize_uuid(user_id), "rating": 0, "total_reviews": 0})
        profile = SupabaseClient.insert(PROFILES_TABLE, data)
        logger.info(f"Created maker profile for {user_id}")
        return profile

    @staticmethod
    def refresh_rating(user_id: UUID | str) -> dict[str, Any] | None:
        """
        Recompute rating (mean, 2 decimals) and total_reviews from reviews.

        Returns None when the user has no maker profile.
        """
        profile = MakerProfileService.find_profile(user_id)
        if not profile:
            return None

        reviews = SupabaseClient.fetch_many(REVIEWS_TABLE, {"to_user_id": normalize_uuid(user_id)})
        ratings = [float(review["rating"]) for review in reviews]
        average = round(sum(ratings) / len(ratings), 2) if ratings else 0.0

        rows = SupabaseClient.update(
            PROFILES_TABLE,
            {"rating": average, "total_reviews": len(ratings), "updated_at": utc_now_iso()},
            {"user_id": normalize_uuid(user_id)},
        )
        logger.info(f"Maker {user_id} rating is now {average} over {len(ratings)} reviews")
        return rows[0] if rows else profile

    @staticmethod
    def can_print(profile: dict[str, Any], specifications: dict[str, Any]) -> bool:
        """Whether the maker's printer can fit a project's part."""
        try:
            part = (
                float(specifications["dimension_x"]),
                float(specifications["dimension_y"]),
                float(specifications["dimension_z"]),
            )
        except (KeyError, TypeError, ValueError):
            return True
        printer = (
            profile.get("max_print_dimension_x"),
            profile.get("max_print_dimension_y"),
            profile.get("max_print_dimension_z"),
        )
        return fits_build_volume(part, printer)
