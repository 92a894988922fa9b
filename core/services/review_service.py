# =============================================================================
# core/services/review_service.py - Reviews and Rating Gating
# =============================================================================
# Once a delivery is confirmed, the client may rate the maker and the maker
# may rate the client, once each per project. Reviews addressed to a maker
# refresh the maker profile's aggregated rating.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import (
    DuplicateReviewError,
    InvalidStateError,
    PermissionDeniedError,
    ReviewNotFoundError,
)
from core.models.bid import BidStatus
from core.services.maker_profile_service import MakerProfileService
from core.services.project_service import ProjectService
from core.services.user_service import UserService
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, same_id, utc_now_iso

logger = logging.getLogger(__name__)

REVIEWS_TABLE = "reviews"
BIDS_TABLE = "bids"


class ReviewService:
    """Service for review operations."""

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def accepted_bid(project_id: UUID | str) -> dict[str, Any] | None:
        return SupabaseClient.fetch_one(BIDS_TABLE, {
            "project_id": normalize_uuid(project_id),
            "status": BidStatus.ACCEPTED,
        })

    @staticmethod
    def find_review(
        project_id: UUID | str,
        from_user_id: UUID | str,
        to_user_id: UUID | str,
    ) -> dict[str, Any] | None:
        return SupabaseClient.fetch_one(REVIEWS_TABLE, {
            "project_id": normalize_uuid(project_id),
            "from_user_id": normalize_uuid(from_user_id),
            "to_user_id": normalize_uuid(to_user_id),
        })

    @staticmethod
    def create_review(
        project_id: UUID | str,
        from_user_id: UUID | str,
        to_user_id: UUID | str,
        rating: float,
        comment: str | None = None,
    ) -> dict[str, Any]:
        """
        Insert a review and refresh the receiver's maker rating.

        Raises:
            DuplicateReviewError: If this review already exists
        """
        if ReviewService.find_review(project_id, from_user_id, to_user_id):
            raise DuplicateReviewError(str(project_id))

        review = SupabaseClient.insert(REVIEWS_TABLE, {
            "project_id": normalize_uuid(project_id),
            "from_user_id": normalize_uuid(from_user_id),
            "to_user_id": normalize_uuid(to_user_id),
            "rating": rating,
            "comment": comment,
            "created_at": utc_now_iso(),
        })
        logger.info(f"Review {review['id']}: {from_user_id} rated {to_user_id} {rating} on project {project_id}")

        MakerProfileService.refresh_rating(to_user_id)
        return review

    @staticmethod
    def _confirmed_bid(project_id: UUID | str) -> dict[str, Any]:
        bid = ReviewService.accepted_bid(project_id)
        if not bid:
            raise InvalidStateError("This project has no accepted bid")
        if not bid.get("delivery_confirmed_at"):
            raise InvalidStateError("Ratings open once the delivery is confirmed")
        return bid

    # -------------------------------------------------------------------------
    # Rating
    # -------------------------------------------------------------------------

    @staticmethod
    def rate_maker(
        user_id: UUID | str,
        project_id: UUID | str,
        maker_id: UUID | str,
        rating: float,
        comment: str | None = None,
    ) -> dict[str, Any]:
        """
        The project owner rates the maker of the accepted bid.

        Raises:
            PermissionDeniedError: If the caller isn't the owner or the maker
                didn't win the project
            InvalidStateError: If delivery isn't confirmed yet
            DuplicateReviewError: If the maker was already rated
        """
        ProjectService.get_owned_project(project_id, user_id)
        bid = ReviewService._confirmed_bid(project_id)
        if not same_id(bid["maker_id"], maker_id):
            raise PermissionDeniedError("You can only rate the maker whose bid you accepted")
        return ReviewService.create_review(project_id, user_id, maker_id, rating, comment)

    @staticmethod
    def rate_client(
        user_id: UUID | str,
        project_id: UUID | str,
        rating: float,
        comment: str | None = None,
    ) -> dict[str, Any]:
        """
        The maker of the accepted bid rates the project owner.

        Raises:
            PermissionDeniedError: If the caller didn't win the project
            InvalidStateError: If delivery isn't confirmed yet
            DuplicateReviewError: If the client was already rated
        """
        project = ProjectService.get_project(project_id)
        bid = ReviewService.accepted_bid(project_id)
        if not bid or not same_id(bid["maker_id"], user_id):
            raise PermissionDeniedError("Only the maker of the accepted bid can rate this client")
        ReviewService._confirmed_bid(project_id)
        return ReviewService.create_review(project_id, user_id, project["user_id"], rating, comment)

    @staticmethod
    def rating_status_for_client(user_id: UUID | str, project_id: UUID | str) -> dict[str, bool]:
        """Has the owner rated the winning maker, and is delivery confirmed?"""
        ProjectService.get_owned_project(project_id, user_id)
        bid = ReviewService.accepted_bid(project_id)
        if not bid:
            return {"has_rated": False, "delivery_confirmed": False}
        return {
            "has_rated": ReviewService.find_review(project_id, user_id, bid["maker_id"]) is not None,
            "delivery_confirmed": bool(bid.get("delivery_confirmed_at")),
        }

    @staticmethod
    def rating_status_for_maker(user_id: UUID | str, project_id: UUID | str) -> dict[str, bool]:
        """Has the winning maker rated the client, and is delivery confirmed?"""
        project = ProjectService.get_project(project_id)
        bid = ReviewService.accepted_bid(project_id)
        if not bid or not same_id(bid["maker_id"], user_id):
            return {"has_rated": False, "delivery_confirmed": False}
        return {
            "has_rated": ReviewService.find_review(project_id, user_id, project["user_id"]) is not None,
            "delivery_confirmed": bool(bid.get("delivery_confirmed_at")),
        }

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    @staticmethod
    def list_reviews_for_user(user_id: UUID | str) -> list[dict[str, Any]]:
        """Reviews a user received, newest first, with the reviewer attached."""
        reviews = SupabaseClient.fetch_many(
            REVIEWS_TABLE, {"to_user_id": normalize_uuid(user_id)}, order_by="created_at", desc=True
        )
        users = UserService.get_users([review["from_user_id"] for review in reviews])
        for review in reviews:
            review["from_user"] = users.get(str(review["from_user_id"]))
        return reviews

    @staticmethod
    def review_count(user_id: UUID | str) -> int:
        return SupabaseClient.count(REVIEWS_TABLE, {"to_user_id": normalize_uuid(user_id)})

    @staticmethod
    def review_from_client(user_id: UUID | str, project_id: UUID | str) -> dict[str, Any]:
        """The review the project owner wrote about the calling maker."""
        project = ProjectService.get_project(project_id)
        review = ReviewService.find_review(project_id, project["user_id"], user_id)
        if not review:
            raise ReviewNotFoundError(str(project_id))
        return review

    @staticmethod
    def review_from_maker(user_id: UUID | str, project_id: UUID | str) -> dict[str, Any]:
        """The review the winning maker wrote about the calling client."""
        ProjectService.get_owned_project(project_id, user_id)
        bid = ReviewService.accepted_bid(project_id)
        review = ReviewService.find_review(project_id, bid["maker_id"], user_id) if bid else None
        if not review:
            raise ReviewNotFoundError(str(project_id))
        return review
