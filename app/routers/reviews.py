# =============================================================================
# app/routers/reviews.py - Rating Endpoints
# =============================================================================
# Mutual ratings between a client and the maker of the accepted bid.
# Mounted under /api/v1/projects; ratings open once delivery is confirmed.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.auth import get_current_user, AuthUser
from core.models.review import RateMakerRequest, RatingStatus, ReviewCreate, ReviewResponse
from core.services.review_service import ReviewService

router = APIRouter()

ProjectId = Annotated[UUID, Path(description="Project UUID")]


@router.get("/{project_id}/check-rating-by-client", response_model=RatingStatus)
async def check_rating_by_client(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    """Has the owner already rated the maker?"""
    return RatingStatus(**ReviewService.rating_status_for_client(user.id, project_id))


@router.get("/{project_id}/check-rating-by-maker", response_model=RatingStatus)
async def check_rating_by_maker(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    """Has the winning maker already rated the client?"""
    return RatingStatus(**ReviewService.rating_status_for_maker(user.id, project_id))


@router.put("/{project_id}/rate-maker", response_model=ReviewResponse)
async def rate_maker(
    project_id: ProjectId,
    request: RateMakerRequest,
    user: AuthUser = Depends(get_current_user),
):
    review = ReviewService.rate_maker(
        user.id, project_id, request.maker_id, request.rating, request.comment
    )
    return ReviewResponse(**review)


@router.put("/{project_id}/rate-client", response_model=ReviewResponse)
async def rate_client(
    project_id: ProjectId,
    request: ReviewCreate,
    user: AuthUser = Depends(get_current_user),
):
    review = ReviewService.rate_client(user.id, project_id, request.rating, request.comment)
    return ReviewResponse(**review)


@router.get("/{project_id}/review-from-client", response_model=ReviewResponse)
async def review_from_client(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    """The review the calling maker received for this project."""
    return ReviewResponse(**ReviewService.review_from_client(user.id, project_id))


@router.get("/{project_id}/review-from-maker", response_model=ReviewResponse)
async def review_from_maker(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    """The review the calling client received for this project."""
    return ReviewResponse(**ReviewService.review_from_maker(user.id, project_id))
