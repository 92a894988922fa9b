# =============================================================================
# app/routers/users.py - User and Maker Profile Endpoints
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.auth import get_current_user, AuthUser
from core.models.maker import MakerProfileResponse, MakerProfileUpdate
from core.models.review import ReviewResponse
from core.models.user import UserProfileUpdate, UserResponse, UserTypeUpdate
from core.services.maker_profile_service import MakerProfileService
from core.services.review_service import ReviewService
from core.services.user_service import UserService

router = APIRouter()


# =============================================================================
# Users
# =============================================================================

@router.put("/users/me/type", response_model=UserResponse)
async def set_user_type(
    request: UserTypeUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Choose between the client and maker role."""
    return UserResponse(**UserService.set_user_type(user.id, request.user_type))


@router.patch("/users/me", response_model=UserResponse)
async def update_my_profile(
    request: UserProfileUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Update name, location, avatar or the show_full_name preference."""
    return UserResponse(**UserService.update_profile(user.id, request))


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: Annotated[UUID, Path(description="User UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """Public profile of another user."""
    return UserResponse(**UserService.get_user(user_id))


@router.get("/users/{user_id}/review-count")
async def get_review_count(
    user_id: Annotated[UUID, Path(description="User UUID")],
):
    """Number of reviews a user received."""
    return {"count": ReviewService.review_count(user_id)}


# =============================================================================
# Maker Profiles
# =============================================================================

@router.get("/maker-profile", response_model=MakerProfileResponse | None)
async def get_my_maker_profile(
    user: AuthUser = Depends(get_current_user),
):
    """The caller's maker profile, or null if none exists yet."""
    profile = MakerProfileService.find_profile(user.id)
    return MakerProfileResponse(**profile) if profile else None


@router.put("/maker-profile", response_model=MakerProfileResponse)
async def upsert_my_maker_profile(
    request: MakerProfileUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Create or update the caller's printer capabilities."""
    return MakerProfileResponse(**MakerProfileService.upsert_profile(user.id, request))


@router.get("/makers/{maker_id}/profile", response_model=MakerProfileResponse)
async def get_maker_profile(
    maker_id: Annotated[UUID, Path(description="Maker UUID")],
):
    """Public maker profile with rating."""
    return MakerProfileResponse(**MakerProfileService.get_profile(maker_id))


@router.get("/makers/{maker_id}/reviews", response_model=list[ReviewResponse])
async def get_maker_reviews(
    maker_id: Annotated[UUID, Path(description="Maker UUID")],
):
    """Reviews a maker received, newest first."""
    return [ReviewResponse(**review) for review in ReviewService.list_reviews_for_user(maker_id)]
