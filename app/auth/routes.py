# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# Sign-up and login are handled by Supabase Auth client-side.
# These routes return the profile behind a token.
# =============================================================================

import logging
from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser
from core.models.user import UserResponse
from core.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserResponse:
    """
    Get the current authenticated user's profile.

    Falls back to the token data when the public.users row hasn't been
    created yet by the sign-up trigger.
    """
    profile = UserService.find_user(user.id)
    if profile:
        return UserResponse(**profile)

    logger.warning(f"No profile row yet for user {user.id}")
    return UserResponse(id=user.id, email=user.email)


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """Check that the current token is valid."""
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email
    }
