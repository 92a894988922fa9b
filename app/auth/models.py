# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from pydantic import BaseModel, ConfigDict
from uuid import UUID
from typing import Optional


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    Only what the token itself carries; the role (client/maker) is looked up
    in public.users by the services that need it.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None


class TokenPayload(BaseModel):
    """
    Decoded JWT token payload from Supabase.

    Supabase tokens include standard JWT claims plus custom claims.
    """
    sub: str  # User ID
    email: Optional[str] = None
    aud: str  # Audience (should be "authenticated")
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp
    role: Optional[str] = None
