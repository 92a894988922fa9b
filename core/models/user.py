# =============================================================================
# core/models/user.py - User Schemas
# =============================================================================
# Models for public user profiles and the client/maker role switch.
# Sign-up and login happen in Supabase Auth; these models only cover the
# profile row kept in public.users.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, computed_field


class UserType(str, Enum):
    """
    Marketplace role of a user.

    - client: publishes projects and accepts bids
    - maker: owns printers, bids on projects and publishes designs
    """
    CLIENT = "client"
    MAKER = "maker"


class UserResponse(BaseModel):
    """
    Public user profile.

    Example:
        {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "username": "printlab",
            "first_name": "Ada",
            "user_type": "maker",
            "display_name": "printlab"
        }
    """
    id: UUID
    email: str | None = None
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    location: str | None = None
    user_type: UserType | None = None
    is_email_verified: bool = False
    show_full_name: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field
    @property
    def display_name(self) -> str | None:
        """Name shown to other users, respecting the show_full_name choice."""
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        if self.show_full_name and full_name:
            return full_name
        if self.username:
            return self.username
        if self.email:
            return self.email.split("@")[0]
        return full_name or None


class UserTypeUpdate(BaseModel):
    """Body of PUT /users/me/type."""
    user_type: UserType


class UserProfileUpdate(BaseModel):
    """Partial profile update. Omitted fields are left untouched."""
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=200)
    show_full_name: bool | None = None
    profile_image_url: str | None = Field(default=None, max_length=2048)
