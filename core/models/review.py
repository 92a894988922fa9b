# =============================================================================
# core/models/review.py - Review Schemas
# =============================================================================
# Reviews are written after a delivery is confirmed: the client rates the
# maker and the maker rates the client, once each per project.
# Ratings use half stars from 0.5 to 5.
# =============================================================================

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field

from core.models.user import UserResponse


def check_half_star(value: float) -> float:
    """Ratings go from 0.5 to 5 in steps of 0.5."""
    if value < 0.5 or value > 5:
        raise ValueError("Rating must be between 0.5 and 5")
    if (value * 2) != int(value * 2):
        raise ValueError("Rating must be a multiple of 0.5")
    return float(value)


HalfStarRating = Annotated[float, AfterValidator(check_half_star)]


class ReviewCreate(BaseModel):
    """Body of PUT /projects/{id}/rate-client."""
    rating: HalfStarRating
    comment: str | None = Field(default=None, max_length=2000)


class RateMakerRequest(ReviewCreate):
    """Body of PUT /projects/{id}/rate-maker."""
    maker_id: UUID


class ReviewResponse(BaseModel):
    """Review as returned by the API."""
    id: UUID
    project_id: UUID
    from_user_id: UUID
    to_user_id: UUID
    rating: float
    comment: str | None = None
    created_at: datetime | None = None
    from_user: UserResponse | None = None


class RatingStatus(BaseModel):
    """Whether the caller already rated the counterpart of a project."""
    has_rated: bool
    delivery_confirmed: bool
