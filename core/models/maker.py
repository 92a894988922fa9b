# =============================================================================
# core/models/maker.py - Maker Profile Schemas
# =============================================================================
# A maker profile describes the printers a maker runs and carries the rating
# aggregated from client reviews.
# =============================================================================

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class MakerProfileBase(BaseModel):
    """Printer capabilities a maker advertises."""

    printer_types: list[str] = Field(
        default_factory=list,
        description="Printer models or technologies (e.g. 'Prusa MK4', 'resin')"
    )
    materials: list[str] = Field(
        default_factory=list,
        description="Materials the maker can print (e.g. 'PLA', 'PETG')"
    )
    max_print_dimension_x: int | None = Field(default=None, gt=0, description="Build volume X in mm")
    max_print_dimension_y: int | None = Field(default=None, gt=0, description="Build volume Y in mm")
    max_print_dimension_z: int | None = Field(default=None, gt=0, description="Build volume Z in mm")
    has_multicolor: bool = False
    max_colors: int | None = Field(default=None, ge=1, le=16)
    location: str | None = Field(default=None, max_length=200)
    capabilities: str | None = Field(default=None, max_length=2000)


class MakerProfileUpdate(MakerProfileBase):
    """
    Body of PUT /maker-profile.

    `show_full_name` is stored on the user row, not the profile.
    """
    show_full_name: bool | None = None


class MakerProfileResponse(MakerProfileBase):
    """Maker profile as returned by the API. Rating fields are read-only."""
    id: UUID | None = None
    user_id: UUID
    rating: float = Field(default=0.0, ge=0, le=5)
    total_reviews: int = Field(default=0, ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None
