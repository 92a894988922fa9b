# =============================================================================
# core/models/bid.py - Bid Schemas
# =============================================================================
# A bid is a maker's offer (price in EUR + delivery time) on a project.
#
# Status flow:
#   pending -> accepted   (client picks this bid)
#   pending -> rejected   (client declines, or another bid was accepted)
# A pending bid can be edited or withdrawn by its maker.
# =============================================================================

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from app.config import settings
from lib.utils import to_money
from core.models.maker import MakerProfileResponse
from core.models.project import ProjectResponse
from core.models.review import HalfStarRating
from core.models.user import UserResponse

PRICE_PATTERN = re.compile(r"^\d+(\.\d{1,2})?$")


class BidStatus(str, Enum):
    """
    Possible states for a bid.

    - pending: waiting for the client's decision
    - accepted: the client chose this bid (terminal)
    - rejected: declined, or lost to another bid (terminal)
    """
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


def parse_price(value: Any) -> Decimal:
    """
    Validate a price given as string or number.

    At most two decimals and at least settings.MIN_BID_PRICE.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("Price is required")
    text = str(value).strip()
    if not PRICE_PATTERN.match(text):
        raise ValueError("Price must be a positive amount with at most 2 decimals")
    price = to_money(text)
    if price < settings.MIN_BID_PRICE:
        raise ValueError(f"Price must be at least €{settings.MIN_BID_PRICE}")
    return price


class BidCreate(BaseModel):
    """
    Body of POST /projects/{id}/bids.

    Example:
        {"price": "24.90", "delivery_days": 5, "message": "PETG, 0.2mm layers"}
    """
    price: Decimal = Field(..., description="Offer in EUR, 2 decimals max")
    delivery_days: int = Field(..., gt=0, le=365)
    message: str | None = Field(default=None, max_length=2000)

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, value: Any) -> Decimal:
        return parse_price(value)


class BidUpdate(BaseModel):
    """Body of PATCH /bids/{id}. At least one field is required."""
    price: Decimal | None = None
    delivery_days: int | None = Field(default=None, gt=0, le=365)
    message: str | None = Field(default=None, max_length=2000)

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, value: Any) -> Decimal | None:
        if value is None:
            return None
        return parse_price(value)

    @model_validator(mode="after")
    def require_one_field(self) -> "BidUpdate":
        if self.price is None and self.delivery_days is None and self.message is None:
            raise ValueError("Provide at least one of price, delivery_days or message")
        return self


class DeliveryConfirmation(BaseModel):
    """
    Body of PUT /bids/{id}/confirm-delivery.

    The rating is optional; the client may rate the maker later.
    """
    rating: HalfStarRating | None = None
    comment: str | None = Field(default=None, max_length=2000)


class BidResponse(BaseModel):
    """Bid as returned by the API, optionally enriched with maker or project."""
    id: UUID
    project_id: UUID
    maker_id: UUID
    price: Decimal
    delivery_days: int
    message: str | None = None
    status: BidStatus
    is_read: bool = False
    delivery_confirmed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    maker: UserResponse | None = None
    maker_profile: MakerProfileResponse | None = None
    project: ProjectResponse | None = None
