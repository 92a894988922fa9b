# =============================================================================
# core/models/design.py - Marketplace Design Schemas
# =============================================================================
# Makers can publish ready-made designs. Pricing:
# - free: price forced to 0
# - fixed: price >= MIN_BID_PRICE
# - minimum: "pay what you want" floor, 0 or >= MIN_BID_PRICE
# =============================================================================

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.config import settings
from core.models.maker import MakerProfileResponse
from core.models.user import UserResponse


class DesignPriceType(str, Enum):
    FREE = "free"
    FIXED = "fixed"
    MINIMUM = "minimum"


class DesignStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class AccessReason(str, Enum):
    MAKER = "maker"
    FREE = "free"
    PURCHASED = "purchased"
    NOT_PURCHASED = "not_purchased"


def check_design_price(price_type: DesignPriceType, price: Decimal) -> Decimal:
    """Return the normalized price for `price_type` or raise ValueError."""
    if price < 0:
        raise ValueError("Price cannot be negative")
    if price_type == DesignPriceType.FREE:
        return Decimal("0.00")
    if price_type == DesignPriceType.FIXED and price < settings.MIN_BID_PRICE:
        raise ValueError(f"Fixed price must be at least €{settings.MIN_BID_PRICE}")
    if price_type == DesignPriceType.MINIMUM and 0 < price < settings.MIN_BID_PRICE:
        raise ValueError(f"Minimum price must be 0 or at least €{settings.MIN_BID_PRICE}")
    return price.quantize(Decimal("0.01"))


class DesignCreate(BaseModel):
    """Body of POST /marketplace/designs."""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    image_url: str | None = Field(default=None, max_length=2048)
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    price_type: DesignPriceType = DesignPriceType.FREE
    material: str | None = Field(default=None, max_length=100)

    @model_validator(mode="after")
    def check_price(self) -> "DesignCreate":
        self.price = check_design_price(self.price_type, self.price)
        return self


class DesignUpdate(BaseModel):
    """Body of PUT /marketplace/designs/{id}. Omitted fields are unchanged."""
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=5000)
    image_url: str | None = Field(default=None, max_length=2048)
    price: Decimal | None = Field(default=None, max_digits=10, decimal_places=2)
    price_type: DesignPriceType | None = None
    material: str | None = Field(default=None, max_length=100)


class DesignResponse(BaseModel):
    """Design as returned by the API."""
    id: UUID
    maker_id: UUID
    title: str
    description: str
    image_url: str | None = None
    price: Decimal = Decimal("0")
    price_type: DesignPriceType
    material: str | None = None
    status: DesignStatus = DesignStatus.ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None
    maker: UserResponse | None = None
    maker_profile: MakerProfileResponse | None = None


class DesignAccess(BaseModel):
    """Result of GET /marketplace/designs/{id}/access."""
    can_access: bool
    reason: AccessReason
    details: dict[str, Any] | None = None
