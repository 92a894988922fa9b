# =============================================================================
# core/services/design_service.py - Marketplace Designs
# =============================================================================
# Makers publish designs; anyone can browse them. Archiving hides a design
# from the marketplace but keeps it for existing chats and purchases.
# =============================================================================

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from app.exceptions import DesignNotFoundError, PermissionDeniedError, ValidationFailedError
from core.models.design import (
    AccessReason,
    DesignCreate,
    DesignPriceType,
    DesignStatus,
    DesignUpdate,
    check_design_price,
)
from core.models.user import UserType
from core.services.maker_profile_service import MakerProfileService
from core.services.user_service import UserService
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, same_id, utc_now_iso

logger = logging.getLogger(__name__)

DESIGNS_TABLE = "marketplace_designs"
PURCHASES_TABLE = "design_purchases"


class DesignService:
    """Service for marketplace design operations."""

    @staticmethod
    def get_design(design_id: UUID | str) -> dict[str, Any]:
        """
        Raises:
            DesignNotFoundError: If the design doesn't exist
        """
        design = SupabaseClient.fetch_by_id(DESIGNS_TABLE, normalize_uuid(design_id))
        if not design:
            raise DesignNotFoundError(str(design_id))
        return design

    @staticmethod
    def _owned(design_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        design = DesignService.get_design(design_id)
        if not same_id(design["maker_id"], user_id):
            raise PermissionDeniedError("You can only manage your own designs")
        return design

    @staticmethod
    def _with_makers(designs: list[dict[str, Any]]) -> list[dict[str, Any]]:
        maker_ids = [d["maker_id"] for d in designs]
        users = UserService.get_users(maker_ids)
        profiles = MakerProfileService.get_profiles(maker_ids)
        for design in designs:
            design["maker"] = users.get(str(design["maker_id"]))
            design["maker_profile"] = profiles.get(str(design["maker_id"]))
        return designs

    @staticmethod
    def list_designs() -> list[dict[str, Any]]:
        """Active designs, newest first, with maker details."""
        designs = SupabaseClient.fetch_many(
            DESIGNS_TABLE, {"status": DesignStatus.ACTIVE}, order_by="created_at", desc=True
        )
        return DesignService._with_makers(designs)

    @staticmethod
    def get_design_detail(design_id: UUID | str) -> dict[str, Any]:
        return DesignService._with_makers([DesignService.get_design(design_id)])[0]

    @staticmethod
    def list_my_designs(user_id: UUID | str) -> list[dict[str, Any]]:
        UserService.require_role(user_id, UserType.MAKER, "publish designs")
        return SupabaseClient.fetch_many(
            DESIGNS_TABLE,
            {"maker_id": normalize_uuid(user_id), "status": DesignStatus.ACTIVE},
            order_by="created_at",
            desc=True,
        )

    @staticmethod
    def create_design(user_id: UUID | str, data: DesignCreate) -> dict[str, Any]:
        UserService.require_role(user_id, UserType.MAKER, "publish designs")
        now = utc_now_iso()
        design = SupabaseClient.insert(DESIGNS_TABLE, {
            **data.model_dump(),
            "maker_id": normalize_uuid(user_id),
            "status": DesignStatus.ACTIVE,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Maker {user_id} published design {design['id']}")
        return design

    @staticmethod
    def update_design(user_id: UUID | str, design_id: UUID | str, data: DesignUpdate) -> dict[str, Any]:
        """
        Update a design; price rules are checked against the merged result.

        Raises:
            ValidationFailedError: If the new price breaks the price-type rules
        """
        design = DesignService._owned(design_id, user_id)
        changes = data.model_dump(exclude_none=True)

        price_type = DesignPriceType(changes.get("price_type", design["price_type"]))
        price = Decimal(str(changes.get("price", design.get("price") or 0)))
        try:
            changes["price"] = check_design_price(price_type, price)
        except ValueError as e:
            raise ValidationFailedError(str(e), field="price")

        changes["updated_at"] = utc_now_iso()
        rows = SupabaseClient.update(DESIGNS_TABLE, changes, {"id": normalize_uuid(design_id)})
        return rows[0] if rows else {**design, **changes}

    @staticmethod
    def archive_design(user_id: UUID | str, design_id: UUID | str) -> dict[str, Any]:
        design = DesignService._owned(design_id, user_id)
        changes = {"status": DesignStatus.ARCHIVED.value, "updated_at": utc_now_iso()}
        rows = SupabaseClient.update(
            DESIGNS_TABLE,
            changes,
            {"id": normalize_uuid(design_id)},
        )
        logger.info(f"Maker {user_id} archived design {design_id}")
        return rows[0] if rows else {**design, **changes}

    @staticmethod
    def check_access(user_id: UUID | str, design_id: UUID | str) -> dict[str, Any]:
        """Whether a user may download a design's files, and why."""
        design = DesignService.get_design(design_id)

        if same_id(design["maker_id"], user_id):
            return {"can_access": True, "reason": AccessReason.MAKER}
        if design.get("price_type") == DesignPriceType.FREE.value:
            return {"can_access": True, "reason": AccessReason.FREE}

        purchase = SupabaseClient.fetch_one(PURCHASES_TABLE, {
            "design_id": normalize_uuid(design_id),
            "buyer_id": normalize_uuid(user_id),
        })
        if purchase:
            return {
                "can_access": True,
                "reason": AccessReason.PURCHASED,
                "details": {"purchased_at": purchase.get("created_at")},
            }
        return {"can_access": False, "reason": AccessReason.NOT_PURCHASED}
