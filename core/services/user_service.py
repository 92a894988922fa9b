# =============================================================================
# core/services/user_service.py - User Profiles and Roles
# =============================================================================
# Reads and updates rows of public.users (created by a Supabase Auth trigger)
# and enforces the client/maker role split used by every other service.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, utc_now_iso
from core.models.user import UserProfileUpdate, UserType
from app.exceptions import RoleRequiredError, UserNotFoundError

logger = logging.getLogger(__name__)

USERS_TABLE = "users"


class UserService:
    """Service for user profile operations."""

    @staticmethod
    def find_user(user_id: UUID | str) -> dict[str, Any] | None:
        return SupabaseClient.fetch_by_id(USERS_TABLE, normalize_uuid(user_id))

    @staticmethod
    def get_user(user_id: UUID | str) -> dict[str, Any]:
        """
        Get a user by id.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
        user = UserService.find_user(user_id)
        if not user:
            raise UserNotFoundError(str(user_id))
        return user

    @staticmethod
    def get_users(user_ids: list[UUID | str]) -> dict[str, dict[str, Any]]:
        """Fetch several users at once, keyed by id."""
        ids = sorted({str(user_id) for user_id in user_ids})
        rows = SupabaseClient.fetch_many(USERS_TABLE, {"id": ids})
        return {str(row["id"]): row for row in rows}

    @staticmethod
    def set_user_type(user_id: UUID | str, user_type: UserType) -> dict[str, Any]:
        """Switch a user between client and maker."""
        UserService.get_user(user_id)
        rows = SupabaseClient.update(
            USERS_TABLE,
            {"user_type": user_type.value, "updated_at": utc_now_iso()},
            {"id": normalize_uuid(user_id)},
        )
        logger.info(f"User {user_id} is now a {user_type.value}")
        return rows[0] if rows else UserService.get_user(user_id)

    @staticmethod
    def update_profile(user_id: UUID | str, update: UserProfileUpdate) -> dict[str, Any]:
        """Apply the provided profile fields; omitted fields stay untouched."""
        user = UserService.get_user(user_id)
        changes = update.model_dump(exclude_none=True)
        if not changes:
            return user

        changes["updated_at"] = utc_now_iso()
        rows = SupabaseClient.update(USERS_TABLE, changes, {"id": normalize_uuid(user_id)})
        logger.info(f"Updated profile for user {user_id}: {sorted(changes)}")
        return rows[0] if rows else user

    @staticmethod
    def require_role(user_id: UUID | str, role: UserType, action: str) -> dict[str, Any]:
        """
        Return the user row if the user has `role`.

        Raises:
            UserNotFoundError: If the user doesn't exist
            RoleRequiredError: If the user has another role (or none yet)
        """
        user = UserService.get_user(user_id)
        if user.get("user_type") != role.value:
            raise RoleRequiredError(role.value, action)
        return user
