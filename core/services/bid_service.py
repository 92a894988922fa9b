# =============================================================================
# core/services/bid_service.py - Bidding / Negotiation State Machine
# =============================================================================
# Makers bid on active projects; the owning client accepts one bid (project
# becomes reserved, the other pending bids are rejected) and later confirms
# delivery (project becomes completed).
#
# Every mutating method returns the NotificationEvents the change produces.
# The caller delivers them after the write succeeded.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    BidNotFoundError,
    DuplicateBidError,
    InvalidStateError,
    PermissionDeniedError,
    RoleRequiredError,
)
from core.lifecycle import (
    can_rebid,
    ensure_bid_editable,
    ensure_bid_transition,
    ensure_open_for_bids,
    ensure_project_transition,
    pick_my_bid,
)
from core.models.bid import BidCreate, BidStatus, BidUpdate
from core.models.notification import EventType, NotificationEvent
from core.models.project import ProjectStatus
from core.models.user import UserResponse, UserType
from core.services.maker_profile_service import MakerProfileService
from core.services.project_service import ProjectService, clamp_page
from core.services.review_service import ReviewService
from core.services.user_service import UserService
from lib.supabase_client import NOT_NULL, SupabaseClient, SupabaseClientError
from lib.utils import normalize_uuid, same_id, to_money, utc_now_iso

logger = logging.getLogger(__name__)

BIDS_TABLE = "bids"
PROJECTS_TABLE = "projects"

BidResult = tuple[dict[str, Any], list[NotificationEvent]]


def _display_name(user: dict[str, Any] | None) -> str:
    if not user:
        return "A client"
    return UserResponse(**user).display_name or "A client"


class BidService:
    """Service for bid operations."""

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @staticmethod
    def get_bid(bid_id: UUID | str) -> dict[str, Any]:
        """
        Raises:
            BidNotFoundError: If the bid doesn't exist
        """
        bid = SupabaseClient.fetch_by_id(BIDS_TABLE, normalize_uuid(bid_id))
        if not bid:
            raise BidNotFoundError(str(bid_id))
        return bid

    @staticmethod
    def _bid_for_owner(bid_id: UUID | str, user_id: UUID | str) -> tuple[dict[str, Any], dict[str, Any]]:
        """Bid plus its project, checking the caller owns the project."""
        bid = BidService.get_bid(bid_id)
        project = ProjectService.get_project(bid["project_id"])
        if not same_id(project["user_id"], user_id):
            raise PermissionDeniedError("Only the project owner can manage its bids")
        return bid, project

    @staticmethod
    def _bid_for_maker(bid_id: UUID | str, user_id: UUID | str) -> tuple[dict[str, Any], dict[str, Any]]:
        """Bid plus its project, checking the caller placed the bid."""
        bid = BidService.get_bid(bid_id)
        if not same_id(bid["maker_id"], user_id):
            raise PermissionDeniedError("You can only change your own bids")
        project = ProjectService.get_project(bid["project_id"])
        return bid, project

    @staticmethod
    def _set_status(bid_id: Any, status: BidStatus, **extra: Any) -> dict[str, Any]:
        """
        Move a pending bid to `status`.

        The write only matches while the bid is still pending.

        Raises:
            InvalidStateError: If the bid changed since it was read
        """
        rows = SupabaseClient.update(
            BIDS_TABLE,
            {"status": status, "updated_at": utc_now_iso(), **extra},
            {"id": normalize_uuid(bid_id), "status": BidStatus.PENDING},
        )
        if not rows:
            raise InvalidStateError("Bid is no longer pending", details={"bid_id": str(bid_id)})
        return rows[0]

    @staticmethod
    def _move_project(project: dict[str, Any], source: ProjectStatus, target: ProjectStatus, now: str) -> None:
        """
        Conditional project transition: matches only a live project still in `source`.

        Raises:
            InvalidStateError: If another request moved the project first
        """
        rows = SupabaseClient.update(
            PROJECTS_TABLE,
            {"status": target, "updated_at": now},
            {"id": normalize_uuid(project["id"]), "status": source, "deleted_at": None},
        )
        if not rows:
            raise InvalidStateError(
                f"Project is no longer {source.value}",
                details={"project_id": str(project["id"])},
            )

    @staticmethod
    def _reject_pending(project: dict[str, Any], reason: str) -> list[NotificationEvent]:
        """Reject every pending bid of a project and notify their makers."""
        rejected = SupabaseClient.update(
            BIDS_TABLE,
            {"status": BidStatus.REJECTED, "updated_at": utc_now_iso()},
            {"project_id": normalize_uuid(project["id"]), "status": BidStatus.PENDING},
        )
        return [
            NotificationEvent.create(
                EventType.BID_REJECTED,
                bid["maker_id"],
                project_id=project["id"],
                bid_id=bid["id"],
                project_name=project.get("name"),
                reason=reason,
            )
            for bid in rejected
        ]

    @staticmethod
    def enrich_with_makers(bids: list[dict[str, Any]]) -> list[dict[str, Any]]:
        maker_ids = [bid["maker_id"] for bid in bids]
        users = UserService.get_users(maker_ids)
        profiles = MakerProfileService.get_profiles(maker_ids)
        for bid in bids:
            bid["maker"] = users.get(str(bid["maker_id"]))
            bid["maker_profile"] = profiles.get(str(bid["maker_id"]))
        return bids

    # -------------------------------------------------------------------------
    # Maker operations
    # -------------------------------------------------------------------------

    @staticmethod
    def submit_bid(user_id: UUID | str, project_id: UUID | str, data: BidCreate) -> BidResult:
        """
        Place a pending bid on an active project.

        Raises:
            RoleRequiredError: If the caller isn't a maker with a profile
            InvalidStateError: If the project is deleted or not active
            DuplicateBidError: If the maker already has a live bid here
        """
        UserService.require_role(user_id, UserType.MAKER, "place bids")
        if not MakerProfileService.find_profile(user_id):
            raise RoleRequiredError("maker", "place bids once their maker profile is complete")

        project = ProjectService.get_project(project_id)
        ensure_open_for_bids(project)

        previous = SupabaseClient.fetch_many(BIDS_TABLE, {
            "project_id": normalize_uuid(project_id),
            "maker_id": normalize_uuid(user_id),
        })
        if not can_rebid(previous):
            raise DuplicateBidError(str(project_id))

        now = utc_now_iso()
        bid = SupabaseClient.insert(BIDS_TABLE, {
            "project_id": normalize_uuid(project_id),
            "maker_id": normalize_uuid(user_id),
            "price": to_money(data.price),
            "delivery_days": data.delivery_days,
            "message": data.message,
            "status": BidStatus.PENDING,
            "is_read": False,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Maker {user_id} bid {bid['price']} EUR on project {project_id}")

        event = NotificationEvent.create(
            EventType.NEW_BID,
            project["user_id"],
            project_id=project_id,
            bid_id=bid["id"],
            maker_id=user_id,
            project_name=project.get("name"),
        )
        return bid, [event]

    @staticmethod
    def update_bid(user_id: UUID | str, bid_id: UUID | str, data: BidUpdate) -> BidResult:
        """
        Edit a pending bid.

        Raises:
            PermissionDeniedError: If the caller didn't place the bid
            InvalidStateError: If the bid isn't pending or the project is deleted
        """
        bid, project = BidService._bid_for_maker(bid_id, user_id)
        ensure_bid_editable(bid, project)

        changes: dict[str, Any] = {"updated_at": utc_now_iso(), "is_read": False}
        if data.price is not None:
            changes["price"] = to_money(data.price)
        if data.delivery_days is not None:
            changes["delivery_days"] = data.delivery_days
        if data.message is not None:
            changes["message"] = data.message

        rows = SupabaseClient.update(
            BIDS_TABLE, changes, {"id": normalize_uuid(bid_id), "status": BidStatus.PENDING}
        )
        if not rows:
            raise InvalidStateError("Only pending bids can be changed")
        logger.info(f"Maker {user_id} updated bid {bid_id}")

        event = NotificationEvent.create(
            EventType.BID_UPDATED,
            project["user_id"],
            project_id=project["id"],
            bid_id=bid_id,
            maker_id=user_id,
        )
        return rows[0], [event]

    @staticmethod
    def withdraw_bid(user_id: UUID | str, bid_id: UUID | str) -> BidResult:
        """
        Delete a pending bid.

        Raises:
            PermissionDeniedError: If the caller didn't place the bid
            InvalidStateError: If the bid isn't pending or the project is deleted
        """
        bid, project = BidService._bid_for_maker(bid_id, user_id)
        ensure_bid_editable(bid, project)

        removed = SupabaseClient.delete(
            BIDS_TABLE, {"id": normalize_uuid(bid_id), "status": BidStatus.PENDING}
        )
        if not removed:
            raise InvalidStateError("Only pending bids can be changed")
        logger.info(f"Maker {user_id} withdrew bid {bid_id}")

        event = NotificationEvent.create(
            EventType.BID_DELETED,
            project["user_id"],
            project_id=project["id"],
            bid_id=bid_id,
            maker_id=user_id,
        )
        return bid, [event]

    @staticmethod
    def list_my_bids(
        user_id: UUID | str,
        limit: int | None = None,
        offset: int | None = 0,
    ) -> tuple[list[dict[str, Any]], int, int]:
        """A maker's bids, newest first, each with its project (deleted included)."""
        UserService.require_role(user_id, UserType.MAKER, "list their bids")
        limit, offset = clamp_page(limit, offset)

        bids = SupabaseClient.fetch_many(
            BIDS_TABLE,
            {"maker_id": normalize_uuid(user_id)},
            order_by="created_at",
            desc=True,
            limit=limit,
            offset=offset,
        )
        projects = SupabaseClient.fetch_many(
            PROJECTS_TABLE, {"id": sorted({str(b["project_id"]) for b in bids})}
        )
        by_id = {str(p["id"]): p for p in projects}
        for bid in bids:
            bid["project"] = by_id.get(str(bid["project_id"]))
        return bids, limit, offset

    @staticmethod
    def get_my_bid(user_id: UUID | str, project_id: UUID | str) -> dict[str, Any] | None:
        """The bid a maker should see for a project (accepted > pending > latest)."""
        bids = SupabaseClient.fetch_many(BIDS_TABLE, {
            "project_id": normalize_uuid(project_id),
            "maker_id": normalize_uuid(user_id),
        })
        return pick_my_bid(bids)

    # -------------------------------------------------------------------------
    # Client operations
    # -------------------------------------------------------------------------

    @staticmethod
    def list_bids_for_project(user_id: UUID | str, project_id: UUID | str) -> list[dict[str, Any]]:
        """
        Bids on a project, newest first, with maker details.

        Visible to the project owner and to makers. Listing by the owner
        marks every bid as read.
        """
        project = ProjectService.get_project(project_id)
        is_owner = same_id(project["user_id"], user_id)
        if not is_owner:
            viewer = UserService.get_user(user_id)
            if viewer.get("user_type") != UserType.MAKER.value:
                raise PermissionDeniedError("Only the project owner and makers can view these bids")

        bids = SupabaseClient.fetch_many(
            BIDS_TABLE,
            {"project_id": normalize_uuid(project_id)},
            order_by="created_at",
            desc=True,
            limit=settings.MAX_BIDS_PER_LISTING,
        )
        if is_owner and any(not bid.get("is_read") for bid in bids):
            BidService.mark_bids_read(user_id, project_id)
            for bid in bids:
                bid["is_read"] = True
        return BidService.enrich_with_makers(bids)

    @staticmethod
    def get_accepted_bid(user_id: UUID | str, project_id: UUID | str) -> dict[str, Any] | None:
        """Accepted bid of a project, visible to the owner and the winning maker."""
        project = ProjectService.get_project(project_id)
        bid = ReviewService.accepted_bid(project_id)
        if not bid:
            return None
        if not (same_id(project["user_id"], user_id) or same_id(bid["maker_id"], user_id)):
            raise PermissionDeniedError("Only the client and the chosen maker can see this bid")
        return BidService.enrich_with_makers([bid])[0]

    @staticmethod
    def accept_bid(user_id: UUID | str, bid_id: UUID | str) -> BidResult:
        """
        Accept a pending bid.

        The project becomes reserved and every other pending bid is rejected.

        Raises:
            PermissionDeniedError: If the caller doesn't own the project
            InvalidStateError: If the bid isn't pending or the project isn't active
        """
        bid, project = BidService._bid_for_owner(bid_id, user_id)
        ensure_bid_transition(bid, BidStatus.ACCEPTED)
        ensure_project_transition(project, ProjectStatus.RESERVED)

        # Reserving the project first makes concurrent accepts on it exclusive
        now = utc_now_iso()
        BidService._move_project(project, ProjectStatus.ACTIVE, ProjectStatus.RESERVED, now)
        try:
            accepted = BidService._set_status(bid_id, BidStatus.ACCEPTED, is_read=True)
        except InvalidStateError:
            # The bid was withdrawn or rejected meanwhile; reopen the project
            SupabaseClient.update(
                PROJECTS_TABLE,
                {"status": ProjectStatus.ACTIVE, "updated_at": utc_now_iso()},
                {"id": normalize_uuid(project["id"]), "status": ProjectStatus.RESERVED},
            )
            raise
        events = BidService._reject_pending(project, reason="other_bid_accepted")
        events.insert(0, NotificationEvent.create(
            EventType.BID_ACCEPTED,
            bid["maker_id"],
            project_id=project["id"],
            bid_id=bid_id,
            project_name=project.get("name"),
        ))

        logger.info(f"Client {user_id} accepted bid {bid_id}; project {project['id']} reserved")
        return accepted, events

    @staticmethod
    def reject_bid(user_id: UUID | str, bid_id: UUID | str) -> BidResult:
        """
        Reject a pending bid.

        Raises:
            PermissionDeniedError: If the caller doesn't own the project
            InvalidStateError: If the bid isn't pending
        """
        bid, project = BidService._bid_for_owner(bid_id, user_id)
        ensure_bid_transition(bid, BidStatus.REJECTED)

        rejected = BidService._set_status(bid_id, BidStatus.REJECTED, is_read=True)
        logger.info(f"Client {user_id} rejected bid {bid_id}")

        event = NotificationEvent.create(
            EventType.BID_REJECTED,
            bid["maker_id"],
            project_id=project["id"],
            bid_id=bid_id,
            project_name=project.get("name"),
            reason="rejected_by_client",
        )
        return rejected, [event]

    @staticmethod
    def confirm_delivery(
        user_id: UUID | str,
        bid_id: UUID | str,
        rating: float | None = None,
        comment: str | None = None,
    ) -> BidResult:
        """
        Confirm the parts arrived: the project becomes completed.

        With a rating, the client's review of the maker is recorded too.

        Raises:
            PermissionDeniedError: If the caller doesn't own the project
            InvalidStateError: If the bid isn't accepted, delivery was already
                confirmed or the project isn't reserved
        """
        bid, project = BidService._bid_for_owner(bid_id, user_id)
        if bid.get("status") != BidStatus.ACCEPTED.value:
            raise InvalidStateError("Only an accepted bid can be marked as delivered")
        if bid.get("delivery_confirmed_at"):
            raise InvalidStateError("Delivery was already confirmed")
        ensure_project_transition(project, ProjectStatus.COMPLETED)

        now = utc_now_iso()
        rows = SupabaseClient.update(
            BIDS_TABLE,
            {"delivery_confirmed_at": now, "updated_at": now},
            {
                "id": normalize_uuid(bid_id),
                "status": BidStatus.ACCEPTED,
                "delivery_confirmed_at": None,
            },
        )
        if not rows:
            raise InvalidStateError("Delivery was already confirmed")
        BidService._move_project(project, ProjectStatus.RESERVED, ProjectStatus.COMPLETED, now)
        events = BidService._reject_pending(project, reason="project_completed")

        # Delivery is already recorded; a failed rating is only logged
        if rating is not None:
            try:
                ReviewService.create_review(project["id"], user_id, bid["maker_id"], rating, comment)
            except SupabaseClientError as e:
                logger.error(f"Could not save rating for project {project['id']}: {e}")

        client = UserService.find_user(user_id)
        events.insert(0, NotificationEvent.create(
            EventType.DELIVERY_CONFIRMED,
            bid["maker_id"],
            project_id=project["id"],
            bid_id=bid_id,
            client_id=user_id,
            client_name=_display_name(client),
            project_name=project.get("name"),
        ))

        logger.info(f"Client {user_id} confirmed delivery of bid {bid_id}; project {project['id']} completed")
        return rows[0], events

    # -------------------------------------------------------------------------
    # Read tracking
    # -------------------------------------------------------------------------

    @staticmethod
    def mark_bids_read(user_id: UUID | str, project_id: UUID | str) -> int:
        """Mark every bid of an owned project as read. Returns rows changed."""
        ProjectService.get_owned_project(project_id, user_id)
        rows = SupabaseClient.update(
            BIDS_TABLE,
            {"is_read": True},
            {"project_id": normalize_uuid(project_id), "is_read": False},
        )
        return len(rows)

    @staticmethod
    def unread_bid_count(user_id: UUID | str, project_id: UUID | str) -> int:
        ProjectService.get_owned_project(project_id, user_id)
        return SupabaseClient.count(BIDS_TABLE, {
            "project_id": normalize_uuid(project_id),
            "is_read": False,
        })

    @staticmethod
    def total_unread_bids(user_id: UUID | str) -> int:
        """Unread bids across a client's active and reserved projects."""
        projects = SupabaseClient.fetch_many(
            PROJECTS_TABLE,
            {
                "user_id": normalize_uuid(user_id),
                "status": [ProjectStatus.ACTIVE, ProjectStatus.RESERVED],
                "deleted_at": None,
            },
            columns="id",
        )
        return SupabaseClient.count(BIDS_TABLE, {
            "project_id": [str(p["id"]) for p in projects],
            "is_read": False,
        })

    # -------------------------------------------------------------------------
    # Maker stats
    # -------------------------------------------------------------------------

    @staticmethod
    def maker_stats(user_id: UUID | str) -> dict[str, int]:
        """active_bids, won_projects and completed_projects of a maker."""
        UserService.require_role(user_id, UserType.MAKER, "view maker statistics")
        maker = normalize_uuid(user_id)

        pending = SupabaseClient.fetch_many(
            BIDS_TABLE, {"maker_id": maker, "status": BidStatus.PENDING}, columns="id, project_id"
        )
        live_projects = SupabaseClient.fetch_many(
            PROJECTS_TABLE,
            {"id": sorted({str(b["project_id"]) for b in pending}), "deleted_at": None},
            columns="id",
        )
        live_ids = {str(p["id"]) for p in live_projects}

        return {
            "active_bids": sum(1 for b in pending if str(b["project_id"]) in live_ids),
            "won_projects": SupabaseClient.count(
                BIDS_TABLE, {"maker_id": maker, "status": BidStatus.ACCEPTED}
            ),
            "completed_projects": SupabaseClient.count(
                BIDS_TABLE,
                {"maker_id": maker, "status": BidStatus.ACCEPTED, "delivery_confirmed_at": NOT_NULL},
            ),
        }
