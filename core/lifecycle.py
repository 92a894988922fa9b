# =============================================================================
# core/lifecycle.py - Project and Bid State Machines
# =============================================================================
# Pure functions guarding every status change. Services call these before
# writing anything, so an illegal transition never reaches the database.
#
#   Project: active -> reserved -> completed
#   Bid:     pending -> accepted | rejected
# =============================================================================

from typing import Any, Iterable

from app.exceptions import InvalidStateError
from core.models.bid import BidStatus
from core.models.project import ProjectStatus

PROJECT_TRANSITIONS: dict[ProjectStatus, set[ProjectStatus]] = {
    ProjectStatus.ACTIVE: {ProjectStatus.RESERVED},
    ProjectStatus.RESERVED: {ProjectStatus.COMPLETED},
    ProjectStatus.COMPLETED: set(),
}

BID_TRANSITIONS: dict[BidStatus, set[BidStatus]] = {
    BidStatus.PENDING: {BidStatus.ACCEPTED, BidStatus.REJECTED},
    BidStatus.ACCEPTED: set(),
    BidStatus.REJECTED: set(),
}


def project_status(project: dict[str, Any]) -> ProjectStatus:
    return ProjectStatus(project.get("status", ProjectStatus.ACTIVE.value))


def bid_status(bid: dict[str, Any]) -> BidStatus:
    return BidStatus(bid.get("status", BidStatus.PENDING.value))


def is_deleted(project: dict[str, Any]) -> bool:
    return project.get("deleted_at") is not None


def ensure_project_transition(project: dict[str, Any], target: ProjectStatus) -> None:
    """Raise InvalidStateError unless `project` may move to `target`."""
    current = project_status(project)
    if is_deleted(project):
        raise InvalidStateError(
            "Project has been deleted",
            details={"project_id": str(project.get("id"))},
        )
    if target not in PROJECT_TRANSITIONS[current]:
        raise InvalidStateError(
            f"Project cannot move from {current.value} to {target.value}",
            details={"from": current.value, "to": target.value},
        )


def ensure_bid_transition(bid: dict[str, Any], target: BidStatus) -> None:
    """Raise InvalidStateError unless `bid` may move to `target`."""
    current = bid_status(bid)
    if target not in BID_TRANSITIONS[current]:
        raise InvalidStateError(
            f"Bid is already {current.value}",
            details={"from": current.value, "to": target.value},
        )


def ensure_open_for_bids(project: dict[str, Any]) -> None:
    if is_deleted(project):
        raise InvalidStateError("Cannot bid on a deleted project")
    if project_status(project) != ProjectStatus.ACTIVE:
        raise InvalidStateError("Project is no longer accepting bids")


def ensure_bid_editable(bid: dict[str, Any], project: dict[str, Any]) -> None:
    """A maker may only edit or withdraw a pending bid on a live project."""
    if bid_status(bid) != BidStatus.PENDING:
        raise InvalidStateError("Only pending bids can be changed")
    if is_deleted(project):
        raise InvalidStateError("Cannot change a bid on a deleted project")


def ensure_deletable(project: dict[str, Any]) -> None:
    if is_deleted(project):
        raise InvalidStateError("Project is already deleted")
    if project_status(project) != ProjectStatus.ACTIVE:
        raise InvalidStateError(
            "Only active projects can be deleted",
            details={"status": project_status(project).value},
        )


def can_rebid(existing_bids: Iterable[dict[str, Any]]) -> bool:
    """A maker may bid again only if every previous bid was rejected."""
    return all(bid_status(bid) == BidStatus.REJECTED for bid in existing_bids)


def pick_my_bid(bids: list[dict[str, Any]]) -> dict[str, Any] | None:
    """
    Choose the bid to show a maker for a project.

    Accepted first, then the newest pending, then the newest of any status.
    """
    if not bids:
        return None
    newest_first = sorted(bids, key=lambda b: b.get("created_at") or "", reverse=True)
    for wanted in (BidStatus.ACCEPTED, BidStatus.PENDING):
        for bid in newest_first:
            if bid_status(bid) == wanted:
                return bid
    return newest_first[0]


def fits_build_volume(
    part: tuple[float, float, float],
    printer: tuple[float | None, float | None, float | None],
) -> bool:
    """
    Whether a part fits a printer's build volume in some axis-aligned orientation.

    Unknown printer limits count as "fits".
    """
    if any(limit is None for limit in printer):
        return True
    return all(p <= limit for p, limit in zip(sorted(part), sorted(printer)))
