# =============================================================================
# tests/test_lifecycle.py - State Machine Tests
# =============================================================================
# Pure-function tests for project and bid transitions, rebid rules,
# "my bid" selection and build-volume checks.
# =============================================================================

import pytest

from app.exceptions import InvalidStateError
from core.lifecycle import (
    can_rebid,
    ensure_bid_editable,
    ensure_bid_transition,
    ensure_deletable,
    ensure_open_for_bids,
    ensure_project_transition,
    fits_build_volume,
    pick_my_bid,
)
from core.models.bid import BidStatus
from core.models.project import ProjectStatus


def project(status="active", deleted_at=None):
    return {"id": "p1", "status": status, "deleted_at": deleted_at}


def bid(status="pending", created_at="2026-01-01T00:00:00+00:00", bid_id="b"):
    return {"id": bid_id, "status": status, "created_at": created_at}


class TestProjectTransitions:
    """active -> reserved -> completed, nothing else."""

    def test_active_to_reserved(self):
        ensure_project_transition(project("active"), ProjectStatus.RESERVED)

    def test_reserved_to_completed(self):
        ensure_project_transition(project("reserved"), ProjectStatus.COMPLETED)

    @pytest.mark.parametrize("current,target", [
        ("active", ProjectStatus.COMPLETED),
        ("reserved", ProjectStatus.ACTIVE),
        ("completed", ProjectStatus.ACTIVE),
        ("completed", ProjectStatus.RESERVED),
    ])
    def test_illegal_transitions(self, current, target):
        with pytest.raises(InvalidStateError):
            ensure_project_transition(project(current), target)

    def test_deleted_project_cannot_move(self):
        with pytest.raises(InvalidStateError, match="deleted"):
            ensure_project_transition(
                project("active", deleted_at="2026-01-01T00:00:00+00:00"), ProjectStatus.RESERVED
            )


class TestBidTransitions:
    """pending -> accepted | rejected; both terminal."""

    @pytest.mark.parametrize("target", [BidStatus.ACCEPTED, BidStatus.REJECTED])
    def test_pending_can_be_decided(self, target):
        ensure_bid_transition(bid("pending"), target)

    @pytest.mark.parametrize("current", ["accepted", "rejected"])
    def test_decided_bids_are_terminal(self, current):
        with pytest.raises(InvalidStateError, match=f"already {current}"):
            ensure_bid_transition(bid(current), BidStatus.ACCEPTED)


class TestGuards:
    """Preconditions for bidding, editing and deleting."""

    def test_only_active_projects_take_bids(self):
        ensure_open_for_bids(project("active"))
        with pytest.raises(InvalidStateError):
            ensure_open_for_bids(project("reserved"))

    def test_deleted_projects_take_no_bids(self):
        with pytest.raises(InvalidStateError):
            ensure_open_for_bids(project("active", deleted_at="2026-01-01"))

    def test_only_pending_bids_are_editable(self):
        ensure_bid_editable(bid("pending"), project())
        with pytest.raises(InvalidStateError):
            ensure_bid_editable(bid("accepted"), project())

    def test_bids_on_deleted_projects_are_frozen(self):
        with pytest.raises(InvalidStateError):
            ensure_bid_editable(bid("pending"), project(deleted_at="2026-01-01"))

    def test_only_active_projects_are_deletable(self):
        ensure_deletable(project("active"))
        for status in ("reserved", "completed"):
            with pytest.raises(InvalidStateError):
                ensure_deletable(project(status))

    def test_cannot_delete_twice(self):
        with pytest.raises(InvalidStateError, match="already deleted"):
            ensure_deletable(project(deleted_at="2026-01-01"))


class TestRebid:
    """A maker may bid again only after all previous bids were rejected."""

    def test_first_bid_allowed(self):
        assert can_rebid([]) is True

    def test_after_rejection_allowed(self):
        assert can_rebid([bid("rejected"), bid("rejected")]) is True

    @pytest.mark.parametrize("status", ["pending", "accepted"])
    def test_live_bid_blocks(self, status):
        assert can_rebid([bid("rejected"), bid(status)]) is False


class TestPickMyBid:
    """Accepted > newest pending > newest."""

    def test_no_bids(self):
        assert pick_my_bid([]) is None

    def test_accepted_wins(self):
        bids = [
            bid("pending", "2026-01-03", "new-pending"),
            bid("accepted", "2026-01-01", "accepted"),
        ]
        assert pick_my_bid(bids)["id"] == "accepted"

    def test_newest_pending(self):
        bids = [
            bid("pending", "2026-01-01", "old"),
            bid("pending", "2026-01-02", "new"),
            bid("rejected", "2026-01-03", "rejected"),
        ]
        assert pick_my_bid(bids)["id"] == "new"

    def test_newest_of_rejected(self):
        bids = [bid("rejected", "2026-01-01", "old"), bid("rejected", "2026-01-02", "new")]
        assert pick_my_bid(bids)["id"] == "new"


class TestBuildVolume:
    """Parts may be rotated to fit."""

    def test_fits_as_is(self):
        assert fits_build_volume((80, 25, 12), (200, 200, 200)) is True

    def test_fits_when_rotated(self):
        assert fits_build_volume((300, 10, 10), (10, 310, 20)) is True

    def test_too_large(self):
        assert fits_build_volume((250, 10, 10), (200, 200, 200)) is False

    def test_unknown_printer_counts_as_fit(self):
        assert fits_build_volume((900, 900, 900), (None, 200, 200)) is True
