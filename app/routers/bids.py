# =============================================================================
# app/routers/bids.py - Bid Endpoints
# =============================================================================
# Bid actions addressed by bid id. Placing a bid and listing the bids of a
# project live in app/routers/projects.py.
#
# Lifecycle: pending -> accepted | rejected
# Accepting reserves the project and rejects the other pending bids;
# confirming delivery completes the project.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel

from app.auth import get_current_user, AuthUser
from app.dependencies import PageDep
from app.websocket import dispatch_events
from core.models.bid import BidResponse, BidUpdate, DeliveryConfirmation
from core.services.bid_service import BidService

router = APIRouter()

BidId = Annotated[UUID, Path(description="Bid UUID")]


class BidList(BaseModel):
    bids: list[BidResponse]
    limit: int
    offset: int


class MakerStatsResponse(BaseModel):
    active_bids: int
    won_projects: int
    completed_projects: int


# =============================================================================
# Maker Views
# =============================================================================

@router.get("/my-bids", response_model=BidList)
async def list_my_bids(
    page: PageDep,
    user: AuthUser = Depends(get_current_user),
):
    """The calling maker's bids, each with its project."""
    bids, limit, offset = BidService.list_my_bids(user.id, page.limit, page.offset)
    return BidList(bids=[BidResponse(**b) for b in bids], limit=limit, offset=offset)


@router.get("/stats", response_model=MakerStatsResponse)
async def maker_stats(
    user: AuthUser = Depends(get_current_user),
):
    return MakerStatsResponse(**BidService.maker_stats(user.id))


# =============================================================================
# Maker Actions
# =============================================================================

@router.patch("/{bid_id}", response_model=BidResponse)
async def update_bid(
    bid_id: BidId,
    request: BidUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Change price, delivery time or message of a pending bid."""
    bid, events = BidService.update_bid(user.id, bid_id, request)
    await dispatch_events(events)
    return BidResponse(**bid)


@router.delete("/{bid_id}")
async def withdraw_bid(
    bid_id: BidId,
    user: AuthUser = Depends(get_current_user),
):
    """Withdraw a pending bid."""
    _, events = BidService.withdraw_bid(user.id, bid_id)
    await dispatch_events(events)
    return {"deleted": True, "bid_id": str(bid_id)}


# =============================================================================
# Client Actions
# =============================================================================

@router.put("/{bid_id}/accept", response_model=BidResponse)
async def accept_bid(
    bid_id: BidId,
    user: AuthUser = Depends(get_current_user),
):
    """
    Accept a bid.

    The project becomes reserved and every other pending bid is rejected;
    each affected maker is notified.
    """
    bid, events = BidService.accept_bid(user.id, bid_id)
    await dispatch_events(events)
    return BidResponse(**bid)


@router.put("/{bid_id}/reject", response_model=BidResponse)
async def reject_bid(
    bid_id: BidId,
    user: AuthUser = Depends(get_current_user),
):
    bid, events = BidService.reject_bid(user.id, bid_id)
    await dispatch_events(events)
    return BidResponse(**bid)


@router.put("/{bid_id}/confirm-delivery", response_model=BidResponse)
async def confirm_delivery(
    bid_id: BidId,
    request: DeliveryConfirmation | None = None,
    user: AuthUser = Depends(get_current_user),
):
    """
    Confirm the printed parts arrived and complete the project.

    Optionally rates the maker in the same call.
    """
    request = request or DeliveryConfirmation()
    bid, events = BidService.confirm_delivery(user.id, bid_id, request.rating, request.comment)
    await dispatch_events(events)
    return BidResponse(**bid)
