# =============================================================================
# app/routers/designs.py - Marketplace Design Endpoints
# =============================================================================
# Makers publish printable designs; anyone signed in can browse them.
# Mounted under /api/v1/marketplace.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.auth import get_current_user, AuthUser
from core.models.design import DesignAccess, DesignCreate, DesignResponse, DesignUpdate
from core.services.design_service import DesignService

router = APIRouter()

DesignId = Annotated[UUID, Path(description="Design UUID")]


@router.get("/designs", response_model=list[DesignResponse])
async def list_designs(
    user: AuthUser = Depends(get_current_user),
):
    """Active designs, newest first."""
    return [DesignResponse(**d) for d in DesignService.list_designs()]


@router.post("/designs", response_model=DesignResponse, status_code=201)
async def create_design(
    request: DesignCreate,
    user: AuthUser = Depends(get_current_user),
):
    """Publish a design (makers only)."""
    return DesignResponse(**DesignService.create_design(user.id, request))


@router.get("/my-designs", response_model=list[DesignResponse])
async def list_my_designs(
    user: AuthUser = Depends(get_current_user),
):
    return [DesignResponse(**d) for d in DesignService.list_my_designs(user.id)]


@router.get("/designs/{design_id}", response_model=DesignResponse)
async def get_design(
    design_id: DesignId,
    user: AuthUser = Depends(get_current_user),
):
    return DesignResponse(**DesignService.get_design_detail(design_id))


@router.put("/designs/{design_id}", response_model=DesignResponse)
async def update_design(
    design_id: DesignId,
    request: DesignUpdate,
    user: AuthUser = Depends(get_current_user),
):
    return DesignResponse(**DesignService.update_design(user.id, design_id, request))


@router.delete("/designs/{design_id}", response_model=DesignResponse)
async def archive_design(
    design_id: DesignId,
    user: AuthUser = Depends(get_current_user),
):
    """Archive a design. It disappears from listings but stays readable."""
    return DesignResponse(**DesignService.archive_design(user.id, design_id))


@router.get("/designs/{design_id}/access", response_model=DesignAccess)
async def check_design_access(
    design_id: DesignId,
    user: AuthUser = Depends(get_current_user),
):
    """Whether the caller may download the design files, and why."""
    return DesignAccess(**DesignService.check_access(user.id, design_id))
