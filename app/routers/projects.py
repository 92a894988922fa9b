# =============================================================================
# app/routers/projects.py - Project Endpoints
# =============================================================================
# Project CRUD, listings, STL files and the project-scoped bid views.
# All endpoints require authentication.
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Path, Query, Response, UploadFile
from pydantic import BaseModel, Field

from app.auth import get_current_user, AuthUser
from app.dependencies import PageDep
from app.websocket import dispatch_events
from core.models.bid import BidCreate, BidResponse
from core.models.project import (
    ProjectCreate,
    ProjectFileResponse,
    ProjectList,
    ProjectResponse,
    ProjectStatus,
)
from core.services.bid_service import BidService
from core.services.project_service import ProjectService
from core.services.stats_service import StatsService

logger = logging.getLogger(__name__)

router = APIRouter()

ProjectId = Annotated[UUID, Path(description="Project UUID")]


# =============================================================================
# Request/Response Models
# =============================================================================

class FileUploadResponse(BaseModel):
    """Response after attaching an STL file."""
    file: ProjectFileResponse
    analysis_queued: bool = Field(
        ..., description="False when the analysis worker couldn't be reached"
    )


class ClientStatsResponse(BaseModel):
    active_projects: int
    projects_with_pending_bids: int
    projects_with_accepted_bids: int


class CountResponse(BaseModel):
    count: int


# =============================================================================
# Listings (declared before /{project_id})
# =============================================================================

@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    request: ProjectCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Publish a new print request.

    Clients only; at most MAX_ACTIVE_PROJECTS active projects at a time.
    Attach STL files afterwards with POST /projects/{id}/files.
    """
    return ProjectResponse(**ProjectService.create_project(user.id, request))


@router.get("/my-projects", response_model=list[ProjectResponse])
async def list_my_projects(
    user: AuthUser = Depends(get_current_user),
    status: Annotated[ProjectStatus | None, Query(description="Filter by status")] = None,
):
    """The caller's projects, newest first, with bid counts."""
    return [ProjectResponse(**p) for p in ProjectService.list_my_projects(user.id, status)]


@router.get("/available", response_model=ProjectList)
async def list_available_projects(
    page: PageDep,
    user: AuthUser = Depends(get_current_user),
):
    """Active projects makers can bid on, newest first."""
    projects, limit, offset = ProjectService.list_available(user.id, page.limit, page.offset)
    return ProjectList(projects=[ProjectResponse(**p) for p in projects], limit=limit, offset=offset)


@router.get("/my-bids", response_model=ProjectList)
async def list_projects_with_my_bids(
    page: PageDep,
    user: AuthUser = Depends(get_current_user),
):
    """Projects the calling maker has bid on."""
    projects, limit, offset = ProjectService.list_projects_with_my_bids(
        user.id, page.limit, page.offset
    )
    return ProjectList(projects=[ProjectResponse(**p) for p in projects], limit=limit, offset=offset)


@router.get("/stats", response_model=ClientStatsResponse)
async def client_stats(
    user: AuthUser = Depends(get_current_user),
):
    """Dashboard counters for a client."""
    return ClientStatsResponse(**StatsService.client_stats(user.id))


@router.get("/total-unread-bids", response_model=CountResponse)
async def total_unread_bids(
    user: AuthUser = Depends(get_current_user),
):
    """Unread bids across the caller's active and reserved projects."""
    return CountResponse(count=BidService.total_unread_bids(user.id))


# =============================================================================
# Single Project
# =============================================================================

@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    """Project details with files. Deleted projects are still returned."""
    return ProjectResponse(**ProjectService.get_project_detail(project_id))


@router.delete("/{project_id}", response_model=ProjectResponse)
async def delete_project(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    """
    Soft-delete an active project.

    Pending bids are rejected and their makers notified.
    """
    project, events = ProjectService.delete_project(user.id, project_id)
    await dispatch_events(events)
    return ProjectResponse(**project)


# =============================================================================
# Files
# =============================================================================

@router.post("/{project_id}/files", response_model=FileUploadResponse, status_code=201)
async def upload_project_file(
    project_id: ProjectId,
    file: UploadFile = File(..., description="STL model"),
    user: AuthUser = Depends(get_current_user),
):
    """
    Attach an STL file to an active project.

    The mesh is analyzed in the background; the owner receives a
    project_file_analyzed event when it's done.
    """
    content = await file.read()
    row = ProjectService.add_file(user.id, project_id, file.filename or "", content)

    queued = True
    try:
        from workers.tasks import analyze_project_file

        analyze_project_file.delay(project_id=str(project_id), file_id=str(row["id"]))
    except Exception as e:
        logger.exception(f"Failed to queue analysis for file {row['id']}: {e}")
        queued = False

    return FileUploadResponse(file=ProjectFileResponse(**row), analysis_queued=queued)


@router.get("/{project_id}/files", response_model=list[ProjectFileResponse])
async def list_project_files(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    ProjectService.get_project(project_id)
    return [ProjectFileResponse(**row) for row in ProjectService.list_files(project_id)]


@router.get("/{project_id}/files/{file_id}/content")
async def download_project_file(
    project_id: ProjectId,
    file_id: Annotated[UUID, Path(description="File UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """Raw STL bytes. Not available once the project is deleted."""
    row, content = ProjectService.download_file(project_id, file_id)
    return Response(
        content=content,
        media_type="model/stl",
        headers={"Content-Disposition": f'attachment; filename="{row["file_name"]}"'},
    )


# =============================================================================
# Bids on a Project
# =============================================================================

@router.get("/{project_id}/bids", response_model=list[BidResponse])
async def list_project_bids(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    """Bids with maker details. Viewing as the owner marks them read."""
    return [BidResponse(**bid) for bid in BidService.list_bids_for_project(user.id, project_id)]


@router.post("/{project_id}/bids", response_model=BidResponse, status_code=201)
async def submit_bid(
    project_id: ProjectId,
    request: BidCreate,
    user: AuthUser = Depends(get_current_user),
):
    """Place a bid (makers with a profile only)."""
    bid, events = BidService.submit_bid(user.id, project_id, request)
    await dispatch_events(events)
    return BidResponse(**bid)


@router.get("/{project_id}/my-bid", response_model=BidResponse | None)
async def get_my_bid(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    bid = BidService.get_my_bid(user.id, project_id)
    return BidResponse(**bid) if bid else None


@router.get("/{project_id}/accepted-bid", response_model=BidResponse | None)
async def get_accepted_bid(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    bid = BidService.get_accepted_bid(user.id, project_id)
    return BidResponse(**bid) if bid else None


@router.get("/{project_id}/unread-bid-count", response_model=CountResponse)
async def unread_bid_count(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    return CountResponse(count=BidService.unread_bid_count(user.id, project_id))


@router.put("/{project_id}/mark-bids-read")
async def mark_bids_read(
    project_id: ProjectId,
    user: AuthUser = Depends(get_current_user),
):
    return {"updated": BidService.mark_bids_read(user.id, project_id)}
