# =============================================================================
# core/models/project.py - Project Schemas
# =============================================================================
# A project is a client's print request: a name, a material, the bounding box
# of the part and one or more STL files. Makers bid on active projects.
#
# Lifecycle:
#   active -> reserved (a bid was accepted) -> completed (delivery confirmed)
# Deletion is a soft delete (deleted_at) allowed only while active.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProjectStatus(str, Enum):
    """
    Possible states for a project.

    - active: open for bids
    - reserved: a bid was accepted, the maker is printing
    - completed: the client confirmed delivery (terminal)
    """
    ACTIVE = "active"
    RESERVED = "reserved"
    COMPLETED = "completed"


class ProjectSpecifications(BaseModel):
    """
    Technical details of the requested part.

    Dimensions are the part's bounding box in millimetres. Extra keys
    (infill, layer height, colour...) are kept as-is.
    """
    model_config = ConfigDict(extra="allow")

    dimension_x: float = Field(..., gt=0, le=10000, description="Width in mm")
    dimension_y: float = Field(..., gt=0, le=10000, description="Depth in mm")
    dimension_z: float = Field(..., gt=0, le=10000, description="Height in mm")

    def dimensions(self) -> tuple[float, float, float]:
        return (self.dimension_x, self.dimension_y, self.dimension_z)


class ProjectCreate(BaseModel):
    """
    Body of POST /projects.

    Example:
        {
            "name": "Drone arm bracket",
            "description": "Replacement bracket, needs to be stiff",
            "material": "PETG",
            "specifications": {"dimension_x": 80, "dimension_y": 25, "dimension_z": 12}
        }
    """
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    material: str = Field(..., min_length=1, max_length=100)
    specifications: ProjectSpecifications


class MeshIssue(BaseModel):
    """A printability problem found in an uploaded model."""
    type: str = Field(..., description="'error' or 'warn'")
    title: str
    desc: str
    severity: int = Field(..., ge=1, le=3)


class MeshAnalysis(BaseModel):
    """Geometry statistics of one STL file, computed by the analysis worker."""
    triangles: int
    vertices: int
    dimensions: dict[str, float]
    volume: float | None = None
    is_watertight: bool
    body_count: int = 1
    degenerate_faces: int = 0
    duplicate_faces: int = 0
    is_high_poly: bool = False
    issues: list[MeshIssue] = Field(default_factory=list)


class ProjectFileResponse(BaseModel):
    """An STL file attached to a project."""
    id: UUID
    project_id: UUID
    file_name: str
    storage_path: str
    size_bytes: int = 0
    analysis: MeshAnalysis | None = None
    created_at: datetime | None = None


class ProjectResponse(BaseModel):
    """
    Project as returned by the API.

    `bid_count` is filled in listings, `files` on detail views.
    """
    id: UUID
    user_id: UUID
    name: str
    description: str
    material: str
    specifications: dict[str, Any] = Field(default_factory=dict)
    status: ProjectStatus
    deleted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    bid_count: int | None = None
    fits_printer: bool | None = None
    files: list[ProjectFileResponse] | None = None


class ProjectList(BaseModel):
    """Paginated project listing."""
    projects: list[ProjectResponse]
    limit: int
    offset: int
