# =============================================================================
# lib/mesh_analysis.py - STL Geometry Analysis
# =============================================================================
# Turns an uploaded STL file into a MeshAnalysis: size, volume and the
# printability issues a maker should know about before bidding.
#
# Usage:
#   from lib.mesh_analysis import analyze_stl
#   analysis = analyze_stl(stl_bytes)
#   print(analysis.dimensions, analysis.is_watertight)
# =============================================================================

import io
import logging

import numpy as np
import trimesh

from core.models.project import MeshAnalysis, MeshIssue
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

HIGH_POLY_THRESHOLD = 100_000
DEGENERATE_AREA = 1e-10


class MeshAnalysisError(ApplicationError):
    """Raised when a file cannot be read as a triangle mesh."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            code="MESH_ANALYSIS_FAILED",
            suggestion="Export the model again as a binary or ASCII STL",
            **kwargs,
        )


def load_stl(content: bytes) -> trimesh.Trimesh:
    """Parse STL bytes into a single mesh."""
    if not content:
        raise MeshAnalysisError("File is empty")
    try:
        mesh = trimesh.load(io.BytesIO(content), file_type="stl", force="mesh")
    except Exception as e:
        raise MeshAnalysisError(f"Could not parse STL: {e}")
    if not isinstance(mesh, trimesh.Trimesh) or len(mesh.faces) == 0:
        raise MeshAnalysisError("No geometry found in STL file")
    return mesh


def analyze_mesh(mesh: trimesh.Trimesh) -> MeshAnalysis:
    """Compute statistics and printability issues for a mesh."""
    issues: list[MeshIssue] = []

    dims = mesh.bounds[1] - mesh.bounds[0]
    dimensions = {
        "x": round(float(dims[0]), 3),
        "y": round(float(dims[1]), 3),
        "z": round(float(dims[2]), 3),
    }
    is_watertight = bool(mesh.is_watertight)
    volume = round(float(mesh.volume), 4) if mesh.is_volume else None

    if not is_watertight:
        issues.append(MeshIssue(
            type="error",
            title="Mesh not watertight",
            desc="The mesh has open boundaries or inconsistent face winding. Slicers may produce artifacts.",
            severity=3,
        ))

    degenerate = int(np.sum(mesh.area_faces < DEGENERATE_AREA))
    if degenerate:
        issues.append(MeshIssue(
            type="warn",
            title="Degenerate triangles",
            desc=f"{degenerate:,} zero-area triangles found.",
            severity=2,
        ))

    _, face_counts = np.unique(np.sort(mesh.faces, axis=1), axis=0, return_counts=True)
    duplicates = int(np.sum(face_counts > 1))
    if duplicates:
        issues.append(MeshIssue(
            type="warn",
            title="Duplicate faces",
            desc=f"{duplicates:,} duplicate triangles found.",
            severity=1,
        ))

    triangles = len(mesh.faces)
    is_high_poly = triangles > HIGH_POLY_THRESHOLD
    if is_high_poly:
        issues.append(MeshIssue(
            type="warn",
            title="Excessive polygon count",
            desc=f"{triangles:,} triangles. Slicing may be slow.",
            severity=2,
        ))

    body_count = len(mesh.split(only_watertight=False))
    if body_count > 1:
        issues.append(MeshIssue(
            type="warn",
            title="Disconnected parts",
            desc=f"{body_count} separate bodies in one file.",
            severity=1,
        ))

    issues.sort(key=lambda issue: issue.severity, reverse=True)

    return MeshAnalysis(
        triangles=triangles,
        vertices=len(mesh.vertices),
        dimensions=dimensions,
        volume=volume,
        is_watertight=is_watertight,
        body_count=body_count,
        degenerate_faces=degenerate,
        duplicate_faces=duplicates,
        is_high_poly=is_high_poly,
        issues=issues,
    )


def analyze_stl(content: bytes) -> MeshAnalysis:
    """Parse and analyze STL bytes."""
    mesh = load_stl(content)
    analysis = analyze_mesh(mesh)
    logger.info(
        f"Analyzed mesh: {analysis.triangles} triangles, "
        f"{analysis.dimensions} mm, watertight={analysis.is_watertight}"
    )
    return analysis
