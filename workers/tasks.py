# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Background work that shouldn't block an HTTP request.
#
# Tasks:
# - analyze_project_file: Parse an uploaded STL and store its analysis
# =============================================================================

import logging
from typing import Any
from celery import shared_task, current_task

logger = logging.getLogger(__name__)


# =============================================================================
# Task State Updates
# =============================================================================

def update_progress(current: int, total: int, message: str = "Processing..."):
    """
    Update task progress for polling.

    Args:
        current: Current step number
        total: Total steps
        message: Status message
    """
    if current_task:
        current_task.update_state(
            state="PROGRESS",
            meta={
                "current": current,
                "total": total,
                "percent": int((current / total) * 100),
                "message": message,
            }
        )


# =============================================================================
# STL Analysis Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.analyze_project_file")
def analyze_project_file(
    self,
    project_id: str,
    file_id: str,
) -> dict[str, Any]:
    """
    Analyze an STL file attached to a project.

    1. Download the file from storage
    2. Measure the mesh and detect printability issues
    3. Save the analysis on the project_files row
    4. Notify the project owner (project_file_analyzed)

    Args:
        project_id: The project UUID
        file_id: The project file UUID

    Returns:
        Dict with:
        - success: bool
        - file_id: The analyzed file
        - analysis: MeshAnalysis as a dict (if successful)
        - error: Reason (if not)
    """
    from app.websocket.broadcast import publish_file_analyzed
    from core.services.project_service import ProjectService
    from core.services.storage_service import StorageService
    from lib.mesh_analysis import MeshAnalysisError, analyze_stl

    logger.info(f"Analyzing file {file_id} of project {project_id}")

    project = ProjectService.get_project(project_id)
    owner_id = str(project["user_id"])
    row = ProjectService.get_file(project_id, file_id)

    update_progress(1, 3, "Downloading file...")
    content = StorageService.download_file(row["storage_path"])

    update_progress(2, 3, "Analyzing mesh...")
    try:
        analysis = analyze_stl(content).model_dump(mode="json")
    except MeshAnalysisError as e:
        logger.warning(f"File {file_id} is not a usable mesh: {e.message}")
        publish_file_analyzed(owner_id, project_id, file_id, None, error=e.message)
        return {"success": False, "file_id": file_id, "error": e.message}

    update_progress(3, 3, "Saving results...")
    ProjectService.save_file_analysis(file_id, analysis)
    publish_file_analyzed(owner_id, project_id, file_id, analysis)

    logger.info(
        f"File {file_id} analyzed: {analysis['triangles']} triangles, "
        f"watertight={analysis['is_watertight']}"
    )
    return {"success": True, "file_id": file_id, "analysis": analysis}
