# =============================================================================
# core/services/project_service.py - Project Business Logic
# =============================================================================
# Project CRUD, listings for clients and makers, soft deletion and STL file
# attachments. Status changes caused by bids live in BidService.
# =============================================================================

import logging
import os
from collections import Counter
from typing import Any
from uuid import UUID, uuid4

from app.config import settings
from app.exceptions import (
    ActiveProjectLimitError,
    FileNotFoundInProjectError,
    FileTooLargeError,
    InvalidFileTypeError,
    InvalidStateError,
    PermissionDeniedError,
    ProjectNotFoundError,
    TooManyFilesError,
)
from core.lifecycle import ensure_deletable, is_deleted, project_status
from core.models.bid import BidStatus
from core.models.notification import EventType, NotificationEvent
from core.models.project import ProjectCreate, ProjectStatus
from core.models.user import UserType
from core.services.maker_profile_service import MakerProfileService
from core.services.storage_service import StorageService
from core.services.user_service import UserService
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, same_id, utc_now_iso

logger = logging.getLogger(__name__)

PROJECTS_TABLE = "projects"
FILES_TABLE = "project_files"
BIDS_TABLE = "bids"

MY_PROJECTS_LIMIT = 50


def clamp_page(limit: int | None, offset: int | None) -> tuple[int, int]:
    """Apply the default and maximum page size."""
    limit = settings.DEFAULT_PAGE_SIZE if not limit or limit < 1 else limit
    return min(limit, settings.MAX_PAGE_SIZE), max(offset or 0, 0)


class ProjectService:
    """
    Service for project operations.

    Ownership is checked against the authenticated user id passed in by the
    router; the database client itself bypasses RLS.
    """

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @staticmethod
    def get_project(project_id: UUID | str) -> dict[str, Any]:
        """
        Get a project by id, including soft-deleted ones.

        Deleted projects stay readable so chats and bid histories keep
        their context.

        Raises:
            ProjectNotFoundError: If the project doesn't exist
        """
        project = SupabaseClient.fetch_by_id(PROJECTS_TABLE, normalize_uuid(project_id))
        if not project:
            raise ProjectNotFoundError(str(project_id))
        return project

    @staticmethod
    def get_owned_project(project_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """
        Get a project the caller owns.

        Raises:
            ProjectNotFoundError: If the project doesn't exist
            PermissionDeniedError: If someone else owns it
        """
        project = ProjectService.get_project(project_id)
        if not same_id(project.get("user_id"), user_id):
            raise PermissionDeniedError("You can only manage your own projects")
        return project

    @staticmethod
    def get_project_detail(project_id: UUID | str) -> dict[str, Any]:
        project = ProjectService.get_project(project_id)
        project["files"] = ProjectService.list_files(project_id)
        return project

    @staticmethod
    def attach_bid_counts(projects: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Add bid_count to each project with a single query."""
        ids = [str(p["id"]) for p in projects]
        rows = SupabaseClient.fetch_many(BIDS_TABLE, {"project_id": ids}, columns="id, project_id")
        counts = Counter(str(row["project_id"]) for row in rows)
        for project in projects:
            project["bid_count"] = counts.get(str(project["id"]), 0)
        return projects

    # -------------------------------------------------------------------------
    # Client operations
    # -------------------------------------------------------------------------

    @staticmethod
    def create_project(user_id: UUID | str, data: ProjectCreate) -> dict[str, Any]:
        """
        Create a new active project.

        Raises:
            RoleRequiredError: If the caller isn't a client
            ActiveProjectLimitError: If the client has too many active projects
        """
        UserService.require_role(user_id, UserType.CLIENT, "create projects")

        active = SupabaseClient.count(PROJECTS_TABLE, {
            "user_id": normalize_uuid(user_id),
            "status": ProjectStatus.ACTIVE,
            "deleted_at": None,
        })
        if active >= settings.MAX_ACTIVE_PROJECTS:
            raise ActiveProjectLimitError(settings.MAX_ACTIVE_PROJECTS)

        now = utc_now_iso()
        project = SupabaseClient.insert(PROJECTS_TABLE, {
            "user_id": normalize_uuid(user_id),
            "name": data.name,
            "description": data.description,
            "material": data.material,
            "specifications": data.specifications.model_dump(),
            "status": ProjectStatus.ACTIVE,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(f"Created project {project['id']} for client {user_id}")
        return project

    @staticmethod
    def list_my_projects(
        user_id: UUID | str,
        status: ProjectStatus | None = None,
    ) -> list[dict[str, Any]]:
        """Newest non-deleted projects of a client, with bid counts."""
        UserService.require_role(user_id, UserType.CLIENT, "list their projects")

        filters: dict[str, Any] = {"user_id": normalize_uuid(user_id), "deleted_at": None}
        if status:
            filters["status"] = status
        projects = SupabaseClient.fetch_many(
            PROJECTS_TABLE, filters, order_by="created_at", desc=True, limit=MY_PROJECTS_LIMIT
        )
        return ProjectService.attach_bid_counts(projects)

    @staticmethod
    def delete_project(
        user_id: UUID | str,
        project_id: UUID | str,
    ) -> tuple[dict[str, Any], list[NotificationEvent]]:
        """
        Soft-delete an active project and reject its pending bids.

        Returns:
            (deleted project, events for every maker whose bid was rejected)

        Raises:
            PermissionDeniedError: If the caller doesn't own the project
            InvalidStateError: If the project isn't active or is already deleted
        """
        project = ProjectService.get_owned_project(project_id, user_id)
        ensure_deletable(project)

        now = utc_now_iso()
        rows = SupabaseClient.update(
            PROJECTS_TABLE,
            {"deleted_at": now, "updated_at": now},
            {"id": normalize_uuid(project_id), "status": ProjectStatus.ACTIVE, "deleted_at": None},
        )
        if not rows:
            raise InvalidStateError("Only active projects can be deleted")

        rejected = SupabaseClient.update(
            BIDS_TABLE,
            {"status": BidStatus.REJECTED, "updated_at": now},
            {"project_id": normalize_uuid(project_id), "status": BidStatus.PENDING},
        )
        events = [
            NotificationEvent.create(
                EventType.BID_REJECTED,
                bid["maker_id"],
                project_id=project_id,
                bid_id=bid["id"],
                project_name=project.get("name"),
                reason="project_deleted",
            )
            for bid in rejected
        ]

        logger.info(f"Deleted project {project_id}, rejected {len(rejected)} pending bids")
        return rows[0], events

    # -------------------------------------------------------------------------
    # Maker operations
    # -------------------------------------------------------------------------

    @staticmethod
    def list_available(
        user_id: UUID | str,
        limit: int | None = None,
        offset: int | None = 0,
    ) -> tuple[list[dict[str, Any]], int, int]:
        """
        Active projects open for bids, newest first.

        Each project gets bid_count and, when the maker has a profile,
        fits_printer.
        """
        UserService.require_role(user_id, UserType.MAKER, "browse available projects")
        limit, offset = clamp_page(limit, offset)

        projects = SupabaseClient.fetch_many(
            PROJECTS_TABLE,
            {"status": ProjectStatus.ACTIVE, "deleted_at": None},
            order_by="created_at",
            desc=True,
            limit=limit,
            offset=offset,
        )
        ProjectService.attach_bid_counts(projects)

        profile = MakerProfileService.find_profile(user_id)
        if profile:
            for project in projects:
                project["fits_printer"] = MakerProfileService.can_print(
                    profile, project.get("specifications") or {}
                )
        return projects, limit, offset

    @staticmethod
    def list_projects_with_my_bids(
        user_id: UUID | str,
        limit: int | None = None,
        offset: int | None = 0,
    ) -> tuple[list[dict[str, Any]], int, int]:
        """Distinct non-deleted projects a maker has bid on, newest bid first."""
        UserService.require_role(user_id, UserType.MAKER, "list projects they bid on")
        limit, offset = clamp_page(limit, offset)

        bids = SupabaseClient.fetch_many(
            BIDS_TABLE, {"maker_id": normalize_uuid(user_id)}, order_by="created_at", desc=True
        )
        project_ids: list[str] = []
        for bid in bids:
            if str(bid["project_id"]) not in project_ids:
                project_ids.append(str(bid["project_id"]))

        rows = SupabaseClient.fetch_many(PROJECTS_TABLE, {"id": project_ids, "deleted_at": None})
        by_id = {str(row["id"]): row for row in rows}
        live = [by_id[pid] for pid in project_ids if pid in by_id]
        projects = live[offset:offset + limit]
        return ProjectService.attach_bid_counts(projects), limit, offset

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    @staticmethod
    def list_files(project_id: UUID | str) -> list[dict[str, Any]]:
        return SupabaseClient.fetch_many(
            FILES_TABLE, {"project_id": normalize_uuid(project_id)}, order_by="created_at"
        )

    @staticmethod
    def add_file(
        user_id: UUID | str,
        project_id: UUID | str,
        filename: str,
        content: bytes,
    ) -> dict[str, Any]:
        """
        Validate and store an STL file for a project.

        Raises:
            InvalidFileTypeError, FileTooLargeError, TooManyFilesError
            InvalidStateError: If the project is deleted or no longer active
        """
        project = ProjectService.get_owned_project(project_id, user_id)
        if is_deleted(project) or project_status(project) != ProjectStatus.ACTIVE:
            raise InvalidStateError("Files can only be added to active projects")

        extension = os.path.splitext(filename or "")[1].lower()
        if extension not in settings.allowed_extensions_list:
            raise InvalidFileTypeError(filename, settings.allowed_extensions_list)

        if len(content) > settings.max_upload_size_bytes:
            raise FileTooLargeError(len(content) / (1024 * 1024), settings.MAX_UPLOAD_SIZE_MB)

        existing = SupabaseClient.count(FILES_TABLE, {"project_id": normalize_uuid(project_id)})
        if existing >= settings.MAX_FILES_PER_PROJECT:
            raise TooManyFilesError(settings.MAX_FILES_PER_PROJECT)

        file_id = str(uuid4())
        path = StorageService.build_path(normalize_uuid(project_id), file_id)
        StorageService.upload_file(path, content)

        try:
            row = SupabaseClient.insert(FILES_TABLE, {
                "id": file_id,
                "project_id": normalize_uuid(project_id),
                "file_name": os.path.basename(filename),
                "storage_path": path,
                "size_bytes": len(content),
                "created_at": utc_now_iso(),
            })
        except Exception:
            StorageService.delete_file(path)
            raise

        logger.info(f"Attached {filename} ({len(content)} bytes) to project {project_id}")
        return row

    @staticmethod
    def get_file(project_id: UUID | str, file_id: UUID | str) -> dict[str, Any]:
        row = SupabaseClient.fetch_one(FILES_TABLE, {
            "id": normalize_uuid(file_id),
            "project_id": normalize_uuid(project_id),
        })
        if not row:
            raise FileNotFoundInProjectError(str(file_id))
        return row

    @staticmethod
    def download_file(project_id: UUID | str, file_id: UUID | str) -> tuple[dict[str, Any], bytes]:
        """
        Fetch a project file's bytes.

        Raises:
            InvalidStateError: If the project was deleted
        """
        project = ProjectService.get_project(project_id)
        if is_deleted(project):
            raise InvalidStateError("Files of deleted projects are no longer available")
        row = ProjectService.get_file(project_id, file_id)
        return row, StorageService.download_file(row["storage_path"])

    @staticmethod
    def save_file_analysis(file_id: UUID | str, analysis: dict[str, Any]) -> dict[str, Any] | None:
        rows = SupabaseClient.update(FILES_TABLE, {"analysis": analysis}, {"id": normalize_uuid(file_id)})
        return rows[0] if rows else None
