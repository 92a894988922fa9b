# =============================================================================
# tests/test_project_service.py - Project Workflow Tests
# =============================================================================
# Project creation limits, listings, soft deletion and STL attachments.
# =============================================================================

import pytest

from app.config import settings
from app.exceptions import (
    ActiveProjectLimitError,
    FileTooLargeError,
    InvalidFileTypeError,
    InvalidStateError,
    PermissionDeniedError,
    RoleRequiredError,
    TooManyFilesError,
)
from core.models.notification import EventType
from core.models.project import ProjectCreate
from core.services.project_service import ProjectService, clamp_page
from tests.conftest import add_bid, add_maker, add_project

SPECS = {"dimension_x": 80, "dimension_y": 25, "dimension_z": 12}


def new_project(**overrides) -> ProjectCreate:
    data = {"name": "Bracket", "description": "Stiff part", "material": "PETG", "specifications": SPECS}
    data.update(overrides)
    return ProjectCreate(**data)


class TestClampPage:
    """Default and maximum page sizes."""

    def test_defaults(self):
        assert clamp_page(None, None) == (settings.DEFAULT_PAGE_SIZE, 0)

    def test_maximum(self):
        assert clamp_page(1000, 5) == (settings.MAX_PAGE_SIZE, 5)

    def test_negative_offset(self):
        assert clamp_page(10, -3) == (10, 0)


class TestCreateProject:
    """Tests for ProjectService.create_project."""

    def test_create_project(self, db, client_user):
        project = ProjectService.create_project(client_user["id"], new_project())

        assert project["status"] == "active"
        assert project["user_id"] == client_user["id"]
        assert project["specifications"]["dimension_x"] == 80

    def test_makers_cannot_create(self, db, maker_user):
        with pytest.raises(RoleRequiredError):
            ProjectService.create_project(maker_user["id"], new_project())

    def test_active_project_limit(self, db, client_user):
        # Arrange: the client is at the limit (plus a deleted one that doesn't count)
        for _ in range(settings.MAX_ACTIVE_PROJECTS):
            add_project(db, client_user)
        add_project(db, client_user, deleted_at="2026-01-01T00:00:00+00:00")

        # Act / Assert
        with pytest.raises(ActiveProjectLimitError):
            ProjectService.create_project(client_user["id"], new_project())

    def test_completed_projects_do_not_count(self, db, client_user):
        for _ in range(settings.MAX_ACTIVE_PROJECTS):
            add_project(db, client_user, status="completed")

        project = ProjectService.create_project(client_user["id"], new_project())
        assert project["status"] == "active"


class TestListings:
    """Client and maker project listings."""

    def test_my_projects_newest_first_with_bid_counts(self, db, client_user, maker_user):
        older = add_project(db, client_user, name="Older")
        newer = add_project(db, client_user, name="Newer")
        add_bid(db, older, maker_user)

        projects = ProjectService.list_my_projects(client_user["id"])

        assert [p["name"] for p in projects] == ["Newer", "Older"]
        assert {p["id"]: p["bid_count"] for p in projects} == {older["id"]: 1, newer["id"]: 0}

    def test_my_projects_status_filter(self, db, client_user):
        add_project(db, client_user, status="reserved")
        add_project(db, client_user)

        projects = ProjectService.list_my_projects(client_user["id"], status="reserved")

        assert [p["status"] for p in projects] == ["reserved"]

    def test_available_excludes_reserved_and_deleted(self, db, client_user, maker_user):
        open_project = add_project(db, client_user)
        add_project(db, client_user, status="reserved")
        add_project(db, client_user, deleted_at="2026-01-01T00:00:00+00:00")

        projects, limit, offset = ProjectService.list_available(maker_user["id"])

        assert [p["id"] for p in projects] == [open_project["id"]]
        assert (limit, offset) == (settings.DEFAULT_PAGE_SIZE, 0)

    def test_available_flags_printer_fit(self, db, client_user):
        small_printer = add_maker(db, max_print_dimension_x=50, max_print_dimension_y=50, max_print_dimension_z=50)
        add_project(db, client_user)

        projects, _, _ = ProjectService.list_available(small_printer["id"])

        assert projects[0]["fits_printer"] is False

    def test_available_pagination(self, db, client_user, maker_user):
        for i in range(5):
            add_project(db, client_user, name=f"P{i}")

        projects, limit, offset = ProjectService.list_available(maker_user["id"], limit=2, offset=2)

        assert [p["name"] for p in projects] == ["P2", "P1"]
        assert (limit, offset) == (2, 2)

    def test_projects_with_my_bids(self, db, client_user, maker_user):
        first = add_project(db, client_user, name="First")
        second = add_project(db, client_user, name="Second")
        add_bid(db, first, maker_user, status="rejected")
        add_bid(db, second, maker_user)
        add_bid(db, first, maker_user)

        projects, _, _ = ProjectService.list_projects_with_my_bids(maker_user["id"])

        assert [p["name"] for p in projects] == ["First", "Second"]

    def test_my_bids_pages_skip_deleted_projects(self, db, client_user, maker_user):
        # Arrange: bids on four projects; the one with the newest bid is deleted
        for name in ("P0", "P1", "P2"):
            add_bid(db, add_project(db, client_user, name=name), maker_user)
        gone = add_project(db, client_user, name="Gone", deleted_at="2026-01-01T00:00:00+00:00")
        add_bid(db, gone, maker_user)

        # Act
        first_page, _, _ = ProjectService.list_projects_with_my_bids(maker_user["id"], limit=2)
        second_page, _, _ = ProjectService.list_projects_with_my_bids(maker_user["id"], limit=2, offset=2)

        # Assert: full pages of live projects
        assert [p["name"] for p in first_page] == ["P2", "P1"]
        assert [p["name"] for p in second_page] == ["P0"]


class TestDeleteProject:
    """Soft deletion."""

    def test_delete_rejects_pending_bids(self, db, project, client_user):
        maker_a, maker_b = add_maker(db), add_maker(db)
        add_bid(db, project, maker_a)
        add_bid(db, project, maker_b, status="rejected")

        deleted, events = ProjectService.delete_project(client_user["id"], project["id"])

        # Assert: soft deleted, still readable
        assert deleted["deleted_at"] is not None
        assert ProjectService.get_project(project["id"])["id"] == project["id"]

        # Assert: only the pending bid's maker is notified
        assert [e.user_id for e in events] == [str(maker_a["id"])]
        assert events[0].type == EventType.BID_REJECTED
        assert events[0].data["reason"] == "project_deleted"

    def test_only_owner_can_delete(self, db, project, maker_user):
        with pytest.raises(PermissionDeniedError):
            ProjectService.delete_project(maker_user["id"], project["id"])

    def test_reserved_project_cannot_be_deleted(self, db, client_user):
        reserved = add_project(db, client_user, status="reserved")
        with pytest.raises(InvalidStateError):
            ProjectService.delete_project(client_user["id"], reserved["id"])

    def test_delete_after_reservation_fails(self, db, project, client_user, maker_user, monkeypatch):
        # Arrange: the project was read as active, then reserved by an accept
        stale = db.rows("projects", id=project["id"])[0]
        bid = add_bid(db, project, maker_user)
        db.update("projects", {"status": "reserved"}, {"id": project["id"]})
        db.update("bids", {"status": "accepted"}, {"id": bid["id"]})
        monkeypatch.setattr(ProjectService, "get_project", staticmethod(lambda project_id: dict(stale)))

        # Act / Assert
        with pytest.raises(InvalidStateError):
            ProjectService.delete_project(client_user["id"], project["id"])
        assert db.rows("projects", id=project["id"])[0]["deleted_at"] is None
        assert db.rows("bids", id=bid["id"])[0]["status"] == "accepted"


class TestFiles:
    """STL attachments."""

    def test_add_and_download_file(self, db, storage, project, client_user):
        row = ProjectService.add_file(client_user["id"], project["id"], "part.STL", b"solid part")

        assert row["file_name"] == "part.STL"
        assert row["storage_path"] == f"projects/{project['id']}/{row['id']}.stl"
        assert storage[row["storage_path"]] == b"solid part"

        _, content = ProjectService.download_file(project["id"], row["id"])
        assert content == b"solid part"

    def test_wrong_extension(self, db, storage, project, client_user):
        with pytest.raises(InvalidFileTypeError):
            ProjectService.add_file(client_user["id"], project["id"], "part.obj", b"x")

    def test_too_large(self, db, storage, project, client_user, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
        with pytest.raises(FileTooLargeError):
            ProjectService.add_file(client_user["id"], project["id"], "part.stl", b"x" * (1024 * 1024 + 1))

    def test_file_count_limit(self, db, storage, project, client_user, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILES_PER_PROJECT", 1)
        ProjectService.add_file(client_user["id"], project["id"], "a.stl", b"x")
        with pytest.raises(TooManyFilesError):
            ProjectService.add_file(client_user["id"], project["id"], "b.stl", b"x")

    def test_no_download_after_delete(self, db, storage, project, client_user):
        row = ProjectService.add_file(client_user["id"], project["id"], "part.stl", b"x")
        ProjectService.delete_project(client_user["id"], project["id"])

        with pytest.raises(InvalidStateError):
            ProjectService.download_file(project["id"], row["id"])

    def test_failed_insert_removes_upload(self, db, storage, project, client_user, monkeypatch):
        def broken_insert(table, data):
            raise RuntimeError("insert failed")

        monkeypatch.setattr("lib.supabase_client.SupabaseClient.insert", staticmethod(broken_insert))

        with pytest.raises(RuntimeError):
            ProjectService.add_file(client_user["id"], project["id"], "part.stl", b"x")
        assert storage == {}
