# =============================================================================
# tests/test_api.py - HTTP API Tests
# =============================================================================
# End-to-end requests through FastAPI with the in-memory database.
# Authentication is overridden per test with the acting user.
# =============================================================================

from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from app.auth import AuthUser, get_current_user
from app.main import app
from tests.conftest import add_bid, add_maker, add_project, make_token


@pytest.fixture
def api(db, storage):
    """TestClient plus a helper to switch the authenticated user."""
    client = TestClient(app)

    def login(user):
        app.dependency_overrides[get_current_user] = lambda: AuthUser(id=UUID(user["id"]), email=user["email"])

    client.login = login
    yield client
    app.dependency_overrides.clear()


PROJECT_BODY = {
    "name": "Bracket",
    "description": "Replacement bracket",
    "material": "PETG",
    "specifications": {"dimension_x": 80, "dimension_y": 25, "dimension_z": 12},
}


class TestPublicEndpoints:
    """Endpoints that need no token."""

    def test_root(self, api):
        response = api.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "VoxelHub API"

    def test_health(self, api):
        response = api.get("/api/v1/health")
        assert response.json()["status"] == "healthy"

    def test_platform_stats(self, api, db, client_user):
        maker = add_maker(db)
        project = add_project(db, client_user, status="completed")
        db.insert("reviews", {
            "project_id": project["id"],
            "from_user_id": client_user["id"],
            "to_user_id": maker["id"],
            "rating": 4.5,
        })

        response = api.get("/api/v1/stats")

        assert response.json() == {"verified_makers": 1, "completed_projects": 1, "average_rating": 4.5}

    def test_protected_endpoint_needs_token(self, api):
        response = api.get("/api/v1/projects/my-projects")
        assert response.status_code in (401, 403)


class TestAuthRoutes:
    """Real token verification through /auth/me."""

    def test_me_with_valid_token(self, api, client_user):
        token = make_token(client_user["id"], email=client_user["email"])

        response = api.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["id"] == client_user["id"]

    def test_me_with_forged_token(self, api):
        token = make_token(str(uuid4()), secret="forged-secret-0123456789abcdefghijkl")

        response = api.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401


class TestProjectRoutes:
    """Project endpoints."""

    def test_create_and_list(self, api, client_user):
        api.login(client_user)

        created = api.post("/api/v1/projects", json=PROJECT_BODY)
        listed = api.get("/api/v1/projects/my-projects")

        assert created.status_code == 201
        assert created.json()["status"] == "active"
        assert [p["id"] for p in listed.json()] == [created.json()["id"]]
        assert listed.json()[0]["bid_count"] == 0

    def test_maker_cannot_create(self, api, maker_user):
        api.login(maker_user)

        response = api.post("/api/v1/projects", json=PROJECT_BODY)

        assert response.status_code == 403
        assert response.json()["code"] == "ROLE_REQUIRED"

    def test_validation_error_shape(self, api, client_user):
        api.login(client_user)

        response = api.post("/api/v1/projects", json={"name": "No specs"})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert response.json()["errors"]

    def test_unknown_project(self, api, client_user):
        api.login(client_user)

        response = api.get(f"/api/v1/projects/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "PROJECT_NOT_FOUND"

    def test_upload_queues_analysis(self, api, client_user, project, monkeypatch):
        queued = []

        class FakeTask:
            @staticmethod
            def delay(**kwargs):
                queued.append(kwargs)

        monkeypatch.setattr("workers.tasks.analyze_project_file", FakeTask)
        api.login(client_user)

        response = api.post(
            f"/api/v1/projects/{project['id']}/files",
            files={"file": ("bracket.stl", b"solid bracket", "model/stl")},
        )

        assert response.status_code == 201
        assert response.json()["analysis_queued"] is True
        assert queued == [{"project_id": project["id"], "file_id": response.json()["file"]["id"]}]

    def test_upload_rejects_other_formats(self, api, client_user, project):
        api.login(client_user)

        response = api.post(
            f"/api/v1/projects/{project['id']}/files",
            files={"file": ("bracket.obj", b"o bracket", "text/plain")},
        )

        assert response.status_code == 400


class TestBidRoutes:
    """Bid flow over HTTP."""

    def test_bid_accept_and_confirm(self, api, db, client_user, maker_user, project):
        # Maker bids
        api.login(maker_user)
        bid = api.post(
            f"/api/v1/projects/{project['id']}/bids",
            json={"price": "19.99", "delivery_days": 4, "message": "PETG black"},
        )
        assert bid.status_code == 201
        bid_id = bid.json()["id"]

        # Duplicate is refused
        again = api.post(f"/api/v1/projects/{project['id']}/bids", json={"price": "18", "delivery_days": 4})
        assert again.status_code == 400

        # Client sees the bid with the maker attached and accepts it
        api.login(client_user)
        listed = api.get(f"/api/v1/projects/{project['id']}/bids").json()
        assert listed[0]["maker"]["id"] == maker_user["id"]

        accepted = api.put(f"/api/v1/bids/{bid_id}/accept")
        assert accepted.json()["status"] == "accepted"
        assert api.get(f"/api/v1/projects/{project['id']}").json()["status"] == "reserved"

        # Delivery with a rating completes the project
        confirmed = api.put(f"/api/v1/bids/{bid_id}/confirm-delivery", json={"rating": 5})
        assert confirmed.status_code == 200
        assert api.get(f"/api/v1/projects/{project['id']}").json()["status"] == "completed"
        assert api.get(f"/api/v1/makers/{maker_user['id']}/profile").json()["rating"] == 5.0

    def test_invalid_price(self, api, maker_user, project):
        api.login(maker_user)

        response = api.post(
            f"/api/v1/projects/{project['id']}/bids", json={"price": "0.10", "delivery_days": 4}
        )

        assert response.status_code == 422

    def test_maker_stats(self, api, db, client_user, maker_user):
        add_bid(db, add_project(db, client_user), maker_user)
        api.login(maker_user)

        response = api.get("/api/v1/bids/stats")

        assert response.json() == {"active_bids": 1, "won_projects": 0, "completed_projects": 0}


class TestMessageRoutes:
    def test_send_and_read_thread(self, api, client_user, maker_user, project):
        api.login(maker_user)
        sent = api.post("/api/v1/messages", json={
            "receiver_id": client_user["id"],
            "context_type": "project",
            "project_id": project["id"],
            "content": "Which colour?",
        })
        assert sent.status_code == 201

        api.login(client_user)
        params = {"context_type": "project", "context_id": project["id"]}
        thread = api.get("/api/v1/messages", params={"other_user_id": maker_user["id"], **params})
        marked = api.put(f"/api/v1/messages/mark-read/{maker_user['id']}", params=params)
        conversations = api.get("/api/v1/conversations").json()

        assert [m["content"] for m in thread.json()] == ["Which colour?"]
        assert marked.json() == {"updated": 1}
        assert conversations[0]["unread_count"] == 0


class TestDesignRoutes:
    def test_publish_and_check_access(self, api, db, client_user, maker_user):
        api.login(maker_user)
        design = api.post("/api/v1/marketplace/designs", json={
            "title": "Cable clip",
            "description": "Snap-fit clip",
            "price": "2.50",
            "price_type": "fixed",
        })
        assert design.status_code == 201
        design_id = design.json()["id"]

        own_access = api.get(f"/api/v1/marketplace/designs/{design_id}/access").json()
        api.login(client_user)
        client_access = api.get(f"/api/v1/marketplace/designs/{design_id}/access").json()

        assert own_access["reason"] == "maker"
        assert client_access == {"can_access": False, "reason": "not_purchased", "details": None}

    def test_archived_design_leaves_listing(self, api, maker_user):
        api.login(maker_user)
        design_id = api.post("/api/v1/marketplace/designs", json={
            "title": "Vase", "description": "Spiral", "price_type": "free",
        }).json()["id"]

        api.delete(f"/api/v1/marketplace/designs/{design_id}")

        assert api.get("/api/v1/marketplace/designs").json() == []
        assert api.get(f"/api/v1/marketplace/designs/{design_id}").json()["status"] == "archived"
