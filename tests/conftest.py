# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Replaces the Supabase database and storage with in-memory fakes
# - Seeds users, maker profiles and projects
# - Signs access tokens the way Supabase Auth does (HS256)
# =============================================================================

import copy
import os
import time
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-0123456789")
os.environ.setdefault("NOTIFICATIONS_VIA_REDIS", "false")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest
from jose import jwt

from app.config import settings
from core.services.storage_service import StorageService
from lib.supabase_client import NOT_NULL, SupabaseClient

CLOCK_START = datetime(2026, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# In-memory Supabase
# =============================================================================

class FakeSupabase:
    """
    Table store with the same filter semantics as SupabaseClient.

    Scalars match by equality, None matches NULL, NOT_NULL matches any value
    and lists match by membership. Every insert gets a created_at one second
    after the previous one, so ordering follows insertion order.
    """

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self._ticks = 0

    def _now(self) -> str:
        self._ticks += 1
        return (CLOCK_START + timedelta(seconds=self._ticks)).isoformat()

    @staticmethod
    def _matches(row: dict[str, Any], filters: dict[str, Any] | None) -> bool:
        for column, expected in (filters or {}).items():
            actual = row.get(column)
            if expected is None:
                if actual is not None:
                    return False
            elif expected is NOT_NULL:
                if actual is None:
                    return False
            elif isinstance(expected, (list, tuple, set)):
                wanted = {SupabaseClient._normalize_value(v) for v in expected}
                if actual not in wanted:
                    return False
            elif actual != SupabaseClient._normalize_value(expected):
                return False
        return True

    def rows(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        """Stored rows, for assertions."""
        return [row for row in self.tables[table] if self._matches(row, filters)]

    def fetch_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        desc: bool = False,
        limit: int | None = None,
        offset: int = 0,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        rows = [copy.deepcopy(r) for r in self.tables[table] if self._matches(r, filters)]
        if order_by:
            rows.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by) or ""), reverse=desc)
        if limit is not None:
            rows = rows[offset:offset + limit]
        return rows

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        return len(self.rows(table, **(filters or {})))

    def insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        row = SupabaseClient._prepare(data)
        row.setdefault("id", str(uuid4()))
        row["created_at"] = self._now()
        row.setdefault("updated_at", row["created_at"])
        self.tables[table].append(row)
        return copy.deepcopy(row)

    def update(self, table: str, data: dict[str, Any], filters: dict[str, Any]) -> list[dict[str, Any]]:
        changes = SupabaseClient._prepare(data)
        updated = []
        for row in self.tables[table]:
            if self._matches(row, filters):
                row.update(changes)
                updated.append(copy.deepcopy(row))
        return updated

    def delete(self, table: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        removed = [r for r in self.tables[table] if self._matches(r, filters)]
        self.tables[table] = [r for r in self.tables[table] if not self._matches(r, filters)]
        return removed


@pytest.fixture
def db(monkeypatch) -> FakeSupabase:
    """Route every SupabaseClient call to a fresh in-memory store."""
    fake = FakeSupabase()
    for name in ("fetch_many", "count", "insert", "update", "delete"):
        monkeypatch.setattr(SupabaseClient, name, staticmethod(getattr(fake, name)))
    return fake


@pytest.fixture
def storage(monkeypatch) -> dict[str, bytes]:
    """Replace the storage bucket with a dict of path -> bytes."""
    objects: dict[str, bytes] = {}

    def upload(path: str, content: bytes) -> str:
        objects[path] = content
        return path

    def download(path: str) -> bytes:
        return objects[path]

    def delete(path: str) -> bool:
        return objects.pop(path, None) is not None

    monkeypatch.setattr(StorageService, "upload_file", staticmethod(upload))
    monkeypatch.setattr(StorageService, "download_file", staticmethod(download))
    monkeypatch.setattr(StorageService, "delete_file", staticmethod(delete))
    return objects


# =============================================================================
# Seed Data
# =============================================================================

def add_user(db: FakeSupabase, user_type: str | None = "client", **fields: Any) -> dict[str, Any]:
    """Insert a public.users row."""
    username = fields.pop("username", f"{user_type or 'user'}-{len(db.tables['users']) + 1}")
    return db.insert("users", {
        "email": f"{username}@example.com",
        "username": username,
        "user_type": user_type,
        "is_email_verified": True,
        "show_full_name": False,
        **fields,
    })


def add_maker(db: FakeSupabase, **profile: Any) -> dict[str, Any]:
    """Insert a maker with a profile (build volume 200 x 200 x 200 by default)."""
    maker = add_user(db, "maker")
    db.insert("maker_profiles", {
        "user_id": maker["id"],
        "printer_types": ["Prusa MK4"],
        "materials": ["PLA", "PETG"],
        "max_print_dimension_x": 200,
        "max_print_dimension_y": 200,
        "max_print_dimension_z": 200,
        "rating": 0,
        "total_reviews": 0,
        **profile,
    })
    return maker


def add_project(db: FakeSupabase, owner: dict[str, Any], **fields: Any) -> dict[str, Any]:
    """Insert an active project owned by `owner`."""
    return db.insert("projects", {
        "user_id": owner["id"],
        "name": "Drone arm bracket",
        "description": "Replacement bracket",
        "material": "PETG",
        "specifications": {"dimension_x": 80, "dimension_y": 25, "dimension_z": 12},
        "status": "active",
        "deleted_at": None,
        **fields,
    })


def add_bid(db: FakeSupabase, project: dict[str, Any], maker: dict[str, Any], **fields: Any) -> dict[str, Any]:
    """Insert a pending bid."""
    return db.insert("bids", {
        "project_id": project["id"],
        "maker_id": maker["id"],
        "price": "25.00",
        "delivery_days": 5,
        "message": None,
        "status": "pending",
        "is_read": False,
        "delivery_confirmed_at": None,
        **fields,
    })


@pytest.fixture
def client_user(db):
    return add_user(db, "client", first_name="Ada", last_name="Lovelace")


@pytest.fixture
def maker_user(db):
    return add_maker(db)


@pytest.fixture
def project(db, client_user):
    return add_project(db, client_user)


# =============================================================================
# Tokens
# =============================================================================

def make_token(user_id: str, email: str = "user@example.com", expires_in: int = 3600, secret: str | None = None) -> str:
    """Sign an access token shaped like the ones Supabase Auth issues."""
    now = int(time.time())
    return jwt.encode(
        {
            "sub": str(user_id),
            "email": email,
            "aud": "authenticated",
            "role": "authenticated",
            "iat": now,
            "exp": now + expires_in,
        },
        secret or settings.SUPABASE_JWT_SECRET,
        algorithm="HS256",
    )
