# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# Typed wrapper for Supabase (PostgREST) table operations.
# It implements the singleton pattern to reuse a single client connection and
# exposes a small set of table-generic class methods used by every service:
# - fetch_by_id / fetch_one / fetch_many
# - count
# - insert / update / delete
#
# Filters are plain dicts:
#   {"status": "active"}            -> status = 'active'
#   {"deleted_at": None}            -> deleted_at IS NULL
#   {"deleted_at": NOT_NULL}        -> deleted_at IS NOT NULL
#   {"project_id": [id1, id2]}      -> project_id IN (id1, id2)
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   bids = SupabaseClient.fetch_many("bids", {"project_id": pid}, order_by="created_at")
# =============================================================================

from __future__ import annotations

import logging
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import ApplicationError, normalize_uuid

# Set up logging for this module
logger = logging.getLogger(__name__)


class _NotNull:
    """Filter marker for `IS NOT NULL`."""

    def __repr__(self) -> str:
        return "NOT_NULL"


NOT_NULL = _NotNull()

Filters = dict[str, Any]


class SupabaseClientError(ApplicationError):
    """Error during Supabase operations."""

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    One client instance is shared across the application. All methods are
    class methods for easy access without instantiation.

    Example:
        project = SupabaseClient.fetch_by_id("projects", project_id)
        open_bids = SupabaseClient.count("bids", {"project_id": project_id, "status": "pending"})
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Ownership checks therefore live in the service layer.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _normalize_value(cls, value: Any) -> Any:
        if isinstance(value, UUID):
            return normalize_uuid(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, Decimal):
            return str(value)
        return value

    @classmethod
    def _has_empty_in_filter(cls, filters: Filters | None) -> bool:
        return any(
            isinstance(value, (list, tuple, set)) and not value
            for value in (filters or {}).values()
        )

    @classmethod
    def _apply_filters(cls, query, filters: Filters | None):
        for column, value in (filters or {}).items():
            if value is None:
                query = query.is_(column, "null")
            elif value is NOT_NULL:
                query = query.not_.is_(column, "null")
            elif isinstance(value, (list, tuple, set)):
                query = query.in_(column, [cls._normalize_value(v) for v in value])
            else:
                query = query.eq(column, cls._normalize_value(value))
        return query

    @classmethod
    def _prepare(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {key: cls._normalize_value(value) for key, value in data.items()}

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_by_id(cls, table: str, row_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch one row by primary key.

        Returns:
            Row dict, or None if not found

        Raises:
            SupabaseClientError: If query fails
        """
        return cls.fetch_one(table, {"id": row_id})

    @classmethod
    def fetch_one(cls, table: str, filters: Filters) -> dict[str, Any] | None:
        """Fetch the first row matching `filters`, or None."""
        rows = cls.fetch_many(table, filters, limit=1)
        return rows[0] if rows else None

    @classmethod
    def fetch_many(
        cls,
        table: str,
        filters: Filters | None = None,
        order_by: str | None = None,
        desc: bool = False,
        limit: int | None = None,
        offset: int = 0,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """
        Fetch rows matching `filters`.

        Args:
            table: Table name
            filters: Column filters (see module header)
            order_by: Column to sort by
            desc: Sort descending
            limit: Maximum number of rows
            offset: Rows to skip (used together with limit)
            columns: PostgREST select expression

        Raises:
            SupabaseClientError: If query fails
        """
        if cls._has_empty_in_filter(filters):
            return []

        client = cls.get_client()

        try:
            query = cls._apply_filters(client.table(table).select(columns), filters)
            if order_by:
                query = query.order(order_by, desc=desc)
            if limit is not None:
                query = query.range(offset, offset + limit - 1)

            response = query.execute()
            rows = response.data or []
            logger.debug(f"Fetched {len(rows)} rows from {table}")
            return rows

        except Exception as e:
            if "PGRST116" in str(e):  # PostgREST code for no rows
                return []
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code="FETCH_FAILED",
                suggestion=f"Check that the {table} table exists and the filter columns are valid",
                details={"table": table, "filters": {k: str(v) for k, v in (filters or {}).items()}}
            )

    @classmethod
    def count(cls, table: str, filters: Filters | None = None) -> int:
        """Count rows matching `filters`."""
        if cls._has_empty_in_filter(filters):
            return 0

        client = cls.get_client()

        try:
            query = cls._apply_filters(
                client.table(table).select("id", count="exact"),
                filters,
            )
            response = query.execute()
            return response.count or 0

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to count rows in {table}: {e}",
                code="COUNT_FAILED",
                details={"table": table}
            )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @classmethod
    def insert(cls, table: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert one row and return it as stored.

        Raises:
            SupabaseClientError: If insert fails or returns nothing
        """
        client = cls.get_client()

        try:
            response = client.table(table).insert(cls._prepare(data)).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert into {table}: {e}",
                code="INSERT_FAILED",
                suggestion="Check required columns and foreign keys",
                details={"table": table}
            )

        if not response.data:
            raise SupabaseClientError(
                message=f"Insert into {table} returned no data",
                code="INSERT_FAILED",
                details={"table": table}
            )

        logger.debug(f"Inserted row {response.data[0].get('id')} into {table}")
        return response.data[0]

    @classmethod
    def update(
        cls,
        table: str,
        data: dict[str, Any],
        filters: Filters,
    ) -> list[dict[str, Any]]:
        """
        Update rows matching `filters`.

        Returns:
            The updated rows (possibly empty)
        """
        if cls._has_empty_in_filter(filters):
            return []

        client = cls.get_client()

        try:
            query = cls._apply_filters(client.table(table).update(cls._prepare(data)), filters)
            response = query.execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update {table}: {e}",
                code="UPDATE_FAILED",
                details={"table": table}
            )

    @classmethod
    def delete(cls, table: str, filters: Filters) -> list[dict[str, Any]]:
        """Delete rows matching `filters` and return them."""
        if not filters:
            raise SupabaseClientError(
                message=f"Refusing to delete from {table} without filters",
                code="DELETE_WITHOUT_FILTER",
            )

        client = cls.get_client()

        try:
            query = cls._apply_filters(client.table(table).delete(), filters)
            response = query.execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete from {table}: {e}",
                code="DELETE_FAILED",
                details={"table": table}
            )
