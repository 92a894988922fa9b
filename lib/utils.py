# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Example:
        project_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        project_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


def same_id(left: Any, right: Any) -> bool:
    """Compare two ids that may be UUID objects or strings."""
    if left is None or right is None:
        return False
    return str(left) == str(right)


# =============================================================================
# Time and Money
# =============================================================================

def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string, the format PostgREST expects."""
    return datetime.now(timezone.utc).isoformat()


def to_money(value: Any) -> Decimal:
    """Quantize a numeric value to two decimal places (EUR cents)."""
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base error class for library-level errors.

    Attributes:
        code: Error code for categorization
        message: Human-readable error message
        suggestion: Actionable suggestion for fixing the error
        details: Additional context for debugging

    Example:
        class MeshAnalysisError(ApplicationError):
            def __init__(self, message: str, **kwargs):
                super().__init__(message, code="MESH_ANALYSIS_FAILED", **kwargs)
    """

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "suggestion": self.suggestion,
            "details": self.details,
        }
