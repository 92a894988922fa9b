# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized exception handling for the VoxelHub API.
# Every error carries a machine-readable code and, where possible, a
# suggestion telling the caller how to recover.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class VoxelHubException(Exception):
    """
    Base exception for the VoxelHub API.

    All domain exceptions inherit from this class and are turned into
    structured JSON responses by `voxelhub_exception_handler`.
    """

    def __init__(
        self,
        message: str,
        code: str = "VOXELHUB_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Not Found Exceptions
# =============================================================================

class NotFoundError(VoxelHubException):
    """Raised when a referenced entity doesn't exist."""

    def __init__(self, entity: str, entity_id: str, code: str = "NOT_FOUND"):
        super().__init__(
            message=f"{entity} not found: {entity_id}",
            code=code,
            status_code=404,
            suggestion=f"Check that the {entity.lower()} id is correct",
            details={"id": entity_id},
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", str(user_id), code="USER_NOT_FOUND")


class ProjectNotFoundError(NotFoundError):
    def __init__(self, project_id: str):
        super().__init__("Project", str(project_id), code="PROJECT_NOT_FOUND")


class BidNotFoundError(NotFoundError):
    def __init__(self, bid_id: str):
        super().__init__("Bid", str(bid_id), code="BID_NOT_FOUND")


class DesignNotFoundError(NotFoundError):
    def __init__(self, design_id: str):
        super().__init__("Design", str(design_id), code="DESIGN_NOT_FOUND")


class MakerProfileNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__("Maker profile", str(user_id), code="MAKER_PROFILE_NOT_FOUND")


class ReviewNotFoundError(NotFoundError):
    def __init__(self, project_id: str):
        super().__init__("Review", str(project_id), code="REVIEW_NOT_FOUND")


class FileNotFoundInProjectError(NotFoundError):
    def __init__(self, file_id: str):
        super().__init__("File", str(file_id), code="FILE_NOT_FOUND")


# =============================================================================
# Permission Exceptions
# =============================================================================

class PermissionDeniedError(VoxelHubException):
    """Raised when the caller doesn't own the resource they act on."""

    def __init__(self, message: str = "You are not allowed to perform this action"):
        super().__init__(
            message=message,
            code="PERMISSION_DENIED",
            status_code=403,
        )


class RoleRequiredError(VoxelHubException):
    """Raised when an operation is reserved to clients or makers."""

    def __init__(self, role: str, action: str):
        super().__init__(
            message=f"Only {role}s can {action}",
            code="ROLE_REQUIRED",
            status_code=403,
            suggestion=f"Switch your account type to '{role}' via PUT /users/me/type",
            details={"required_role": role},
        )


# =============================================================================
# Business Rule Exceptions
# =============================================================================

class InvalidStateError(VoxelHubException):
    """Raised when an operation isn't allowed in the entity's current state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="INVALID_STATE",
            status_code=400,
            details=details,
        )


class ValidationFailedError(VoxelHubException):
    """Raised when input passes schema validation but breaks a business rule."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_FAILED",
            status_code=400,
            details={"field": field} if field else None,
        )


class ActiveProjectLimitError(VoxelHubException):
    """Raised when a client already has the maximum number of active projects."""

    def __init__(self, limit: int):
        super().__init__(
            message=f"You can have at most {limit} active projects",
            code="ACTIVE_PROJECT_LIMIT",
            status_code=400,
            suggestion="Complete or delete an existing project first",
            details={"limit": limit},
        )


class DuplicateBidError(VoxelHubException):
    """Raised when a maker bids twice on the same project."""

    def __init__(self, project_id: str):
        super().__init__(
            message="You have already placed a bid on this project",
            code="DUPLICATE_BID",
            status_code=400,
            suggestion="Edit your existing bid instead",
            details={"project_id": str(project_id)},
        )


class DuplicateReviewError(VoxelHubException):
    """Raised when a user rates the same counterpart twice for one project."""

    def __init__(self, project_id: str):
        super().__init__(
            message="You have already rated this project",
            code="DUPLICATE_REVIEW",
            status_code=400,
            details={"project_id": str(project_id)},
        )


# =============================================================================
# Upload Exceptions
# =============================================================================

class InvalidFileTypeError(VoxelHubException):
    """Raised when uploaded file type is not allowed."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {filename}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"filename": filename, "allowed_types": allowed}
        )


class FileTooLargeError(VoxelHubException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


class TooManyFilesError(VoxelHubException):
    """Raised when a project already holds the maximum number of files."""

    def __init__(self, limit: int):
        super().__init__(
            message=f"A project can hold at most {limit} files",
            code="TOO_MANY_FILES",
            status_code=400,
            details={"limit": limit},
        )


class StorageUploadError(VoxelHubException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


class StorageDownloadError(VoxelHubException):
    """Raised when file download from storage fails."""

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Failed to download file from storage: {error}",
            code="STORAGE_DOWNLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"path": path, "error": error}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def voxelhub_exception_handler(
    request: Request,
    exc: VoxelHubException
) -> JSONResponse:
    """Convert VoxelHubException to JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Convert request validation errors into the API's error shape."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": jsonable_encoder(exc.errors()),
        }
    )
