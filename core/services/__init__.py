# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .user_service import UserService
from .maker_profile_service import MakerProfileService
from .storage_service import StorageService
from .design_service import DesignService
from .project_service import ProjectService
from .review_service import ReviewService
from .bid_service import BidService
from .message_service import MessageService
from .stats_service import StatsService

__all__ = [
    "UserService",
    "MakerProfileService",
    "StorageService",
    "DesignService",
    "ProjectService",
    "ReviewService",
    "BidService",
    "MessageService",
    "StatsService",
]
