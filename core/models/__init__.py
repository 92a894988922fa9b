# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - user.py: public user profiles and roles
# - maker.py: maker printer capabilities and rating
# - project.py: print requests, STL files, mesh analysis
# - bid.py: maker offers and delivery confirmation
# - review.py: half-star ratings between clients and makers
# - message.py: context-scoped chat messages and conversations
# - design.py: marketplace designs and access checks
# - notification.py: typed real-time events
#
# These models define the "contract" between API and clients.
# =============================================================================

from .user import UserProfileUpdate, UserResponse, UserType, UserTypeUpdate
from .maker import MakerProfileBase, MakerProfileResponse, MakerProfileUpdate
from .project import (
    MeshAnalysis,
    MeshIssue,
    ProjectCreate,
    ProjectFileResponse,
    ProjectList,
    ProjectResponse,
    ProjectSpecifications,
    ProjectStatus,
)
from .review import (
    HalfStarRating,
    RateMakerRequest,
    RatingStatus,
    ReviewCreate,
    ReviewResponse,
)
from .bid import (
    BidCreate,
    BidResponse,
    BidStatus,
    BidUpdate,
    DeliveryConfirmation,
)
from .message import (
    ChatContextType,
    ConversationSummary,
    MessageCreate,
    MessageResponse,
)
from .design import (
    AccessReason,
    DesignAccess,
    DesignCreate,
    DesignPriceType,
    DesignResponse,
    DesignStatus,
    DesignUpdate,
)
from .notification import EventType, NotificationEvent

__all__ = [
    # User
    "UserProfileUpdate",
    "UserResponse",
    "UserType",
    "UserTypeUpdate",
    # Maker
    "MakerProfileBase",
    "MakerProfileResponse",
    "MakerProfileUpdate",
    # Project
    "MeshAnalysis",
    "MeshIssue",
    "ProjectCreate",
    "ProjectFileResponse",
    "ProjectList",
    "ProjectResponse",
    "ProjectSpecifications",
    "ProjectStatus",
    # Review
    "HalfStarRating",
    "RateMakerRequest",
    "RatingStatus",
    "ReviewCreate",
    "ReviewResponse",
    # Bid
    "BidCreate",
    "BidResponse",
    "BidStatus",
    "BidUpdate",
    "DeliveryConfirmation",
    # Message
    "ChatContextType",
    "ConversationSummary",
    "MessageCreate",
    "MessageResponse",
    # Design
    "AccessReason",
    "DesignAccess",
    "DesignCreate",
    "DesignPriceType",
    "DesignResponse",
    "DesignStatus",
    "DesignUpdate",
    # Notification
    "EventType",
    "NotificationEvent",
]
