# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - users.py: User accounts and maker profiles
# - projects.py: Print requests, STL files and project-scoped bid views
# - reviews.py: Ratings between client and maker
# - bids.py: Bid updates and lifecycle transitions
# - messages.py: Direct messages and conversation lists
# - designs.py: Marketplace designs
# - stats.py: Public platform statistics
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import users
from . import projects
from . import reviews
from . import bids
from . import messages
from . import designs
from . import stats

__all__ = [
    "health",
    "users",
    "projects",
    "reviews",
    "bids",
    "messages",
    "designs",
    "stats",
]
