# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for table operations
# - mesh_analysis.py: STL geometry statistics (trimesh + numpy)
# - utils.py: Shared utilities (error base class, ids, money, time)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import NOT_NULL, SupabaseClient, SupabaseClientError
from lib.utils import ApplicationError, normalize_uuid, same_id, to_money, utc_now_iso

__all__ = [
    # Supabase
    "NOT_NULL",
    "SupabaseClient",
    "SupabaseClientError",
    # Utils
    "ApplicationError",
    "normalize_uuid",
    "same_id",
    "to_money",
    "utc_now_iso",
]
