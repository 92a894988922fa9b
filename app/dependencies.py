# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared request parameters.
# These are injected into route handlers using Depends().
# =============================================================================

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Query

from app.config import settings


@dataclass(frozen=True)
class PageParams:
    """limit/offset pagination. The service layer clamps the limit."""
    limit: int
    offset: int


def get_page_params(
    limit: Annotated[int | None, Query(ge=1, description="Items per page")] = None,
    offset: Annotated[int, Query(ge=0, description="Items to skip")] = 0,
) -> PageParams:
    """
    Read pagination query parameters.

    A missing limit falls back to DEFAULT_PAGE_SIZE.
    """
    return PageParams(limit=limit or settings.DEFAULT_PAGE_SIZE, offset=offset)


# Type alias for dependency injection
PageDep = Annotated[PageParams, Depends(get_page_params)]
