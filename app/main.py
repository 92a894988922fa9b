# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the VoxelHub API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.websocket import redis_pubsub_listener
from app.exceptions import (
    VoxelHubException,
    voxelhub_exception_handler,
    validation_exception_handler,
)
from app.routers import health, users, projects, reviews, bids, messages, designs, stats
from app.auth import routes as auth_routes
from app.websocket import routes as websocket_routes
from lib.supabase_client import SupabaseClientError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Global state for the Redis listener task
_redis_listener_task = None
_shutdown_event = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: log configuration, start the Redis -> WebSocket bridge
    - Shutdown: stop the bridge
    """
    global _redis_listener_task, _shutdown_event

    # Startup
    logger.info(f"Starting VoxelHub API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    if settings.NOTIFICATIONS_VIA_REDIS:
        _shutdown_event = asyncio.Event()
        _redis_listener_task = asyncio.create_task(redis_pubsub_listener(_shutdown_event))
    else:
        logger.info("Notifications delivered in-process (Redis fan-out disabled)")

    yield

    # Shutdown
    logger.info("Shutting down VoxelHub API")

    if _shutdown_event:
        _shutdown_event.set()
    if _redis_listener_task:
        _redis_listener_task.cancel()
        try:
            await _redis_listener_task
        except asyncio.CancelledError:
            pass
        _redis_listener_task = None


# Create FastAPI application
app = FastAPI(
    title="VoxelHub API",
    description="""
## 3D-Printing Marketplace API

VoxelHub connects clients who need parts printed with makers who own printers.

### How It Works

1. **Post a Project** - A client uploads STL files with size and material requirements
2. **Bid** - Makers whose printers fit the part offer a price and delivery time
3. **Accept** - The client accepts one bid; the project is reserved and other bids are rejected
4. **Deliver** - The client confirms delivery and the project is completed
5. **Rate** - Client and maker rate each other

### Real-time Updates

Connect to `/ws?token={access_token}` to receive events such as `new_bid`,
`bid_accepted` or `new_message`. Each event lists the query keys the
frontend should invalidate.

### Quick Start

```bash
# 1. Create a project (as a client)
curl -X POST http://localhost:8000/api/v1/projects \\
  -H "Authorization: Bearer $TOKEN" -H "Content-Type: application/json" \\
  -d '{"name": "Bracket", "description": "4 pieces", "material": "PETG", "specifications": {"dimension_x": 80, "dimension_y": 40, "dimension_z": 20}}'

# 2. Attach an STL file
curl -X POST http://localhost:8000/api/v1/projects/{id}/files \\
  -H "Authorization: Bearer $TOKEN" -F "file=@bracket.stl"

# 3. Bid on it (as a maker)
curl -X POST http://localhost:8000/api/v1/projects/{id}/bids \\
  -H "Authorization: Bearer $MAKER_TOKEN" -H "Content-Type: application/json" \\
  -d '{"price": "25.00", "delivery_days": 5}'
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Verify Supabase access tokens",
        },
        {
            "name": "Users",
            "description": "User accounts, roles and maker profiles",
        },
        {
            "name": "Projects",
            "description": "Print requests, STL files and their bids",
        },
        {
            "name": "Reviews",
            "description": "Ratings between clients and makers",
        },
        {
            "name": "Bids",
            "description": "Bid updates, acceptance and delivery",
        },
        {
            "name": "Messages",
            "description": "Direct messages about projects and designs",
        },
        {
            "name": "Marketplace",
            "description": "Printable designs published by makers",
        },
        {
            "name": "Stats",
            "description": "Public platform numbers",
        },
        {
            "name": "WebSocket",
            "description": "Real-time notifications",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(VoxelHubException)
async def handle_voxelhub_exception(request: Request, exc: VoxelHubException):
    """Handle domain errors raised by services."""
    return await voxelhub_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return await validation_exception_handler(request, exc)


@app.exception_handler(SupabaseClientError)
async def handle_database_error(request: Request, exc: SupabaseClientError):
    """The database or storage backend failed."""
    logger.error(f"Database error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={
            "detail": "The database is temporarily unavailable",
            "code": exc.code,
        }
    )


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints (router carries its own /auth prefix)
app.include_router(
    auth_routes.router,
    prefix="/api/v1",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Users and maker profiles
app.include_router(
    users.router,
    prefix="/api/v1",
    tags=["Users"]
)

# Projects, files and project-scoped bid views
app.include_router(
    projects.router,
    prefix="/api/v1/projects",
    tags=["Projects"]
)

# Ratings (project-scoped)
app.include_router(
    reviews.router,
    prefix="/api/v1/projects",
    tags=["Reviews"]
)

# Bid lifecycle
app.include_router(
    bids.router,
    prefix="/api/v1/bids",
    tags=["Bids"]
)

# Messages and conversations
app.include_router(
    messages.router,
    prefix="/api/v1",
    tags=["Messages"]
)

# Marketplace designs
app.include_router(
    designs.router,
    prefix="/api/v1/marketplace",
    tags=["Marketplace"]
)

# Public statistics
app.include_router(
    stats.router,
    prefix="/api/v1",
    tags=["Stats"]
)

# WebSocket endpoints (Real-time updates)
app.include_router(
    websocket_routes.router,
    tags=["WebSocket"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "VoxelHub API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
