# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# Loads VoxelHub configuration from environment variables using pydantic-settings.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# Marketplace rules (bid floor, active project cap, page sizes) live here too,
# so they can be tuned per environment without code changes.
# =============================================================================

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # Required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str | None = Field(
        default=None,
        description="Legacy HS256 secret used to verify Supabase access tokens. Unset means HS256 tokens are refused"
    )

    STORAGE_BUCKET: str = Field(
        default="stl-files",
        description="Supabase Storage bucket holding project STL files"
    )

    # -------------------------------------------------------------------------
    # Redis Configuration (Celery broker + notification fan-out)
    # -------------------------------------------------------------------------

    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for Celery and pub/sub"
    )

    NOTIFICATIONS_VIA_REDIS: bool = Field(
        default=True,
        description="Route WebSocket events through Redis pub/sub (needed with several API processes)"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # File Upload Settings
    # -------------------------------------------------------------------------

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum STL upload size in MB"
    )

    ALLOWED_EXTENSIONS: str = Field(
        default=".stl",
        description="Allowed model file extensions (comma-separated)"
    )

    MAX_FILES_PER_PROJECT: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum number of model files attached to one project"
    )

    # -------------------------------------------------------------------------
    # Marketplace Rules
    # -------------------------------------------------------------------------

    MAX_ACTIVE_PROJECTS: int = Field(
        default=10,
        ge=1,
        description="Maximum active projects a client may have at once"
    )

    MIN_BID_PRICE: Decimal = Field(
        default=Decimal("0.50"),
        ge=0,
        description="Lowest accepted bid / paid design price in EUR"
    )

    DEFAULT_PAGE_SIZE: int = Field(
        default=15,
        ge=1,
        description="Default page size for paginated listings"
    )

    MAX_PAGE_SIZE: int = Field(
        default=50,
        ge=1,
        description="Upper bound for any requested page size"
    )

    MAX_BIDS_PER_LISTING: int = Field(
        default=20,
        ge=1,
        description="Maximum bids returned when listing a project's bids"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:5173, https://voxelhub.app" -> ["http://localhost:5173", "https://voxelhub.app"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_extensions_list(self) -> list[str]:
        """
        Parse ALLOWED_EXTENSIONS string into a list.

        Example: ".stl, .3mf" -> [".stl", ".3mf"]
        """
        return [ext.strip().lower() for ext in self.ALLOWED_EXTENSIONS.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes for file size validation."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Parses .env and validates only once per process.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
