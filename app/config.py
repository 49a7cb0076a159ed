# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.PORT)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# The Settings class validates all values at startup, catching configuration
# errors early rather than at runtime. Settings are read once, when the app
# is built, and are never mutated afterwards.
# =============================================================================

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Repository root (parent of the app/ package)
PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Validate types and constraints
    - Provide defaults matching the compiled-in values of earlier releases

    All settings are accessed via the global `settings` instance, or via
    `app.state.settings` inside request handlers.
    """

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    APP_NAME: str = Field(
        default="ShoppingDmart",
        description="Display name used in the health message and startup banner"
    )

    APP_VERSION: str = Field(
        default="1.0.0",
        description="Version reported by the health check"
    )

    # Anything other than "development" behaves like production: error
    # details stay hidden
    ENVIRONMENT: str = Field(
        default="production",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"),
        description="Current environment (NODE_ENV is accepted as an alias)"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging)"
    )

    HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the server to"
    )

    PORT: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Port for the server"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    # Relaxation: with this off, no Content-Security-Policy header is sent
    # and served pages get no CSP protection.
    CSP_ENABLED: bool = Field(
        default=False,
        description="Send a Content-Security-Policy header (disabled by default)"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default=(
            "http://localhost:3000,http://127.0.0.1:3000,"
            "http://localhost:8000,http://127.0.0.1:8000"
        ),
        description="Allowed CORS origins (comma-separated, exact match)"
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------

    RATE_LIMIT_WINDOW_SECONDS: int = Field(
        default=15 * 60,
        ge=1,
        description="Length of each client's rate limit window"
    )

    RATE_LIMIT_MAX_REQUESTS: int = Field(
        default=100,
        ge=1,
        description="Requests allowed per client per window"
    )

    RATE_LIMIT_MAX_CLIENTS: int = Field(
        default=10_000,
        ge=1,
        description="Maximum client windows tracked before evicting the least recent"
    )

    RATE_LIMIT_EXEMPT_PATHS: str = Field(
        default="",
        description="Exact paths not counted by the rate limiter (comma-separated)"
    )

    TRUST_PROXY: bool = Field(
        default=False,
        description="Identify clients by the first X-Forwarded-For hop"
    )

    # -------------------------------------------------------------------------
    # Request Bodies
    # -------------------------------------------------------------------------

    MAX_BODY_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Maximum JSON / URL-encoded request body size in MB"
    )

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    STATIC_ROOT: Path = Field(
        default=PROJECT_ROOT / "public",
        description="Directory served as static assets and page documents"
    )

    DATABASE_PATH: Path = Field(
        default=Path("data") / "shoppingdmart.db",
        description="SQLite database initialized at startup"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        # Load from .env file in project root
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        # Case-sensitive environment variable names
        case_sensitive=True,
        # Settings are configuration, not state
        frozen=True,
        extra="ignore",
    )

    @field_validator("ENVIRONMENT")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        """Lower-case and strip; blank falls back to production."""
        return v.strip().lower() or "production"

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Handles comma-separated values and strips whitespace.
        Example: "http://localhost:3000, https://shop.example" -> ["http://localhost:3000", "https://shop.example"]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def rate_limit_exempt_paths(self) -> frozenset[str]:
        """Parse RATE_LIMIT_EXEMPT_PATHS into a set of exact paths."""
        return frozenset(
            path.strip() for path in self.RATE_LIMIT_EXEMPT_PATHS.split(",") if path.strip()
        )

    @property
    def max_body_size_bytes(self) -> int:
        """
        Convert MB to bytes for body size validation.
        """
        return self.MAX_BODY_SIZE_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode (any non-development value)."""
        return not self.is_development


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.

    Returns:
        Settings: The application settings instance
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
