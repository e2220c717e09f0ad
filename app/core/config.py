"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_prefix: str = Field(
        "/api",
        description="Path prefix of the protected API routes",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration for routes under the API prefix."""

    enabled: bool = Field(
        True,
        description="Enable per-identity rate limiting",
    )
    max_requests: int = Field(
        100,
        description="Maximum number of requests allowed per window (per identity)",
        ge=1,
    )
    window_ms: int = Field(
        60_000,
        description="Rate limit window size in milliseconds",
        gt=0,
    )
    include_headers: bool = Field(
        True,
        description="Attach X-RateLimit-* headers to rate limited responses",
    )
    storage: Literal["memory", "redis"] = Field(
        "memory",
        description="Counter store backend",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL used when storage=redis",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class AuthSettings(BaseSettings):
    """Credential verification against the hosted auth provider.

    ``provider`` selects how bearer tokens are verified:
    - none: tokens are ignored, every caller is identified by address
    - supabase: remote check against ``{supabase_url}/auth/v1/user``
    - jwt: local HS256 check with the project's JWT secret
    """

    provider: Literal["none", "supabase", "jwt"] = Field(
        "none",
        description="Credential verification strategy",
    )
    supabase_url: str | None = Field(
        None,
        description="Base URL of the Supabase project",
    )
    supabase_anon_key: str | None = Field(
        None,
        description="Public anon key sent as the apikey header",
    )
    jwt_secret: str | None = Field(
        None,
        description="JWT signing secret (required for provider=jwt)",
    )
    jwt_audience: str = Field(
        "authenticated",
        description="Expected audience claim of user tokens",
    )
    timeout_seconds: float = Field(
        5.0,
        description="Timeout for remote verification calls",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field("json", description="Log line format")
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.

    Environments:
    - development: Local development (stack traces in error responses)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (no stack traces)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()


def settings_for(request) -> Settings:
    """Settings the request's app was built with.

    ``create_app`` stores them on ``app.state``; apps built without the
    factory fall back to the environment-loaded instance.
    """

    return getattr(request.app.state, "settings", settings)
