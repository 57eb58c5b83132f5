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


def _build_auth_settings() -> "AuthSettings":
    """Build auth settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return AuthSettings()  # type: ignore[call-arg]


def _build_store_settings() -> "StoreSettings":
    """Build analytical store settings from environment.

    See _build_auth_settings() for rationale about the type ignore.
    """

    return StoreSettings()  # type: ignore[call-arg]


class ApiSettings(BaseSettings):
    """HTTP server configuration."""

    host: str = Field(
        "localhost",
        description="Interface the API server binds to",
    )
    port: int = Field(
        3000,
        description="Port the API server listens on",
        ge=1,
        le=65535,
    )
    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    model_config = SettingsConfigDict(
        env_prefix="API_",
        case_sensitive=False,
    )


class AuthSettings(BaseSettings):
    """Credential source and session token configuration."""

    jwt_secret: str = Field(
        ...,
        description="Symmetric secret used to sign and verify session tokens",
        min_length=1,
    )
    users_file: Path = Field(
        PROJECT_ROOT / "users.json",
        description='JSON file shaped as {"users": [{"username", "password"}]} with bcrypt hashes',
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


class RedisSettings(BaseSettings):
    """Shared counter store (Redis) connection."""

    host: str = Field("localhost", description="Redis host")
    port: int = Field(6379, description="Redis port")
    db: int = Field(0, description="Redis logical database index")
    password: str | None = Field(None, description="Redis AUTH password")
    socket_timeout_seconds: float = Field(
        1.0,
        description="Socket connect/read timeout; limiter calls fail fast past it",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Per-route-class admission limits.

    Field names mirror the deployment variables (LOGIN_ATTEMPT, SALE_DURATION, ...).
    """

    rate_limit_backend: Literal["redis", "memory"] = Field(
        "redis",
        description="Counter store backend; 'memory' is per-process only",
    )
    login_attempt: int = Field(
        3,
        description="Login attempts allowed per window (per client IP)",
        ge=1,
    )
    login_duration: int = Field(
        60,
        description="Login limiter window size in seconds",
        ge=1,
    )
    sale_attempt: int = Field(
        100,
        description="Sales requests allowed per window (per client IP and user)",
        ge=1,
    )
    sale_duration: int = Field(
        60,
        description="Sales limiter window size in seconds",
        ge=1,
    )
    rate_limit_trust_forwarded_for: bool = Field(
        False,
        description="Use the first X-Forwarded-For hop as client IP (only behind a trusted proxy)",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Analytical store (DuckDB) configuration."""

    path: str = Field(
        ...,
        description="Path to the DuckDB database file",
    )
    schema_name: str = Field(
        "dwh.main",
        description="Catalog/schema qualifier of the fact and dimension tables",
        validation_alias="DUCKDB_SCHEMA",
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$",
    )
    query_timeout_seconds: float = Field(
        10.0,
        description="Maximum time a single store query may take",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="DUCKDB_",
        case_sensitive=False,
        populate_by_name=True,
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
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing
    (JWT_SECRET, DUCKDB_PATH).
    """

    app_env: str = APP_ENV
    api: ApiSettings = Field(default_factory=ApiSettings)
    auth: AuthSettings = Field(default_factory=_build_auth_settings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
