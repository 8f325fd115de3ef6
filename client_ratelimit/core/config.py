"""Rate limiter configuration using Pydantic Settings.

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

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file and not os.getenv("TESTING"):
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_rate_limit_settings() -> "RateLimitSettings":
    """Build rate limit settings from environment."""

    return RateLimitSettings()


def _build_log_settings() -> "LogSettings":
    """Build log settings from environment."""

    return LogSettings()


class RateLimitSettings(BaseSettings):
    """Rate limiter and counter store configuration."""

    enabled: bool = Field(
        True,
        description="Run the pre-send and post-response limit checks",
    )
    store: Literal["memory", "redis"] = Field(
        "memory",
        description="Counter store backend used by create_rate_limit_store()",
    )
    redis_url: str | None = Field(
        None,
        description="Redis connection URL (required when store=redis)",
    )
    key_prefix: str = Field(
        "",
        description="Namespace prepended to every limit name in the store",
    )
    respect_retry_after: bool = Field(
        True,
        description="Use the Retry-After header as the window when a 429 trips a limit",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field(
        "json",
        description="json for machine-friendly logs, plain for local debugging",
    )
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(3, description="Rotated files to keep", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Settings container composed from the domain-specific sections."""

    app_env: str = APP_ENV
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
