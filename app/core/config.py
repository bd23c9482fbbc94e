"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
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


class StorageSettings(BaseSettings):
    """Object storage provider configuration.

    Provider name and provider-specific requirements are validated by the
    storage factory so the error can name every missing variable at once.
    """

    provider: str = Field(
        "local",
        description="Storage provider name (local, memory, s3, r2, gcs)",
    )
    local_root_dir: str | None = Field(
        None,
        description="Root directory for the local provider (default: <cwd>/storage)",
    )
    bucket: str | None = Field(
        None,
        description="Bucket name for s3, r2 and gcs providers",
    )
    region: str | None = Field(
        None,
        description="Bucket region (s3 only; r2 always uses 'auto')",
    )
    endpoint: str | None = Field(
        None,
        description="Custom S3 API endpoint (required for r2, optional for MinIO etc.)",
    )
    access_key_id: str | None = Field(
        None,
        description="Access key id for S3-compatible providers",
    )
    secret_access_key: str | None = Field(
        None,
        description="Secret access key for S3-compatible providers",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        case_sensitive=False,
    )


class GcsSettings(BaseSettings):
    """Google Cloud Storage service-account credentials."""

    project_id: str | None = Field(None, description="GCP project id")
    client_email: str | None = Field(None, description="Service account email")
    private_key: str | None = Field(
        None,
        description="Service account private key (literal \\n sequences allowed)",
    )

    model_config = SettingsConfigDict(
        env_prefix="GCS_",
        case_sensitive=False,
    )


class UploadSettings(BaseSettings):
    """Media upload limits and image compression options."""

    max_file_size_mb: float = Field(
        10,
        description="Maximum upload size in megabytes",
        gt=0,
    )
    image_compression: bool = Field(
        True,
        description="Compress supported images to WebP before storing",
    )
    image_max_width: int = Field(
        1920,
        description="Images wider than this are downscaled (never upscaled)",
        gt=0,
    )
    image_quality: int = Field(
        85,
        description="WebP encoder quality",
        ge=1,
        le=100,
    )

    model_config = SettingsConfigDict(
        env_prefix="UPLOAD_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable rate limiting on /api routes (per client IP and path)",
    )
    rate_limit_requests: int = Field(
        100,
        description="Maximum number of requests allowed within the sliding window",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        300,
        description="Sliding window size in seconds",
        ge=1,
    )
    rate_limit_sweep_interval_seconds: int = Field(
        60,
        description="Minimum interval between sweeps of idle rate limit keys",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    gcs: GcsSettings = Field(default_factory=GcsSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
