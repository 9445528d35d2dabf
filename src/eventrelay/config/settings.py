"""
Module: settings.py
Description: Application configuration using pydantic-settings.

Configures the forwarder from environment variables prefixed with
EVENTRELAY_, with validation and defaults. Supports .env files for
local development.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Forwarder settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EVENTRELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="eventrelay", description="Application name")
    app_version: str = Field(default="0.3.0", description="Application version")
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(
        default=None,
        description="Append logs to this file instead of stdout"
    )

    # Retry cache settings
    cache_path: str = Field(
        default="eventrelay-cache.db",
        description="Path of the SQLite file holding failed events"
    )
    flush_batch_size: int = Field(
        default=100,
        ge=1,
        description="Records replayed per flush_cache() call when no count is given"
    )

    # Worker pool settings
    worker_count: Optional[int] = Field(
        default=None,
        ge=1,
        description="Worker threads; defaults to the detected CPU count"
    )

    # Delivery settings
    delivery_timeout: float = Field(
        default=10,
        ge=1,
        le=60,
        description="HTTP timeout in seconds for delivery attempts"
    )
    transport_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per POST on connection-level errors"
    )
    transport_max_wait: float = Field(
        default=5.0,
        ge=0,
        description="Upper bound in seconds for the backoff between attempts"
    )
    default_headers: List[str] = Field(
        default_factory=lambda: ["Content-Type: application/json"],
        description="Headers sent when an event carries none"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @field_validator('cache_path')
    @classmethod
    def validate_cache_path(cls, v: str) -> str:
        """Validate the cache path is a non-empty string."""
        if not v or not v.strip():
            raise ValueError("cache_path must be a non-empty string")
        return v.strip()


# Global settings instance
settings = Settings()
