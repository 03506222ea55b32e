"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Gemini
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "google_api_key"),
    )
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.0
    gemini_timeout_seconds: int = 120

    # Retry/backoff around each page call
    retry_max_attempts: int = 3
    retry_base_seconds: float = 2.0
    retry_jitter_seconds: float = 1.0
    retry_max_wait_seconds: float = 60.0

    # Pipeline
    page_delay_seconds: float = 1.5
    malformed_response_policy: Literal["skip", "raise"] = "skip"
    transport_errors_fatal: bool = False

    # Rendering
    render_dpi: int = 150
    render_max_width: int = 2000

    # Export
    merge_width_sample_rows: int = 100
    max_column_width: int = 50

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    max_upload_mb: int = 50

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
