"""
Runtime configuration.

Environment variables (prefixed ``EXTERNAL_CHOICES_``) override defaults.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import RefreshFrequency
from .rules import FETCH_TIMEOUT_SECONDS, MAX_FILE_SIZE


class Settings(BaseSettings):
    """Environment-driven settings with sensible defaults."""

    model_config = SettingsConfigDict(
        env_prefix="EXTERNAL_CHOICES_", env_file=".env", extra="ignore"
    )

    log_level: str = "INFO"

    # Host of this site; URLs on it are read without caching
    site_host: str = Field(default="", description="Same-origin host (empty = none)")

    # Media library
    media_root: Optional[Path] = Field(
        default=None, description="Directory holding uploaded files (empty to disable)"
    )
    media_base_url: str = Field(
        default="", description="Public URL prefix under which media_root is served"
    )

    fetch_timeout: float = FETCH_TIMEOUT_SECONDS
    max_file_size: int = MAX_FILE_SIZE
    default_frequency: RefreshFrequency = RefreshFrequency.DAILY
