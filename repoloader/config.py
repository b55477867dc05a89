"""Loader configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """repoloader settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    debug: bool = False

    # GitHub
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    request_timeout: float = Field(default=30.0, gt=0)

    # Sync
    max_concurrent_fetches: int = Field(default=16, ge=1)
    fail_fast: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///data/db/repoloader.db"
