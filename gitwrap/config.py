"""Runtime settings, read from GITWRAP_* environment variables."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GitwrapSettings(BaseSettings):
    """Settings shared by every git invocation.

    Example:
        GITWRAP_TIMEOUT=30 GITWRAP_WALK_WORKERS=8 gitwrap find ~/code
    """

    model_config = SettingsConfigDict(env_prefix="GITWRAP_", extra="ignore")

    git_executable: str = Field(default="git", description="git executable name or path")
    timeout: Optional[float] = Field(default=None, gt=0, description="Seconds per git invocation")
    walk_workers: int = Field(default=1, ge=1, description="Parallel probes during discovery")
    history_workers: int = Field(default=1, ge=1, description="Parallel commit lookups in get_log")
    timestamp_source: Literal["committer", "author"] = Field(
        default="committer", description="Which commit time becomes Commit.timestamp"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Log level for the CLI"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @property
    def timestamp_placeholder(self) -> str:
        """git pretty-format placeholder for the configured timestamp."""
        return "%at" if self.timestamp_source == "author" else "%ct"
