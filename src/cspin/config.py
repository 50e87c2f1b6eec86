"""Configuration management for cspin."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CSPIN_DIR = Path("~/.cspin")


class CspinSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=None, env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    cspin_dir: Path = Field(default=DEFAULT_CSPIN_DIR, validation_alias="CSPIN_DIR")
    log_level: str = Field(default="WARNING", validation_alias="CSPIN_LOG_LEVEL")
    log_file: Path | None = Field(default=None, validation_alias="CSPIN_LOG_FILE")
    pending_max_age: float = Field(default=120.0, validation_alias="CSPIN_PENDING_MAX_AGE")
    host_names_raw: str = Field(default="node,claude", validation_alias="CSPIN_HOST_NAMES")
    max_hops: int = Field(default=5, validation_alias="CSPIN_MAX_HOPS")
    claude_path: str | None = Field(default=None, validation_alias="CLAUDE_PATH")
    claude_settings_path: Path = Field(
        default=Path("~/.claude/settings.json"), validation_alias="CLAUDE_SETTINGS_PATH"
    )
    claude_projects_dir: Path = Field(
        default=Path("~/.claude/projects"), validation_alias="CLAUDE_PROJECTS_DIR"
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "CSPIN_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("host_names_raw", mode="before")
    @classmethod
    def _parse_host_names(cls, value):
        if value is None or value == "":
            return "node,claude"
        if isinstance(value, (list, tuple)):
            return ",".join(str(item).strip() for item in value if str(item).strip())
        if isinstance(value, str):
            return value
        raise TypeError("CSPIN_HOST_NAMES must be a list of names or a comma-separated string")

    @field_validator("pending_max_age")
    @classmethod
    def _validate_pending_max_age(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("CSPIN_PENDING_MAX_AGE must be > 0")
        return value

    @field_validator("max_hops")
    @classmethod
    def _validate_max_hops(cls, value: int) -> int:
        if value < 1:
            raise ValueError("CSPIN_MAX_HOPS must be >= 1")
        return value

    @property
    def host_names(self) -> frozenset[str]:
        names = {part.strip() for part in self.host_names_raw.split(",") if part.strip()}
        return frozenset(names or {"node", "claude"})

    @property
    def tracking_dir(self) -> Path:
        return self.cspin_dir / ".tracking"


def env_file_path() -> Path:
    """Return the store root `.env`; the working directory is never consulted."""

    root = os.environ.get("CSPIN_DIR") or str(DEFAULT_CSPIN_DIR)
    return Path(root).expanduser() / ".env"


@lru_cache(maxsize=1)
def get_settings() -> CspinSettings:
    """Return cached settings instance."""

    settings = CspinSettings(_env_file=env_file_path())
    settings.cspin_dir = settings.cspin_dir.expanduser().resolve()
    settings.claude_settings_path = settings.claude_settings_path.expanduser()
    settings.claude_projects_dir = settings.claude_projects_dir.expanduser()
    if settings.log_file is not None:
        settings.log_file = settings.log_file.expanduser()
    return settings


__all__ = ["CspinSettings", "env_file_path", "get_settings"]
