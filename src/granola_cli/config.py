"""Application settings via pydantic-settings."""

import os
import sys
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

_GRANOLA_DIRS = {
    "darwin": "~/Library/Application Support/Granola",
    "linux": "~/.config/Granola",
    "win32": "~/AppData/Roaming/Granola",
}


def granola_dir(platform: str | None = None) -> str:
    """Return Granola's application-data directory for *platform*."""
    return _GRANOLA_DIRS.get(platform or sys.platform, _GRANOLA_DIRS["darwin"])


def default_cache_path() -> str:
    return f"{granola_dir()}/cache-v3.json"


def default_credentials_path() -> str:
    return f"{granola_dir()}/supabase.json"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GRANOLA_", populate_by_name=True)

    cache_path: str = Field(
        default_factory=default_cache_path,
        description=(
            "Path to Granola's local cache JSON file. "
            "Defaults to the standard location for the current platform."
        ),
    )
    credentials_path: str = Field(
        default_factory=default_credentials_path,
        validation_alias=AliasChoices(
            "GRANOLA_CREDENTIALS", "GRANOLA_CREDENTIALS_PATH", "credentials_path"
        ),
        description="Path to Granola's supabase.json holding the access token.",
    )
    api_base: str = Field(
        default="https://api.granola.ai", description="Granola API base URL"
    )
    timeout: float = Field(
        default=30.0,
        ge=0,
        description="Per-request network timeout in seconds (0 disables it).",
    )
    page_size: int = Field(
        default=100, ge=1, description="Documents requested per API page."
    )
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="warning", description="Logging level"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _lower_level(cls, value):
        return value.lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _expand_paths(self) -> "Config":
        object.__setattr__(self, "cache_path", os.path.expanduser(self.cache_path))
        object.__setattr__(
            self, "credentials_path", os.path.expanduser(self.credentials_path)
        )
        return self
