"""
Runtime settings using pydantic-settings.

Every setting can be overridden with a ``ZHGIT_``-prefixed environment
variable (``ZHGIT_COMMAND_TIMEOUT=60``). ``DEBUG`` is honoured as an alias of
``ZHGIT_DEBUG``.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ZhgitSettings(BaseSettings):
    """Settings for the zhgit CLI and workflows."""

    model_config = SettingsConfigDict(
        env_prefix="ZHGIT_",
        case_sensitive=False,
        populate_by_name=True,
    )

    debug: bool = Field(
        default=False,
        validation_alias=AliasChoices("ZHGIT_DEBUG", "DEBUG", "debug"),
        description="Verbose diagnostics and full error details",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Minimum level of structured log output"
    )
    log_json: bool = Field(default=False, description="Render log lines as JSON")

    config_path: Path = Field(
        default=Path("~/.zhgit/config.yaml"),
        description="Per-user record file (never holds the token itself)",
    )

    command_timeout: float = Field(default=30.0, gt=0, description="Seconds before a git command is killed")
    max_output_bytes: int = Field(default=1024 * 1024, gt=0, description="Cap on captured git output")

    retry_attempts: int = Field(default=3, ge=1, description="Attempts for fetch and push")
    retry_delay: float = Field(default=2.0, ge=0, description="Seconds between attempts")

    api_base_url: str = Field(default="https://api.github.com", description="GitHub API base URL")
    api_timeout: float = Field(default=15.0, gt=0, description="Seconds before an API request is abandoned")

    allowed_targets: tuple[str, ...] = Field(
        default=("main", "dev", "release"),
        description="Branches 'zhgit push' may target",
    )
    default_base_branch: str = Field(default="main", description="Base of 'zhgit branch create'")
    remote_name: str = Field(default="origin", description="Remote that is fetched and pushed")
    keyring_service: str = Field(default="zhgit", description="Keyring service holding the tokens")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @field_validator("config_path")
    @classmethod
    def expand_config_path(cls, v: Path) -> Path:
        return v.expanduser()

    @property
    def effective_log_level(self) -> str:
        """Log level after applying the debug switch."""
        return "DEBUG" if self.debug else self.log_level
