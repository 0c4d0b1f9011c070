"""
Per-user record persistence.

The record file maps git usernames to non-secret bookkeeping about their
token (whether one is stored and validated, the GitHub login it belongs to,
when it was last used). The token itself lives only in the system keyring.

File format::

    users:
      alice:
        email: alice@example.com
        has_token: true
        token_validated: true
        github_login: alice-gh
        last_used: 2024-03-15T09:30:00+00:00
        preferences: {}
"""

from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError

from zhgit.enums import ErrorKind
from zhgit.exceptions import ConfigurationError

log = structlog.get_logger(__name__)


class UserRecord(BaseModel):
    """Bookkeeping for one git username."""

    email: str | None = None
    last_used: datetime | None = None
    has_token: bool = False
    token_validated: bool = False
    github_login: str | None = None
    preferences: dict[str, Any] = Field(default_factory=dict)


class UserConfig(BaseModel):
    """Top-level shape of the record file."""

    users: dict[str, UserRecord] = Field(default_factory=dict)


class ConfigStore:
    """Load and save the per-user record file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> UserConfig:
        """Read the record file.

        Returns:
            The parsed records; an empty config when the file does not exist

        Raises:
            ConfigurationError: CONFIG_INVALID if the file cannot be read,
                is not valid YAML or does not match the schema
        """
        if not self.path.exists():
            return UserConfig()

        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file: {self.path}", kind=ErrorKind.CONFIG_INVALID) from e
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML syntax in {self.path}: {e}",
                kind=ErrorKind.CONFIG_INVALID,
                details={"path": str(self.path)},
            ) from e

        if data is None:
            return UserConfig()
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file must be a YAML mapping: {self.path}",
                kind=ErrorKind.CONFIG_INVALID,
            )

        try:
            return UserConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid config file {self.path}: {e}",
                kind=ErrorKind.CONFIG_INVALID,
                details={"path": str(self.path)},
            ) from e

    def save(self, config: UserConfig) -> None:
        """Write the record file, creating its directory if needed."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigurationError(f"Cannot write config file: {self.path}", kind=ErrorKind.CONFIG_INVALID) from e

        log.debug("config_saved", path=str(self.path))

    def get_user(self, username: str) -> UserRecord | None:
        return self.load().users.get(username)

    def update_user(self, username: str, **changes: Any) -> UserRecord:
        """Apply field changes to one user's record and save the file.

        Returns:
            The updated record
        """
        config = self.load()
        current = config.users.get(username, UserRecord())
        record = current.model_copy(update=changes)
        config.users[username] = UserRecord.model_validate(record.model_dump())
        self.save(config)
        return config.users[username]
