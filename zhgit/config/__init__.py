"""Settings and per-user record storage."""

from zhgit.config.settings import ZhgitSettings
from zhgit.config.store import ConfigStore, UserConfig, UserRecord

__all__ = [
    "ConfigStore",
    "UserConfig",
    "UserRecord",
    "ZhgitSettings",
]
