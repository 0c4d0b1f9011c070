"""Command-line interface commands for zhgit."""

from zhgit.cli.branch import branch_command
from zhgit.cli.config import config_command
from zhgit.cli.push import push_command

__all__ = [
    "branch_command",
    "config_command",
    "push_command",
]
