"""Branch name validation and generation.

Names produced here are always valid git ref names: lower-case, limited to
``[a-z0-9._-]``, without doubled separators, and at most 200 characters.

Example:
    >>> BranchNamePolicy.sanitize("Feature/Login!!")
    'feature-login'
    >>> BranchNamePolicy.working_branch_name("alice", "feat-x", "main", now)
    'alice-push-feat-x-to-main-20240315093000'
"""

import re
from datetime import datetime

MAX_NAME_LENGTH = 255
MAX_GENERATED_LENGTH = 200

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
SHORT_TIMESTAMP_FORMAT = "%m%d-%H%M"

_FORBIDDEN = re.compile(r"[\s~^:?*\[\\]|\.\.|@\{")
_UNSAFE_CHARACTERS = re.compile(r"[^a-z0-9._-]")
_DOT_RUNS = re.compile(r"\.{2,}")
_DASH_RUNS = re.compile(r"-{2,}")


class BranchNamePolicy:
    """Rules for user-supplied and generated branch names."""

    @staticmethod
    def is_valid(name: str) -> bool:
        """Check a branch name against git's ref-name rules.

        Rejects empty names, names longer than 255 characters, whitespace,
        ``~ ^ : ? * [ \\``, ``..``, ``@{``, a leading ``-`` or ``.``, and a
        trailing ``.``.
        """
        if not name or len(name) > MAX_NAME_LENGTH:
            return False
        if name.startswith(("-", ".")) or name.endswith("."):
            return False
        return _FORBIDDEN.search(name) is None

    @staticmethod
    def sanitize(base: str, suffix: str = "") -> str:
        """Turn arbitrary text into a safe branch name.

        Args:
            base: Text to derive the name from
            suffix: Appended as ``-suffix``; kept whole when the result has
                to be shortened

        Returns:
            A name of at most 200 characters. Sanitizing a sanitized name
            returns it unchanged.
        """
        clean_suffix = _clean(suffix)[:MAX_GENERATED_LENGTH]
        if not clean_suffix:
            return _trim(_clean(base)[:MAX_GENERATED_LENGTH])

        room = MAX_GENERATED_LENGTH - len(clean_suffix) - 1
        clean_base = _trim(_clean(base)[:room]) if room > 0 else ""
        if not clean_base:
            return clean_suffix
        return f"{clean_base}-{clean_suffix}"

    @classmethod
    def working_branch_name(cls, username: str, original_branch: str, target_branch: str, now: datetime) -> str:
        """Name of the integration branch created by ``zhgit push``.

        The trailing 14-digit timestamp records when the branch was cut and
        is read back when the pull request description is composed.
        """
        return cls.sanitize(
            f"{username}-push-{original_branch}-to-{target_branch}",
            now.strftime(TIMESTAMP_FORMAT),
        )

    @classmethod
    def generated_branch_name(cls, username: str, current_branch: str, now: datetime) -> str:
        """Default name for ``zhgit branch create`` when none is given."""
        stamp = now.strftime(SHORT_TIMESTAMP_FORMAT)
        if current_branch in ("main", "master"):
            return cls.sanitize(f"{username}-feature-{stamp}")
        return cls.sanitize(f"{username}-{current_branch}-{stamp}")

    @staticmethod
    def is_merge_branch(name: str, target_branch: str) -> bool:
        """Whether ``name`` is an integration branch for ``target_branch``."""
        return f"-to-{target_branch}-" in name


def _clean(text: str) -> str:
    text = _UNSAFE_CHARACTERS.sub("-", text.lower())
    text = _DOT_RUNS.sub(".", text)
    text = _DASH_RUNS.sub("-", text)
    return _trim(text)


def _trim(text: str) -> str:
    return text.strip("-.")
