"""
Error classification for raw tool and API failures.

Turns whatever a git invocation or a GitHub API call raised into exactly one
typed ``ZhgitError``. Classification happens once, where the raw failure is
caught; typed errors pass through untouched.
"""

import re
from dataclasses import dataclass
from typing import Any

import structlog

from zhgit.enums import ErrorKind
from zhgit.exceptions import CommandError, ZhgitError, error_for_kind

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ErrorPattern:
    """One row of the classification table."""

    kind: ErrorKind
    pattern: re.Pattern[str]
    message: str


# Status codes only count where HTTP reports them: at the start of a line
# (PyGithub's "403 {...}"), or after "HTTP", "error:" or "status"
HTTP_STATUS_CONTEXT = r"(?:^|\bHTTP(?:/[\d.]+)?\s+|\berror:\s+|\bstatus:?\s+)"


def _row(kind: ErrorKind, message: str, *fragments: str) -> ErrorPattern:
    alternatives = "|".join(
        HTTP_STATUS_CONTEXT + re.escape(fragment) + r"\b" if fragment.isdigit() else re.escape(fragment)
        for fragment in fragments
    )
    return ErrorPattern(kind, re.compile(alternatives, re.MULTILINE), message)


# Ordered; the first matching row wins
ERROR_PATTERNS: tuple[ErrorPattern, ...] = (
    _row(
        ErrorKind.GIT_NOT_REPOSITORY,
        "The current directory is not a git repository",
        "not a git repository",
    ),
    _row(
        ErrorKind.GIT_DIRTY_WORKING_DIR,
        "The working tree has uncommitted changes; commit or stash them first",
        "Your branch is ahead",
        "Changes not staged",
        "Please commit your changes or stash them",
    ),
    _row(
        ErrorKind.GIT_BRANCH_EXISTS,
        "The branch already exists; choose a different name",
        "already exists",
    ),
    _row(
        ErrorKind.GIT_MERGE_CONFLICT,
        "The merge produced conflicts that must be resolved by hand",
        "CONFLICT",
        "Automatic merge failed",
    ),
    _row(
        ErrorKind.NETWORK_TIMEOUT,
        "The network request timed out",
        "timeout",
        "timed out",
        "ETIMEDOUT",
    ),
    _row(
        ErrorKind.NETWORK_CONNECTION_FAILED,
        "The network connection failed",
        "ENOTFOUND",
        "ECONNREFUSED",
        "ECONNRESET",
        "Could not resolve host",
        "Connection refused",
        "Connection reset",
        "Failed to resolve",
        "Name or service not known",
    ),
    _row(
        ErrorKind.API_RATE_LIMIT,
        "The GitHub API rate limit was exceeded",
        "rate limit",
    ),
    _row(
        ErrorKind.AUTH_TOKEN_INVALID,
        "The GitHub token is invalid; store a new one with 'zhgit config'",
        "Bad credentials",
        "401",
    ),
    _row(
        ErrorKind.AUTH_PERMISSION_DENIED,
        "Permission denied; check the token scopes and your repository access",
        "403",
        "Permission denied",
    ),
)


class ErrorClassifier:
    """Map raw failures onto the closed ``ErrorKind`` taxonomy.

    ``classify`` is total: it returns a typed error for any exception or
    string and never raises itself.
    """

    patterns: tuple[ErrorPattern, ...] = ERROR_PATTERNS

    @classmethod
    def classify(
        cls,
        error: BaseException | str,
        context: str = "",
        fallback: ErrorKind = ErrorKind.UNKNOWN_ERROR,
    ) -> ZhgitError:
        """Classify a raw failure.

        Args:
            error: The exception (or raw message) to classify
            context: What zhgit was doing when it failed
            fallback: Kind used when no pattern matches

        Returns:
            The typed error. Already-typed errors are returned unchanged,
            except ``CommandError`` which is classified from its output.
        """
        if isinstance(error, ZhgitError) and not isinstance(error, CommandError):
            return error

        text = cls._raw_text(error)
        searchable = text
        details: dict[str, Any] = {"original_error": text, "context": context}
        if isinstance(error, CommandError):
            details["command"] = error.details.get("command")
            searchable = error.diagnostic_output

        for row in cls.patterns:
            if row.pattern.search(searchable):
                classified = error_for_kind(row.kind, row.message, details)
                break
        else:
            summary = text.strip().splitlines()[0] if text.strip() else type(error).__name__
            classified = error_for_kind(fallback, f"Operation failed: {summary}", details)

        log.debug(
            "error_classified",
            kind=classified.kind.value,
            context=context,
            error_type=type(error).__name__,
        )
        return classified

    @staticmethod
    def _raw_text(error: BaseException | str) -> str:
        if isinstance(error, str):
            return error
        if isinstance(error, CommandError):
            return error.output
        try:
            return str(error) or repr(error)
        except Exception:
            return type(error).__name__

    @staticmethod
    def log_error(error: ZhgitError) -> None:
        """Record a typed error in the structured log."""
        log.error(
            "operation_failed",
            kind=error.kind.value,
            message=error.message,
            context=error.details.get("context") or None,
        )
