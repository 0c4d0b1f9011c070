"""Typed error hierarchy for zhgit.

Every failure that reaches the user is a ``ZhgitError`` carrying a kind from
the closed ``ErrorKind`` enum, a human message, a details mapping and the time
it was raised. Raw failures (git output, HTTP errors) are turned into typed
errors by ``zhgit.engine.error_classifier``; once typed, an error is only
displayed.

Exception Hierarchy:
    ZhgitError (base)
    ├── RepositoryStateError
    │   └── MergeConflictError
    ├── NetworkError
    ├── AuthenticationError
    ├── ConfigurationError
    │   └── InvalidGitUrlError
    ├── InputValidationError
    ├── SystemOperationError
    │   └── CommandError
    └── CredentialError
        └── BackendNotAvailableError

Example Usage:
    >>> from zhgit.exceptions import ConfigurationError
    >>> try:
    ...     store.load()
    ... except yaml.YAMLError as e:
    ...     raise ConfigurationError(f"Malformed config file: {path}") from e
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from zhgit.enums import ErrorDomain, ErrorKind

REMEDIATION_HINTS: dict[ErrorKind, str] = {
    ErrorKind.GIT_NOT_REPOSITORY: "Run the command from inside a git working copy.",
    ErrorKind.GIT_DIRTY_WORKING_DIR: 'Commit or stash your changes first: git add . && git commit -m "your message"',
    ErrorKind.GIT_BRANCH_EXISTS: "Choose a different branch name, or pass --force to overwrite it.",
    ErrorKind.GIT_BRANCH_NOT_EXISTS: "Check the branch name with: zhgit branch list --remote",
    ErrorKind.GIT_MERGE_CONFLICT: (
        'Resolve the conflicts, then run: git add . && git commit -m "resolve conflicts", '
        "and re-run the zhgit command."
    ),
    ErrorKind.GIT_PUSH_FAILED: "Check your push permissions and network, then re-run the command.",
    ErrorKind.GIT_FETCH_FAILED: "Check that the remote branch exists and that 'origin' is reachable.",
    ErrorKind.NETWORK_TIMEOUT: "Check your network connection and try again later.",
    ErrorKind.NETWORK_CONNECTION_FAILED: "Check your network settings, proxy and DNS.",
    ErrorKind.API_RATE_LIMIT: "The API rate limit was exceeded. Wait a few minutes and retry.",
    ErrorKind.AUTH_TOKEN_INVALID: "Store a new token with: zhgit config <your-github-token>",
    ErrorKind.AUTH_TOKEN_MISSING: "Store a token first with: zhgit config <your-github-token>",
    ErrorKind.AUTH_PERMISSION_DENIED: "Check the token scopes (repo) and your access to the repository.",
    ErrorKind.CONFIG_INVALID: "Fix or delete the zhgit config file (~/.zhgit/config.yaml).",
    ErrorKind.CONFIG_MISSING: "Configure git first: git config --global user.name <name>",
    ErrorKind.INVALID_BRANCH_NAME: "Use letters, digits, '.', '-', '_' or '/' in branch names.",
    ErrorKind.INVALID_INPUT: "Run 'zhgit --help' to see the accepted arguments.",
    ErrorKind.SYSTEM_ERROR: "Re-run with --debug for details.",
    ErrorKind.UNKNOWN_ERROR: "Re-run with --debug for details and report the problem if it persists.",
}


def remediation_for(kind: ErrorKind) -> str:
    """Return the canonical remediation hint for an error kind."""
    return REMEDIATION_HINTS[kind]


def mask_arguments(text: str, args: Sequence[str]) -> str:
    """Replace every occurrence of the given arguments in ``text`` with ``<arg>``.

    Options (``-u``, ``--no-edit``) and single characters are left alone.
    Longer arguments are masked first so ``origin/dev`` wins over ``dev``.
    """
    values = {arg for arg in args if len(arg) > 1 and not arg.startswith("-")}
    for value in sorted(values, key=len, reverse=True):
        text = text.replace(value, "<arg>")
    return text


class ZhgitError(Exception):
    """Base exception for all zhgit errors.

    Attributes:
        message: Human-readable error description
        kind: Closed-set error kind
        details: Structured context (original error text, operation, ...)
        timestamp: When the error was created (UTC)
    """

    default_kind: ErrorKind = ErrorKind.UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        kind: ErrorKind | None = None,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            kind: Error kind, defaults to the class default
            details: Structured context for debugging
            suggestion: Overrides the canonical remediation hint of the kind
        """
        self.message = message
        self.kind = kind or self.default_kind
        self.details: dict[str, Any] = dict(details or {})
        self.timestamp = datetime.now(UTC)
        self._suggestion = suggestion
        super().__init__(message)

    @property
    def domain(self) -> ErrorDomain:
        return self.kind.domain

    @property
    def suggestion(self) -> str:
        """Remediation hint shown under the error message."""
        return self._suggestion or remediation_for(self.kind)

    def to_dict(self) -> dict[str, Any]:
        """Serializable representation used for debug output."""
        return {
            "name": type(self).__name__,
            "kind": self.kind.value,
            "domain": self.domain.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class RepositoryStateError(ZhgitError):
    """The working copy is not in a state the operation accepts."""

    default_kind = ErrorKind.GIT_NOT_REPOSITORY


class MergeConflictError(RepositoryStateError):
    """Merging the target branch left conflicts in the working branch.

    Attributes:
        working_branch: Branch holding the conflicted merge
        target_branch: Branch that was being merged in
        resolution_steps: Commands the user runs to finish the push
    """

    default_kind = ErrorKind.GIT_MERGE_CONFLICT

    def __init__(
        self,
        working_branch: str,
        target_branch: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.working_branch = working_branch
        self.target_branch = target_branch
        self.resolution_steps = [
            "git add .",
            'git commit -m "resolve conflicts"',
            f"zhgit push {target_branch}",
        ]
        super().__init__(
            f"Merging origin/{target_branch} into {working_branch} produced conflicts",
            details=details,
        )


class NetworkError(ZhgitError):
    """Transient network condition (timeout, connection failure, rate limit)."""

    default_kind = ErrorKind.NETWORK_CONNECTION_FAILED


class AuthenticationError(ZhgitError):
    """Missing, invalid or under-privileged credentials."""

    default_kind = ErrorKind.AUTH_TOKEN_INVALID


class ConfigurationError(ZhgitError):
    """Configuration is missing or invalid."""

    default_kind = ErrorKind.CONFIG_INVALID


class InvalidGitUrlError(ConfigurationError):
    """Remote URL could not be parsed into owner/repo."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(
            f"Invalid Git URL '{url}': {reason}",
            details={"url": url},
            suggestion="Point 'origin' at a GitHub repository: git remote set-url origin <url>",
        )


class InputValidationError(ZhgitError):
    """User input (branch names, targets, arguments) was rejected."""

    default_kind = ErrorKind.INVALID_INPUT


class SystemOperationError(ZhgitError):
    """Local system failure not attributable to the user."""

    default_kind = ErrorKind.SYSTEM_ERROR


class CommandError(SystemOperationError):
    """A git command exited non-zero, timed out or produced too much output.

    This is the one provisional typed error: it carries the raw tool output
    and is classified into a precise kind where it is caught.

    Attributes:
        args: Arguments passed to git
        returncode: Exit status, None when the process never finished
        stdout: Captured standard output
        stderr: Captured standard error
    """

    def __init__(
        self,
        message: str,
        args: Sequence[str],
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command_args = list(args)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            message,
            details={
                "command": "git " + " ".join(self.command_args),
                "returncode": returncode,
            },
        )

    @property
    def output(self) -> str:
        """Combined raw output, as git printed it."""
        return "\n".join(part for part in (self.message, self.stderr, self.stdout) if part)

    @property
    def diagnostic_output(self) -> str:
        """Combined output with the command's own arguments masked.

        git echoes ref names back in its errors; a branch called
        ``timeout-handling`` or ``fix-403`` must not read as a network or
        permission failure. This is the text classification runs on.
        """
        return mask_arguments(self.output, self.command_args[1:])


class CredentialError(ZhgitError):
    """Credential storage or retrieval failed.

    Attributes:
        reference: Vault location that failed (e.g., "zhgit/alice")
    """

    default_kind = ErrorKind.SYSTEM_ERROR

    def __init__(
        self,
        message: str,
        reference: str | None = None,
        suggestion: str | None = None,
        kind: ErrorKind | None = None,
    ) -> None:
        self.reference = reference
        details = {"reference": reference} if reference else None
        super().__init__(message, kind=kind, details=details, suggestion=suggestion)


class BackendNotAvailableError(CredentialError):
    """No usable system keyring is configured."""

    default_kind = ErrorKind.CONFIG_MISSING


_DOMAIN_CLASSES: dict[ErrorDomain, type[ZhgitError]] = {
    ErrorDomain.REPOSITORY: RepositoryStateError,
    ErrorDomain.NETWORK: NetworkError,
    ErrorDomain.AUTHENTICATION: AuthenticationError,
    ErrorDomain.CONFIGURATION: ConfigurationError,
    ErrorDomain.VALIDATION: InputValidationError,
    ErrorDomain.SYSTEM: SystemOperationError,
}


def error_for_kind(
    kind: ErrorKind,
    message: str,
    details: dict[str, Any] | None = None,
) -> ZhgitError:
    """Build the domain-specific exception for a kind.

    Args:
        kind: Error kind
        message: Human-readable message
        details: Structured context

    Returns:
        Instance of the exception class that owns the kind's domain
    """
    return _DOMAIN_CLASSES[kind.domain](message, kind=kind, details=details)
