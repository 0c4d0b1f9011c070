"""Enumerations for zhgit error kinds, target branches and workflow actions."""

from enum import Enum


class ErrorDomain(str, Enum):
    """Groups of related error kinds."""

    REPOSITORY = "repository"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    SYSTEM = "system"

    def __str__(self) -> str:
        return self.value


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced to the user.

    Every failure that reaches the CLI carries exactly one of these kinds.
    The values are stable identifiers and appear in debug output.
    """

    # Repository state
    GIT_NOT_REPOSITORY = "GIT_NOT_REPOSITORY"
    GIT_DIRTY_WORKING_DIR = "GIT_DIRTY_WORKING_DIR"
    GIT_BRANCH_EXISTS = "GIT_BRANCH_EXISTS"
    GIT_BRANCH_NOT_EXISTS = "GIT_BRANCH_NOT_EXISTS"
    GIT_MERGE_CONFLICT = "GIT_MERGE_CONFLICT"
    GIT_PUSH_FAILED = "GIT_PUSH_FAILED"
    GIT_FETCH_FAILED = "GIT_FETCH_FAILED"

    # Network
    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    NETWORK_CONNECTION_FAILED = "NETWORK_CONNECTION_FAILED"
    API_RATE_LIMIT = "API_RATE_LIMIT"

    # Authentication
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_TOKEN_MISSING = "AUTH_TOKEN_MISSING"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"

    # Configuration
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_MISSING = "CONFIG_MISSING"

    # Input validation
    INVALID_BRANCH_NAME = "INVALID_BRANCH_NAME"
    INVALID_INPUT = "INVALID_INPUT"

    # System
    SYSTEM_ERROR = "SYSTEM_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    def __str__(self) -> str:
        return self.value

    @property
    def domain(self) -> ErrorDomain:
        """Domain this kind belongs to."""
        return _KIND_DOMAINS[self]

    @property
    def is_network(self) -> bool:
        """Whether failures of this kind are transient network conditions."""
        return self.domain is ErrorDomain.NETWORK


_KIND_DOMAINS: dict[ErrorKind, ErrorDomain] = {
    ErrorKind.GIT_NOT_REPOSITORY: ErrorDomain.REPOSITORY,
    ErrorKind.GIT_DIRTY_WORKING_DIR: ErrorDomain.REPOSITORY,
    ErrorKind.GIT_BRANCH_EXISTS: ErrorDomain.REPOSITORY,
    ErrorKind.GIT_BRANCH_NOT_EXISTS: ErrorDomain.REPOSITORY,
    ErrorKind.GIT_MERGE_CONFLICT: ErrorDomain.REPOSITORY,
    ErrorKind.GIT_PUSH_FAILED: ErrorDomain.REPOSITORY,
    ErrorKind.GIT_FETCH_FAILED: ErrorDomain.REPOSITORY,
    ErrorKind.NETWORK_TIMEOUT: ErrorDomain.NETWORK,
    ErrorKind.NETWORK_CONNECTION_FAILED: ErrorDomain.NETWORK,
    ErrorKind.API_RATE_LIMIT: ErrorDomain.NETWORK,
    ErrorKind.AUTH_TOKEN_INVALID: ErrorDomain.AUTHENTICATION,
    ErrorKind.AUTH_TOKEN_MISSING: ErrorDomain.AUTHENTICATION,
    ErrorKind.AUTH_PERMISSION_DENIED: ErrorDomain.AUTHENTICATION,
    ErrorKind.CONFIG_INVALID: ErrorDomain.CONFIGURATION,
    ErrorKind.CONFIG_MISSING: ErrorDomain.CONFIGURATION,
    ErrorKind.INVALID_BRANCH_NAME: ErrorDomain.VALIDATION,
    ErrorKind.INVALID_INPUT: ErrorDomain.VALIDATION,
    ErrorKind.SYSTEM_ERROR: ErrorDomain.SYSTEM,
    ErrorKind.UNKNOWN_ERROR: ErrorDomain.SYSTEM,
}


class BranchAction(str, Enum):
    """Actions accepted by ``zhgit branch``.

    Each action also accepts its first letter as an alias.
    """

    CREATE = "create"
    SWITCH = "switch"
    DELETE = "delete"
    LIST = "list"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: str) -> "BranchAction | None":
        """Resolve an action token or alias, returning None when unknown."""
        token = token.strip().lower()
        for action in cls:
            if token in (action.value, action.value[0]):
                return action
        return None
