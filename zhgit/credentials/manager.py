"""GitHub token management.

``TokenManager`` pairs the credential vault (which holds the secret) with the
per-user record (which says whether a secret is stored and was validated).
"""

from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

import structlog

from zhgit.config.store import ConfigStore, UserRecord
from zhgit.enums import ErrorKind
from zhgit.exceptions import AuthenticationError
from zhgit.models.domain import AuthenticatedUser

log = structlog.get_logger(__name__)


@runtime_checkable
class TokenVault(Protocol):
    """Where token secrets live, keyed by (service, git username).

    Only the secret is stored here; whether it was validated and whom it
    belongs to is kept in the user record.
    """

    def get(self, service: str, account: str) -> str | None: ...

    def set(self, service: str, account: str, value: str) -> None: ...

    def delete(self, service: str, account: str) -> bool:
        """Remove the secret; False when there was none."""
        ...


class TokenManager:
    """Store, look up and clear the GitHub token of a git user.

    Attributes:
        backend: Credential vault
        store: Per-user record store
        service: Vault service name; the account is the git username
    """

    def __init__(self, backend: TokenVault, store: ConfigStore, service: str = "zhgit") -> None:
        self.backend = backend
        self.store = store
        self.service = service

    def save_token(self, username: str, token: str, user: AuthenticatedUser, email: str | None = None) -> UserRecord:
        """Store a validated token and record who it belongs to.

        Args:
            username: git ``user.name``
            token: The token, already validated against the API
            user: Token owner as reported by the API
            email: git ``user.email``, if configured

        Returns:
            The updated user record
        """
        self.backend.set(self.service, username, token)
        record = self.store.update_user(
            username,
            email=email or user.email,
            has_token=True,
            token_validated=True,
            github_login=user.login,
        )
        log.info("token_saved", username=username, github_login=user.login)
        return record

    def get_token(self, username: str) -> str | None:
        return self.backend.get(self.service, username)

    def has_validated_token(self, username: str) -> bool:
        """Whether a token is in the vault and was validated when stored."""
        record = self.store.get_user(username)
        if record is None or not record.token_validated:
            return False
        return self.get_token(username) is not None

    def require_token(self, username: str) -> str:
        """Return the stored token.

        Raises:
            AuthenticationError: AUTH_TOKEN_MISSING when no validated token
                is stored for the user
        """
        record = self.store.get_user(username)
        token = self.get_token(username) if record is not None and record.token_validated else None
        if not token:
            raise AuthenticationError(
                f"No GitHub token is configured for '{username}'",
                kind=ErrorKind.AUTH_TOKEN_MISSING,
                details={"username": username},
            )
        return token

    def clear_token(self, username: str) -> bool:
        """Remove the token from the vault and mark the record accordingly.

        Returns:
            True if a token was deleted
        """
        deleted = self.backend.delete(self.service, username)
        if self.store.get_user(username) is not None:
            self.store.update_user(username, has_token=False, token_validated=False)
        log.info("token_cleared", username=username, deleted=deleted)
        return deleted

    def touch(self, username: str) -> None:
        """Refresh the record's last-used time."""
        self.store.update_user(username, last_used=datetime.now(UTC))
