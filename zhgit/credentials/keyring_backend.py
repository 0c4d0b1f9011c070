"""OS-level keyring backend using system credential stores.

Platform Support:
- Linux: Secret Service API (GNOME Keyring, KWallet)
- macOS: Keychain
- Windows: Windows Credential Locker
"""

from typing import cast

import keyring
import structlog
from keyring.backends import fail
from keyring.errors import KeyringError, PasswordDeleteError

from zhgit.exceptions import BackendNotAvailableError, CredentialError

log = structlog.get_logger(__name__)


class KeyringBackend:
    """OS-level credential storage using system keyring.

    Example:
        >>> backend = KeyringBackend()
        >>> backend.set('zhgit', 'alice', 'ghp_abc123')
        >>> token = backend.get('zhgit', 'alice')
        >>> backend.delete('zhgit', 'alice')
    """

    @property
    def name(self) -> str:
        return "keyring"

    @property
    def available(self) -> bool:
        """Check if keyring is available.

        Returns False on headless systems where keyring falls back to its
        failing backend, or when the backend fails to initialize.
        """
        try:
            return not isinstance(keyring.get_keyring(), fail.Keyring)
        except KeyringError as e:
            log.debug("keyring_unavailable", error=str(e))
            return False

    def _require_available(self) -> None:
        if not self.available:
            raise BackendNotAvailableError(
                "No system keyring is available to store the GitHub token",
                suggestion="Install and unlock a keyring service (e.g. GNOME Keyring, KWallet or macOS Keychain)",
            )

    def get(self, service: str, account: str) -> str | None:
        """Retrieve credential from OS keyring.

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If keyring operation fails
        """
        self._require_available()

        try:
            credential = cast(str | None, keyring.get_password(service, account))
        except KeyringError as e:
            raise CredentialError(f"Keyring operation failed: {e}", reference=f"{service}/{account}") from e

        if credential is not None:
            log.debug("credential_retrieved", service=service, account=account)
        return credential

    def set(self, service: str, account: str, value: str) -> None:
        """Store credential in OS keyring.

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If keyring operation fails
            ValueError: If the value is empty
        """
        self._require_available()

        if not value:
            raise ValueError("Credential value cannot be empty")

        try:
            keyring.set_password(service, account, value)
        except KeyringError as e:
            raise CredentialError(f"Failed to store credential: {e}", reference=f"{service}/{account}") from e

        log.info("credential_stored", service=service, account=account)

    def delete(self, service: str, account: str) -> bool:
        """Delete credential from OS keyring.

        Returns:
            True if deleted, False if not found

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If keyring operation fails
        """
        self._require_available()

        try:
            keyring.delete_password(service, account)
        except PasswordDeleteError:
            return False
        except KeyringError as e:
            raise CredentialError(f"Failed to delete credential: {e}", reference=f"{service}/{account}") from e

        log.info("credential_deleted", service=service, account=account)
        return True
