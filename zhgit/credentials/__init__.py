"""Credential storage for GitHub tokens.

Key Components:
    - TokenVault: Protocol for get/set/delete(service, account) secret stores
    - KeyringBackend: System keyring implementation
    - TokenManager: Vault plus per-user record bookkeeping
"""

from zhgit.credentials.keyring_backend import KeyringBackend
from zhgit.credentials.manager import TokenManager, TokenVault

__all__ = [
    "KeyringBackend",
    "TokenManager",
    "TokenVault",
]
