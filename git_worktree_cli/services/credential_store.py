"""Credential storage in the OS secret store (Keychain, Secret Service, Credential Locker)."""

from typing import Optional

import keyring
import keyring.errors

from git_worktree_cli.constants import KEYRING_SERVICE
from git_worktree_cli.exceptions import StoreError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.credential import Credential
from git_worktree_cli.models.provider import ProviderKind

logger = get_logger(__name__)


class CredentialStore:
    """Get, set and delete one credential per provider.

    Each credential is stored as a single JSON string under the provider tag,
    so a write either lands completely or not at all.
    """

    def __init__(self, backend=None, service: str = KEYRING_SERVICE):
        """Initialize the store.

        Args:
            backend: keyring backend (defaults to the platform keyring)
            service: Service name entries are stored under
        """
        self.backend = backend if backend is not None else keyring.get_keyring()
        self.service = service

    def get(self, provider: ProviderKind) -> Optional[Credential]:
        """Read the stored credential for a provider.

        Returns:
            The credential, or None if nothing is stored

        Raises:
            StoreError: If the secret store is unreachable or the entry is corrupt
        """
        try:
            payload = self.backend.get_password(self.service, provider.value)
        except keyring.errors.KeyringError as e:
            raise StoreError("get", str(e)) from e

        if payload is None:
            logger.debug(f"No stored credential for {provider.value}")
            return None

        try:
            credential = Credential.from_json(payload)
        except (ValueError, KeyError, TypeError) as e:
            raise StoreError("get", f"stored credential for {provider.value} is unreadable") from e

        if credential.provider != provider:
            raise StoreError("get", f"stored credential for {provider.value} belongs to {credential.provider.value}")
        return credential

    def set(self, credential: Credential) -> None:
        """Store a credential, replacing any previous one for the same provider.

        Raises:
            StoreError: If the secret store refuses the write
        """
        try:
            self.backend.set_password(self.service, credential.provider.value, credential.to_json())
        except keyring.errors.KeyringError as e:
            raise StoreError("set", str(e)) from e
        logger.info(f"Stored credential for {credential.provider.value}")

    def delete(self, provider: ProviderKind) -> None:
        """Remove the stored credential. Deleting a missing entry is not an error.

        Raises:
            StoreError: If the secret store is unreachable
        """
        try:
            if self.backend.get_password(self.service, provider.value) is None:
                logger.debug(f"No stored credential for {provider.value}, nothing to delete")
                return
            self.backend.delete_password(self.service, provider.value)
        except keyring.errors.PasswordDeleteError:
            logger.debug(f"Credential for {provider.value} already removed")
        except keyring.errors.KeyringError as e:
            raise StoreError("delete", str(e)) from e
        logger.info(f"Deleted credential for {provider.value}")
