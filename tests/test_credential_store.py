"""Tests for CredentialStore"""
import json

import pytest

from git_worktree_cli.exceptions import StoreError
from git_worktree_cli.models import AuthScheme, Credential, ProviderKind
from git_worktree_cli.services.credential_store import CredentialStore


class TestCredentialStore:
    """Test credential storage against an in-memory keyring."""

    def test_get_missing_returns_none(self, memory_keyring):
        """Test that an empty store returns None."""
        store = CredentialStore(memory_keyring)
        assert store.get(ProviderKind.GITHUB) is None

    def test_set_then_get(self, memory_keyring):
        """Test that a stored credential reads back with every field."""
        store = CredentialStore(memory_keyring)
        credential = Credential(
            ProviderKind.BITBUCKET_CLOUD, "api-token", scheme=AuthScheme.BASIC, username="me@example.com"
        )
        store.set(credential)

        assert store.get(ProviderKind.BITBUCKET_CLOUD) == credential
        assert store.get(ProviderKind.GITHUB) is None

    def test_set_is_single_write(self, memory_keyring):
        """Test that all fields are written in one keyring entry."""
        store = CredentialStore(memory_keyring)
        store.set(Credential(ProviderKind.BITBUCKET_DATA_CENTER, "t", identifier="https://git.example.com"))

        assert memory_keyring.set_calls == 1
        payload = json.loads(memory_keyring.entries[("git-worktree-cli", "bitbucket-data-center")])
        assert payload["identifier"] == "https://git.example.com"

    def test_set_replaces_previous(self, memory_keyring):
        """Test that a second set overwrites the first."""
        store = CredentialStore(memory_keyring)
        store.set(Credential(ProviderKind.GITHUB, "old"))
        store.set(Credential(ProviderKind.GITHUB, "new"))
        assert store.get(ProviderKind.GITHUB).secret == "new"

    def test_delete(self, memory_keyring):
        """Test that delete removes the entry."""
        store = CredentialStore(memory_keyring)
        store.set(Credential(ProviderKind.GITHUB, "t"))
        store.delete(ProviderKind.GITHUB)
        assert store.get(ProviderKind.GITHUB) is None

    def test_delete_missing_is_noop(self, memory_keyring):
        """Test that deleting a missing credential does not raise."""
        CredentialStore(memory_keyring).delete(ProviderKind.GITHUB)

    def test_corrupt_entry_raises(self, memory_keyring):
        """Test that an unreadable entry is a store error, not a crash."""
        memory_keyring.entries[("git-worktree-cli", "github")] = "not json"
        with pytest.raises(StoreError):
            CredentialStore(memory_keyring).get(ProviderKind.GITHUB)

    def test_entry_for_other_provider_raises(self, memory_keyring):
        """Test that a credential stored under the wrong tag is rejected."""
        memory_keyring.entries[("git-worktree-cli", "github")] = Credential(
            ProviderKind.BITBUCKET_CLOUD, "t"
        ).to_json()
        with pytest.raises(StoreError):
            CredentialStore(memory_keyring).get(ProviderKind.GITHUB)

    def test_repr_hides_secret(self):
        """Test that the secret never appears in the repr."""
        assert "hunter2" not in repr(Credential(ProviderKind.GITHUB, "hunter2"))


class TestCredentialStoreErrors:
    """Test an unreachable secret store."""

    @pytest.mark.parametrize("operation", ["get", "delete"])
    def test_locked_keyring_read_operations(self, locked_keyring, operation):
        """Test that keyring failures surface as StoreError."""
        store = CredentialStore(locked_keyring)
        with pytest.raises(StoreError) as exc_info:
            getattr(store, operation)(ProviderKind.GITHUB)
        assert exc_info.value.operation == operation

    def test_locked_keyring_set(self, locked_keyring):
        """Test that a refused write surfaces as StoreError."""
        with pytest.raises(StoreError) as exc_info:
            CredentialStore(locked_keyring).set(Credential(ProviderKind.GITHUB, "t"))
        assert exc_info.value.operation == "set"
