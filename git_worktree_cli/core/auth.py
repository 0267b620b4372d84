"""Credential setup, verification and removal for `gwt auth`."""

import os
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from git_worktree_cli.config import Config
from git_worktree_cli.constants import (
    BITBUCKET_CLOUD_TOKEN_ENV_VAR,
    BITBUCKET_DATA_CENTER_TOKEN_ENV_VAR,
    GITHUB_TOKEN_ENV_VAR,
)
from git_worktree_cli.exceptions import AuthError, ConfigError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.credential import AuthIdentity, AuthScheme, Credential
from git_worktree_cli.models.provider import ProviderKind
from git_worktree_cli.services.credential_store import CredentialStore
from git_worktree_cli.services.executor import CommandExecutor
from git_worktree_cli.services.providers import create_client, gh_cli_token, resolve_credential

console = Console()
logger = get_logger(__name__)

ENV_VARS = {
    ProviderKind.GITHUB: GITHUB_TOKEN_ENV_VAR,
    ProviderKind.BITBUCKET_CLOUD: BITBUCKET_CLOUD_TOKEN_ENV_VAR,
    ProviderKind.BITBUCKET_DATA_CENTER: BITBUCKET_DATA_CENTER_TOKEN_ENV_VAR,
}

TOKEN_HELP = {
    ProviderKind.GITHUB: "Create a token at https://github.com/settings/tokens (scope: repo)",
    ProviderKind.BITBUCKET_CLOUD: "Create an API token at https://id.atlassian.com/manage-profile/security/api-tokens",
    ProviderKind.BITBUCKET_DATA_CENTER: "Create an HTTP access token under Manage account > HTTP access tokens",
}

AskFn = Callable[..., str]
ConfirmFn = Callable[[str], bool]


def ask(question: str, password: bool = False, default: Optional[str] = None) -> str:
    return Prompt.ask(question, password=password, default=default)


def ask_confirmation(question: str) -> bool:
    return Confirm.ask(question, default=True)


class AuthManager:
    """Runs `gwt auth <provider> setup|test|logout`."""

    def __init__(
        self,
        store: Optional[CredentialStore] = None,
        executor: Optional[CommandExecutor] = None,
        config: Optional[Config] = None,
        output: Optional[Console] = None,
        client_factory=create_client,
        prompt: AskFn = ask,
        confirm: ConfirmFn = ask_confirmation,
    ):
        self._store = store
        self.executor = executor or CommandExecutor()
        self.config = config
        self.console = output or console
        self.client_factory = client_factory
        self.prompt = prompt
        self.confirm = confirm

    @property
    def store(self) -> CredentialStore:
        if self._store is None:
            self._store = CredentialStore()
        return self._store

    def _verify(self, credential: Credential) -> AuthIdentity:
        client = self.client_factory(credential.provider, self.config)
        try:
            return client.test_auth(credential)
        finally:
            client.close()

    def setup(self, kind: ProviderKind) -> AuthIdentity:
        """Prompt for a credential, verify it and store it.

        The credential is stored only after the provider accepted it.

        Raises:
            AuthError: The provider rejected the credential (nothing is stored)
        """
        self.console.print(f"[bold cyan]{kind.label} authentication setup[/bold cyan]")
        credential = self._prompt_credential(kind)

        self.console.print("[cyan]Verifying credentials...[/cyan]")
        identity = self._verify(credential)

        self.store.set(credential)
        self.console.print(f"[green]✓ Authenticated as {escape(str(identity))}[/green]")
        self.console.print("[green]✓ Credentials saved to the system keyring[/green]")
        return identity

    def _prompt_credential(self, kind: ProviderKind) -> Credential:
        if kind == ProviderKind.GITHUB:
            token = gh_cli_token(self.executor)
            if token and self.confirm("Use the token from the GitHub CLI (gh)?"):
                return Credential(kind, token)
            self.console.print(f"[dim]{TOKEN_HELP[kind]}[/dim]")
            return Credential(kind, self._required("Personal access token", password=True))

        if kind == ProviderKind.BITBUCKET_CLOUD:
            method = self.prompt("Authentication method (api-token/oauth)", default="api-token").strip().lower()
            if method == "oauth":
                key = self._required("OAuth consumer key")
                secret = self._required("OAuth consumer secret", password=True)
                return Credential(kind, secret, scheme=AuthScheme.OAUTH, username=key)
            default_email = self.config.bitbucket_email if self.config else None
            email = self._required("Atlassian account email", default=default_email)
            self.console.print(f"[dim]{TOKEN_HELP[kind]}[/dim]")
            token = self._required("API token", password=True)
            return Credential(kind, token, scheme=AuthScheme.BASIC, username=email)

        default_url = self.config.bitbucket_data_center_url if self.config else None
        base_url = self._required("Bitbucket server URL (e.g. https://git.example.com)", default=default_url)
        if not base_url.startswith(("http://", "https://")):
            raise ConfigError(f"Server URL must start with http:// or https://, got '{base_url}'")
        self.console.print(f"[dim]{TOKEN_HELP[kind]}[/dim]")
        token = self._required("HTTP access token", password=True)
        return Credential(kind, token, identifier=base_url.rstrip("/"))

    def _required(self, question: str, password: bool = False, default: Optional[str] = None) -> str:
        value = (self.prompt(question, password=password, default=default) or "").strip()
        if not value:
            raise ConfigError(f"{question} is required")
        return value

    def test(self, kind: ProviderKind) -> AuthIdentity:
        """Verify the credential that `gwt list` would use.

        Raises:
            AuthError: No credential configured, or the provider rejected it
        """
        credential = resolve_credential(kind, self.store, self.executor, self.config)
        if credential is None:
            raise AuthError(kind.value, "no credentials configured")

        identity = self._verify(credential)
        self.console.print(f"[green]✓ {kind.label} connection successful, authenticated as {escape(str(identity))}[/green]")
        return identity

    def logout(self, kind: ProviderKind) -> None:
        """Delete the stored credential."""
        self.store.delete(kind)
        self.console.print(f"[green]✓ Removed stored {kind.label} credentials[/green]")

        env_var = ENV_VARS[kind]
        if os.environ.get(env_var):
            self.console.print(f"[yellow]{env_var} is still set and will be used.[/yellow]")
