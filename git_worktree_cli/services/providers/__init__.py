"""Pull request providers: registry, detection and credential resolution."""

import os
from dataclasses import replace
from typing import TYPE_CHECKING, Dict, Optional, Type

from git_worktree_cli.constants import (
    BITBUCKET_CLOUD_EMAIL_ENV_VAR,
    BITBUCKET_CLOUD_TOKEN_ENV_VAR,
    BITBUCKET_DATA_CENTER_TOKEN_ENV_VAR,
    GITHUB_TOKEN_ENV_VAR,
)
from git_worktree_cli.exceptions import ExecError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.credential import AuthScheme, Credential
from git_worktree_cli.models.provider import ProviderKind, RepoIdentity
from git_worktree_cli.services.credential_store import CredentialStore
from git_worktree_cli.services.executor import CommandExecutor

from .base import ProviderClient
from .bitbucket_cloud import BitbucketCloudClient
from .bitbucket_data_center import BitbucketDataCenterClient
from .github import GitHubClient

if TYPE_CHECKING:
    from git_worktree_cli.config import Config

logger = get_logger(__name__)

PROVIDER_CLIENTS: Dict[ProviderKind, Type[ProviderClient]] = {
    ProviderKind.GITHUB: GitHubClient,
    ProviderKind.BITBUCKET_CLOUD: BitbucketCloudClient,
    ProviderKind.BITBUCKET_DATA_CENTER: BitbucketDataCenterClient,
}


def create_client(kind: ProviderKind, config: Optional["Config"] = None) -> ProviderClient:
    """Instantiate the client registered for a provider."""
    client_class = PROVIDER_CLIENTS[kind]
    if config is None:
        return client_class()
    return client_class(timeout=config.request_timeout, per_page=config.per_page)


def detect_provider(remote_url: str) -> Optional[ProviderKind]:
    """Guess the provider from a remote URL.

    GitHub and Bitbucket Cloud are recognised by host. Self-hosted Data Center
    is only recognised from its /scm/ or /projects/.../repos/ HTTP paths; SSH
    remotes to a Data Center server need an explicit --provider.
    """
    if GitHubClient.parse_remote_url(remote_url):
        return ProviderKind.GITHUB
    if BitbucketCloudClient.parse_remote_url(remote_url):
        return ProviderKind.BITBUCKET_CLOUD
    if "/scm/" in remote_url or ("/projects/" in remote_url and "/repos/" in remote_url):
        return ProviderKind.BITBUCKET_DATA_CENTER
    return None


def identity_from_config(config: "Config", remote_url: Optional[str] = None) -> Optional[RepoIdentity]:
    """Repository identity for the configured provider.

    Args:
        config: Project configuration
        remote_url: Current origin URL (falls back to the configured repository URL)
    """
    url = remote_url or config.repository_url
    if not url:
        return None

    identity = PROVIDER_CLIENTS[config.provider].parse_remote_url(url)
    if identity is None:
        logger.debug(f"Remote URL {url} does not look like a {config.provider.label} repository")
        return None

    if config.provider == ProviderKind.BITBUCKET_DATA_CENTER and config.bitbucket_data_center_url:
        identity = replace(identity, base_url=config.bitbucket_data_center_url)
    return identity


def credential_from_env(kind: ProviderKind, config: Optional["Config"] = None) -> Optional[Credential]:
    """Credential supplied through environment variables, if any."""
    if kind == ProviderKind.GITHUB:
        token = os.environ.get(GITHUB_TOKEN_ENV_VAR)
        if token:
            return Credential(kind, token)

    elif kind == ProviderKind.BITBUCKET_CLOUD:
        token = os.environ.get(BITBUCKET_CLOUD_TOKEN_ENV_VAR)
        email = os.environ.get(BITBUCKET_CLOUD_EMAIL_ENV_VAR) or (config.bitbucket_email if config else None)
        if token and email:
            return Credential(kind, token, scheme=AuthScheme.BASIC, username=email)
        if token:
            logger.debug(f"{BITBUCKET_CLOUD_TOKEN_ENV_VAR} set without an email, ignoring it")

    elif kind == ProviderKind.BITBUCKET_DATA_CENTER:
        token = os.environ.get(BITBUCKET_DATA_CENTER_TOKEN_ENV_VAR)
        if token:
            base_url = config.bitbucket_data_center_url if config else None
            return Credential(kind, token, identifier=base_url)

    return None


def gh_cli_token(executor: CommandExecutor) -> Optional[str]:
    """Token of the GitHub CLI's logged-in account, if `gh` is installed and logged in."""
    try:
        result = executor.run("gh", ["auth", "token"])
    except ExecError as e:
        logger.debug(f"[GitHub] No token from gh CLI: {e}")
        return None
    token = result.stdout.strip()
    return token or None


def resolve_credential(kind: ProviderKind, store: CredentialStore,
                       executor: Optional[CommandExecutor] = None,
                       config: Optional["Config"] = None) -> Optional[Credential]:
    """Find a credential: environment, then the credential store, then (GitHub) the gh CLI.

    Returns:
        The credential, or None when nothing is configured

    Raises:
        StoreError: If the credential store cannot be read
    """
    credential = credential_from_env(kind, config)
    if credential:
        logger.debug(f"Using {kind.label} credential from environment")
        return credential

    credential = store.get(kind)
    if credential:
        logger.debug(f"Using {kind.label} credential from credential store")
        return credential

    if kind == ProviderKind.GITHUB and executor is not None:
        token = gh_cli_token(executor)
        if token:
            logger.debug("Using GitHub token from gh CLI")
            return Credential(kind, token)

    return None


__all__ = [
    "PROVIDER_CLIENTS",
    "ProviderClient",
    "GitHubClient",
    "BitbucketCloudClient",
    "BitbucketDataCenterClient",
    "create_client",
    "detect_provider",
    "identity_from_config",
    "credential_from_env",
    "gh_cli_token",
    "resolve_credential",
]
