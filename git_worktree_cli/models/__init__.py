"""Data models for git-worktree-cli."""

from .worktree import WorktreeEntry
from .provider import ProviderKind, RepoIdentity
from .pull_request import PullRequest, PullRequestState
from .credential import AuthIdentity, AuthScheme, Credential
from .view import CorrelatedEntry, CorrelatedView, PrDataStatus

__all__ = [
    "WorktreeEntry",
    "ProviderKind",
    "RepoIdentity",
    "PullRequest",
    "PullRequestState",
    "AuthIdentity",
    "AuthScheme",
    "Credential",
    "CorrelatedEntry",
    "CorrelatedView",
    "PrDataStatus",
]
