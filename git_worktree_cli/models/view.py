"""Correlated worktree / pull request view."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from git_worktree_cli.models.pull_request import PullRequest
from git_worktree_cli.models.worktree import WorktreeEntry


class PrDataStatus(Enum):
    """Whether pull request data made it into the view."""
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"  # Provider call failed; listing is degraded
    SKIPPED = "skipped"  # Local-only listing
    NOT_CONFIGURED = "not-configured"  # No provider or no credential


@dataclass(frozen=True)
class CorrelatedEntry:
    """A worktree with the pull requests whose source branch it has checked out."""
    worktree: Optional[WorktreeEntry]
    pull_requests: Tuple[PullRequest, ...] = ()


@dataclass(frozen=True)
class CorrelatedView:
    """Result of correlating one worktree snapshot with one pull request fetch."""
    entries: Tuple[CorrelatedEntry, ...] = ()
    unmatched: Tuple[PullRequest, ...] = ()
    pr_status: PrDataStatus = PrDataStatus.AVAILABLE
    pr_error: Optional[str] = field(default=None, compare=False)

    @property
    def has_pr_data(self) -> bool:
        return self.pr_status == PrDataStatus.AVAILABLE
