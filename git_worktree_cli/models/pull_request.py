"""Pull request model and related enums"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from git_worktree_cli.models.provider import ProviderKind


class PullRequestState(Enum):
    """Normalized state of a pull request across providers."""
    OPEN = "open"
    MERGED = "merged"
    CLOSED = "closed"
    DECLINED = "declined"  # Only emitted by Bitbucket Data Center


@dataclass(frozen=True)
class PullRequest:
    """A pull request normalized from any provider."""
    id: Union[int, str]  # Unique only within one provider
    source_branch: str  # Correlation key against WorktreeEntry.branch
    target_branch: str
    title: str
    state: PullRequestState
    url: str
    provider: ProviderKind
    is_draft: bool = False
    author: Optional[str] = None

    @property
    def display_state(self) -> str:
        """State text for output; open drafts show as 'draft'."""
        if self.state == PullRequestState.OPEN and self.is_draft:
            return "draft"
        return self.state.value
