"""Pull request state formatting utilities."""

from typing import Sequence

from git_worktree_cli.constants import PR_STATE_COLORS, PR_UNAVAILABLE_TEXT
from git_worktree_cli.formatters.links import format_pr_link
from git_worktree_cli.models.pull_request import PullRequest


def format_pr_state(pr: PullRequest) -> str:
    """
    Format a PR state with its color.

    Args:
        pr: Pull request

    Returns:
        State text with Rich color markup (drafts show as "draft")
    """
    state = pr.display_state
    color = PR_STATE_COLORS.get(state)
    if not color:
        return state
    return f"[{color}]{state}[/{color}]"


def format_pr_summary(pull_requests: Sequence[PullRequest]) -> str:
    """One line per PR: linked number and colored state."""
    return "\n".join(f"{format_pr_link(pr)} {format_pr_state(pr)}" for pr in pull_requests)


def format_unavailable() -> str:
    return f"[dim]{PR_UNAVAILABLE_TEXT}[/dim]"
