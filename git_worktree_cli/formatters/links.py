"""Pull request link formatting utilities."""

from rich.markup import escape

from git_worktree_cli.models.pull_request import PullRequest


def format_pr_link(pr: PullRequest) -> str:
    """
    Format a pull request number as a terminal hyperlink.

    Args:
        pr: Pull request

    Returns:
        "#<id>" with Rich link markup when the PR has a URL
    """
    label = f"#{pr.id}"
    if not pr.url:
        return label
    return f"[link={pr.url}]{label}[/link]"


def format_pr_title(pr: PullRequest, max_length: int = 60) -> str:
    """PR title, shortened with an ellipsis and escaped for Rich markup."""
    title = pr.title
    if len(title) > max_length:
        title = title[: max_length - 1] + "…"
    return escape(title)
