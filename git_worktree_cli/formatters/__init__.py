"""Formatting utilities for git-worktree-cli.

This package provides the formatting functions used by the listing output,
organized into logical modules:
- worktree: Worktree name, path and flag formatting
- status: Pull request state formatting
- links: Pull request link formatting
"""

# Worktree formatters
from .worktree import format_worktree_flags, format_worktree_name, format_worktree_path

# Status formatters
from .status import format_pr_state, format_pr_summary, format_unavailable

# Link formatters
from .links import format_pr_link, format_pr_title

__all__ = [
    # Worktree
    "format_worktree_flags",
    "format_worktree_name",
    "format_worktree_path",
    # Status
    "format_pr_state",
    "format_pr_summary",
    "format_unavailable",
    # Links
    "format_pr_link",
    "format_pr_title",
]
