"""Git-related services for git-worktree-cli."""

from .operations import GitOperations, find_repo_root
from .worktrees import WorktreeService, parse_worktree_list

__all__ = [
    "GitOperations",
    "WorktreeService",
    "find_repo_root",
    "parse_worktree_list",
]
