"""Command orchestration for git-worktree-cli."""

from .auth import AuthManager
from .project import Project, init_project, load_project
from .worktree_manager import WorktreeManager

__all__ = ["AuthManager", "Project", "WorktreeManager", "init_project", "load_project"]
