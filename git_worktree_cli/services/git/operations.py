"""Git repository queries"""

import os
from pathlib import Path
from typing import List, Optional

import git

from git_worktree_cli.constants import DEFAULT_MAIN_BRANCHES, GIT_EXTENSION
from git_worktree_cli.exceptions import VcsUnavailable
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)


def find_repo_root(path: Optional[str] = None) -> Optional[str]:
    """Find the main worktree of the repository containing `path`.

    From inside a linked worktree this returns the main checkout, not the
    linked worktree itself.

    Returns:
        Absolute path, or None when `path` is not inside a git repository
    """
    path = path or os.getcwd()
    try:
        repo = git.Repo(path, search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        logger.debug(f"No git repository found at {path}")
        return None

    common_dir = Path(repo.common_dir).resolve()
    if common_dir.name == GIT_EXTENSION:
        return str(common_dir.parent)
    # Bare repository: no main checkout, use the repository directory itself
    return str(repo.working_tree_dir or common_dir)


class GitOperations:
    """Service for read-only queries against a repository."""

    def __init__(self, repo_path: str, remote_name: str = "origin"):
        """Initialize the service.

        Args:
            repo_path: Path to the git repository
            remote_name: Remote whose URL and branches are consulted
        """
        self.repo_path = str(repo_path)
        self.remote_name = remote_name

    def _get_repo(self) -> git.Repo:
        """Open the repository.

        GitPython repos are lightweight, so a fresh instance is opened per call.

        Raises:
            VcsUnavailable: If repo_path is not a git repository
        """
        try:
            return git.Repo(self.repo_path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise VcsUnavailable(f"'{self.repo_path}' is not a git repository") from e

    def get_remote_url(self) -> Optional[str]:
        """URL of the configured remote, or None if the remote does not exist."""
        repo = self._get_repo()
        try:
            return repo.remote(self.remote_name).url
        except ValueError:
            logger.debug(f"Remote '{self.remote_name}' not configured")
            return None

    def get_remote_branches(self) -> List[str]:
        """Short names of branches on the remote, as of the last fetch."""
        repo = self._get_repo()
        try:
            remote = repo.remote(self.remote_name)
        except ValueError:
            return []
        prefix = f"{self.remote_name}/"
        return [
            ref.name[len(prefix):] for ref in remote.refs
            if ref.name.startswith(prefix) and ref.name != f"{prefix}HEAD"
        ]

    def get_local_branches(self) -> List[str]:
        return [head.name for head in self._get_repo().heads]

    def has_local_branch(self, branch_name: str) -> bool:
        return branch_name in self.get_local_branches()

    def has_remote_branch(self, branch_name: str) -> bool:
        """Check if the branch exists on the remote."""
        return branch_name in self.get_remote_branches()

    def get_current_branch(self) -> Optional[str]:
        """Branch checked out in repo_path, or None when HEAD is detached."""
        try:
            return self._get_repo().active_branch.name
        except TypeError:
            return None

    def get_default_branch(self) -> str:
        """Work out the main branch.

        Order: the remote's HEAD, then the first of main/master present on
        the remote or locally, then the current branch, then "main".
        """
        repo = self._get_repo()
        try:
            ref = repo.git.symbolic_ref(f"refs/remotes/{self.remote_name}/HEAD")
            prefix = f"refs/remotes/{self.remote_name}/"
            if ref.startswith(prefix):
                logger.debug(f"Default branch from remote HEAD: {ref}")
                return ref[len(prefix):]
        except git.exc.GitCommandError:
            logger.debug("Remote HEAD not set, falling back to well-known names")

        remote_branches = self.get_remote_branches()
        local_branches = self.get_local_branches()
        for candidate in DEFAULT_MAIN_BRANCHES:
            if candidate in remote_branches or candidate in local_branches:
                return candidate

        return self.get_current_branch() or DEFAULT_MAIN_BRANCHES[0]
