"""Worktree operations service for git-worktree-cli."""

import re
from typing import Dict, List, Optional

from git_worktree_cli.constants import GIT_REFS_HEADS_PREFIX
from git_worktree_cli.exceptions import (
    CommandNotFoundError,
    ExecError,
    NonZeroExitError,
    ParseError,
    VcsUnavailable,
)
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.worktree import WorktreeEntry
from git_worktree_cli.services.executor import CommandExecutor

logger = get_logger(__name__)

# stderr of a listing that failed only because there is nothing to list
NO_WORKTREES_PATTERN = re.compile(r"\bno (?:worktrees?|working trees?)\b", re.IGNORECASE)

# Attribute lines that carry a value and lines that are bare labels
_VALUE_KEYS = {"HEAD", "branch"}
_LABEL_KEYS = {"bare", "detached"}
_OPTIONAL_REASON_KEYS = {"locked", "prunable"}


def _split_blocks(output: str) -> List[List[str]]:
    """Split porcelain output into blocks of non-blank lines."""
    blocks: List[List[str]] = []
    current: List[str] = []
    for line in output.splitlines():
        if not line.strip():
            if current:
                blocks.append(current)
                current = []
            continue
        current.append(line)
    if current:
        blocks.append(current)
    return blocks


def _parse_block(lines: List[str]) -> WorktreeEntry:
    """Parse one porcelain block into a WorktreeEntry.

    Format:
        worktree /path/to/worktree
        HEAD <sha>
        branch refs/heads/<name>   | detached
        [bare] [locked [reason]] [prunable [reason]]
    """
    raw = "\n".join(lines)

    first = lines[0]
    if not first.startswith("worktree "):
        raise ParseError("entry does not start with a 'worktree' line", raw)
    path = first[len("worktree "):]
    if not path.strip():
        raise ParseError("entry has an empty worktree path", raw)

    fields: Dict[str, Optional[str]] = {}
    for line in lines[1:]:
        key, _, value = line.partition(" ")
        if key == "worktree":
            raise ParseError("two 'worktree' lines without a blank line between them", raw)
        if key in fields:
            raise ParseError(f"repeated '{key}' line", raw)

        if key in _VALUE_KEYS:
            if not value.strip():
                raise ParseError(f"'{key}' line has no value", raw)
            fields[key] = value.strip()
        elif key in _LABEL_KEYS:
            if value:
                raise ParseError(f"'{key}' line carries unexpected text", raw)
            fields[key] = None
        elif key in _OPTIONAL_REASON_KEYS:
            fields[key] = value or None
        else:
            logger.debug(f"Ignoring unknown worktree attribute line: {line!r}")

    is_bare = "bare" in fields
    if "branch" in fields and "detached" in fields:
        raise ParseError("entry is both on a branch and detached", raw)
    if not is_bare and "HEAD" not in fields:
        raise ParseError("entry has no HEAD line", raw)

    branch = fields.get("branch")
    if branch is not None and branch.startswith(GIT_REFS_HEADS_PREFIX):
        branch = branch[len(GIT_REFS_HEADS_PREFIX):]

    return WorktreeEntry(
        path=path,
        branch=branch,
        head_commit=fields.get("HEAD"),
        is_bare=is_bare,
        is_detached=branch is None,
        is_locked="locked" in fields,
        is_prunable="prunable" in fields,
        lock_reason=fields.get("locked"),
        prune_reason=fields.get("prunable"),
    )


def parse_worktree_list(output: str) -> List[WorktreeEntry]:
    """Parse `git worktree list --porcelain` output.

    Args:
        output: Raw command output

    Returns:
        One WorktreeEntry per block, in input order

    Raises:
        ParseError: A block is malformed or a path is listed twice
    """
    worktrees: List[WorktreeEntry] = []
    seen_paths = set()

    for block in _split_blocks(output):
        entry = _parse_block(block)
        if entry.path in seen_paths:
            raise ParseError(f"worktree path '{entry.path}' listed twice", "\n".join(block))
        seen_paths.add(entry.path)
        worktrees.append(entry)

    return worktrees


class WorktreeService:
    """Service for reading and changing git worktrees."""

    def __init__(self, repo_path: str, executor: Optional[CommandExecutor] = None):
        """Initialize the worktree service.

        Args:
            repo_path: Path to the git repository (any of its worktrees works)
            executor: Command executor used to run git
        """
        self.repo_path = str(repo_path)
        self.executor = executor or CommandExecutor()

    def list_worktrees(self) -> List[WorktreeEntry]:
        """Get a fresh snapshot of all worktrees.

        Returns:
            List of WorktreeEntry objects; empty when git reports none

        Raises:
            VcsUnavailable: git is missing or the listing failed
            ParseError: The listing format is not understood
        """
        try:
            result = self.executor.run(
                "git", ["worktree", "list", "--porcelain"],
                cwd=self.repo_path, stream_output=False,
            )
        except CommandNotFoundError as e:
            raise VcsUnavailable(
                "git executable not found",
                hint="Install git and make sure it is on your PATH.",
            ) from e
        except NonZeroExitError as e:
            if NO_WORKTREES_PATTERN.search(e.stderr):
                logger.debug(f"git reports no worktrees: {e.stderr}")
                return []
            raise VcsUnavailable(f"git worktree list failed (exit {e.code}): {e.stderr}") from e
        except ExecError as e:
            raise VcsUnavailable(str(e)) from e

        worktrees = parse_worktree_list(result.stdout)

        logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            logger.debug(f"  {wt}")
        return worktrees

    def add_worktree(self, path: str, branch: str, start_point: Optional[str] = None,
                     no_track: bool = False) -> None:
        """Create a worktree at `path`.

        Args:
            path: Directory for the new worktree
            branch: Branch to check out (created when start_point is given)
            start_point: Create `branch` from this ref instead of checking out an existing one
            no_track: Do not set up upstream tracking for the new branch
        """
        args = ["worktree", "add"]
        if no_track:
            args.append("--no-track")
        if start_point:
            args.extend(["-b", branch, path, start_point])
        else:
            args.extend([path, branch])

        self.executor.run("git", args, cwd=self.repo_path, stream_output=True)
        logger.info(f"Created worktree at {path} for branch {branch}")

    def remove_worktree(self, path: str, force: bool = False, cwd: Optional[str] = None) -> None:
        """Remove the worktree at `path`.

        Args:
            path: Path to the worktree directory
            force: Remove even if the working tree is dirty or locked
            cwd: Worktree to run git from (must not be the one being removed)
        """
        args = ["worktree", "remove", path]
        if force:
            args.append("--force")

        self.executor.run("git", args, cwd=cwd or self.repo_path, stream_output=True)
        logger.info(f"Removed worktree at {path}")

    def prune_worktrees(self) -> None:
        """Prune administrative files of worktrees whose directory is gone."""
        self.executor.run("git", ["worktree", "prune"], cwd=self.repo_path, stream_output=True)
        logger.info("Pruned orphaned worktree metadata")

    def delete_branch(self, branch: str, force: bool = False, cwd: Optional[str] = None) -> None:
        """Delete a local branch.

        Output is captured so callers can inspect NonZeroExitError.stderr
        (e.g. for "not fully merged").
        """
        flag = "-D" if force else "-d"
        self.executor.run("git", ["branch", flag, branch], cwd=cwd or self.repo_path)
        logger.info(f"Deleted branch {branch}")

    def fetch(self, remote: str = "origin") -> None:
        """Fetch from a remote, streaming progress to the user."""
        self.executor.run("git", ["fetch", remote], cwd=self.repo_path, stream_output=True)
