"""Worktree data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class WorktreeEntry:
    """One checked-out worktree as reported by `git worktree list --porcelain`."""

    path: str
    branch: Optional[str]  # None when HEAD is detached (or the entry is bare)
    head_commit: Optional[str]  # Bare entries carry no HEAD line
    is_bare: bool = False
    is_detached: bool = False
    is_locked: bool = False
    is_prunable: bool = False
    lock_reason: Optional[str] = None
    prune_reason: Optional[str] = None

    @property
    def short_head(self) -> str:
        """First eight characters of the HEAD commit."""
        return (self.head_commit or "")[:8]

    @property
    def display_name(self) -> str:
        """Branch name, or a placeholder for bare and detached worktrees."""
        if self.branch:
            return self.branch
        if self.is_bare:
            return "(bare)"
        return self.short_head

    def __str__(self) -> str:
        """String representation of worktree."""
        flags = []
        if self.is_bare:
            flags.append("bare")
        if self.is_detached:
            flags.append("detached")
        if self.is_locked:
            flags.append("locked")
        if self.is_prunable:
            flags.append("prunable")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        return f"{self.display_name} @ {self.path}{suffix}"
