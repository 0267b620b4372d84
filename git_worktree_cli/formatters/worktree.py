"""Worktree name, path and flag formatting utilities."""

import os
from typing import Optional

from rich.markup import escape

from git_worktree_cli.constants import (
    SYMBOL_BARE,
    SYMBOL_CURRENT_WORKTREE,
    SYMBOL_DETACHED,
    SYMBOL_LOCKED,
    SYMBOL_PRUNABLE,
)
from git_worktree_cli.models.worktree import WorktreeEntry


def format_worktree_name(worktree: WorktreeEntry, is_current: bool = False) -> str:
    """
    Format the branch column for a worktree.

    Args:
        worktree: Worktree entry
        is_current: Whether the shell is inside this worktree

    Returns:
        Branch name (bold if current), or a dimmed placeholder when detached or bare
    """
    name = escape(worktree.display_name)
    if worktree.branch is None:
        name = f"[dim]{name}[/dim]"
    if is_current:
        return f"[bold]{name}[/bold]"
    return name


def format_worktree_path(path: str, base: Optional[str] = None) -> str:
    """Path relative to `base` when it lies below it, otherwise unchanged."""
    if base:
        try:
            relative = os.path.relpath(path, base)
        except ValueError:
            return path
        if not relative.startswith(".."):
            return relative
    return path


def format_worktree_flags(worktree: WorktreeEntry, is_current: bool = False) -> str:
    """
    Format the flags column.

    Returns:
        Flag symbols (see LEGEND_TEXT), e.g. "@L"
    """
    flags = ""
    if is_current:
        flags += SYMBOL_CURRENT_WORKTREE
    if worktree.is_bare:
        flags += SYMBOL_BARE
    if worktree.is_detached and not worktree.is_bare:
        flags += SYMBOL_DETACHED
    if worktree.is_locked:
        flags += SYMBOL_LOCKED
    if worktree.is_prunable:
        flags += SYMBOL_PRUNABLE
    return flags
