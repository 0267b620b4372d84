"""Display service for worktree listings"""
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from git_worktree_cli.constants import LEGEND_TEXT, REMOTE_PR_COLUMNS, WORKTREE_COLUMNS
from git_worktree_cli.formatters import (
    format_pr_link,
    format_pr_state,
    format_pr_summary,
    format_pr_title,
    format_unavailable,
    format_worktree_flags,
    format_worktree_name,
    format_worktree_path,
)
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.view import CorrelatedEntry, CorrelatedView, PrDataStatus
from git_worktree_cli.models.worktree import WorktreeEntry

console = Console()
logger = get_logger(__name__)


class DisplayService:
    def __init__(self, output: Optional[Console] = None, verbose: bool = False):
        self.console = output or console
        self.verbose = verbose

    def display_view(
            self,
            view: CorrelatedView,
            current_path: Optional[str] = None,
            base_path: Optional[str] = None,
            provider_label: Optional[str] = None,
            hint: Optional[str] = None,
            show_legend: bool = False
        ) -> None:
        """Print the worktree table, remote-only pull requests and any notes.

        Args:
            view: Correlated worktrees and pull requests
            current_path: Worktree the shell is in (marked with @)
            base_path: Paths under this directory are shown relative to it
            provider_label: Provider name used in notes
            hint: Extra remediation text for a degraded listing
            show_legend: Print the flag legend after the table
        """
        self.console.print(self._worktree_table(view, current_path, base_path))

        if view.has_pr_data and view.unmatched:
            self.console.print()
            self.console.print(self._unmatched_table(view))

        self._print_notes(view, provider_label, hint)

        if show_legend:
            self.console.print(LEGEND_TEXT)

    def _worktree_table(self, view: CorrelatedView, current_path: Optional[str],
                        base_path: Optional[str]) -> Table:
        table = Table(title="Local Worktrees", title_justify="left")
        for col in WORKTREE_COLUMNS:
            if col.width:
                table.add_column(col.label, max_width=col.width, overflow="fold")
            else:
                table.add_column(col.label)

        if not view.entries:
            logger.debug("No worktrees to display")

        for entry in view.entries:
            wt = entry.worktree
            if wt is None:
                continue
            is_current = current_path is not None and wt.path == current_path
            # Match WORKTREE_COLUMNS order: Branch, Path, HEAD, Flags, Pull Requests
            table.add_row(
                format_worktree_name(wt, is_current),
                escape(format_worktree_path(wt.path, base_path)),
                wt.short_head,
                format_worktree_flags(wt, is_current),
                self._pr_cell(view, entry),
            )
        return table

    @staticmethod
    def _pr_cell(view: CorrelatedView, entry: CorrelatedEntry) -> str:
        if view.pr_status == PrDataStatus.UNAVAILABLE:
            return format_unavailable()
        if not view.has_pr_data:
            return ""
        if entry.worktree is not None and entry.worktree.branch is None:
            return "[dim]-[/dim]"
        return format_pr_summary(entry.pull_requests)

    @staticmethod
    def _unmatched_table(view: CorrelatedView) -> Table:
        table = Table(title="Pull requests without a local worktree", title_justify="left")
        for col in REMOTE_PR_COLUMNS:
            if col.width:
                table.add_column(col.label, max_width=col.width, overflow="fold")
            else:
                table.add_column(col.label)

        # Match REMOTE_PR_COLUMNS order: Branch, Pull Request, State, Title
        for pr in view.unmatched:
            table.add_row(
                escape(pr.source_branch),
                format_pr_link(pr),
                format_pr_state(pr),
                format_pr_title(pr),
            )
        return table

    def _print_notes(self, view: CorrelatedView, provider_label: Optional[str],
                     hint: Optional[str]) -> None:
        provider = provider_label or "provider"
        if view.pr_status == PrDataStatus.UNAVAILABLE:
            reason = f": {escape(view.pr_error)}" if view.pr_error else ""
            self.console.print(f"\n[yellow]PR data unavailable ({provider}){reason}[/yellow]")
            if hint:
                self.console.print(f"[yellow]{escape(hint)}[/yellow]")
        elif view.pr_status == PrDataStatus.NOT_CONFIGURED:
            self.console.print(f"\n[dim]Tip: no {provider} credentials configured, pull requests are not shown.[/dim]")
            if hint:
                self.console.print(f"[dim]{escape(hint)}[/dim]")

    def display_worktree_list(self, worktrees: List[WorktreeEntry]) -> None:
        """Plain list of worktrees, one per line, used for prompts and errors."""
        for wt in worktrees:
            self.console.print(f"  {escape(wt.display_name)}  [dim]{escape(wt.path)}[/dim]")
