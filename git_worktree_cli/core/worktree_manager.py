"""Core worktree commands: list, add and remove."""

import os
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from git_worktree_cli.constants import PROTECTED_BRANCHES
from git_worktree_cli.core.project import (
    Project,
    find_current_worktree,
    find_worktree,
    pick_git_working_dir,
)
from git_worktree_cli.exceptions import (
    AuthError,
    GitWorktreeError,
    NonZeroExitError,
    ProviderError,
    StoreError,
    WorktreeNotFoundError,
)
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.view import CorrelatedView, PrDataStatus
from git_worktree_cli.models.worktree import WorktreeEntry
from git_worktree_cli.services.correlation import build_view
from git_worktree_cli.services.credential_store import CredentialStore
from git_worktree_cli.services.display_service import DisplayService
from git_worktree_cli.services.executor import CommandExecutor
from git_worktree_cli.services.git import GitOperations, WorktreeService
from git_worktree_cli.services.hooks import HookRunner
from git_worktree_cli.services.providers import create_client, identity_from_config, resolve_credential

console = Console()
logger = get_logger(__name__)

ConfirmFn = Callable[[str], bool]


def ask_confirmation(question: str) -> bool:
    return Confirm.ask(question, default=False)


class WorktreeManager:
    """Runs the worktree commands for one project."""

    def __init__(
        self,
        project: Project,
        executor: Optional[CommandExecutor] = None,
        store: Optional[CredentialStore] = None,
        output: Optional[Console] = None,
        client_factory=create_client,
        confirm: ConfirmFn = ask_confirmation,
    ):
        """Initialize the manager.

        Args:
            project: Repository and configuration to operate on
            executor: Runs git and hook commands
            store: Credential store (created on first use when omitted)
            output: Console for user-facing messages
            client_factory: Creates provider clients, called as factory(kind, config)
            confirm: Asks the user a yes/no question
        """
        self.project = project
        self.config = project.config
        self.executor = executor or CommandExecutor()
        self._store = store
        self.console = output or console
        self.client_factory = client_factory
        self.confirm = confirm

        self.worktree_service = WorktreeService(project.root, self.executor)
        self.git_operations = GitOperations(project.root)
        self.display_service = DisplayService(output=self.console, verbose=self.config.verbose)
        self.hook_runner = HookRunner(self.config.hooks, self.executor, self.console)

    @property
    def store(self) -> CredentialStore:
        if self._store is None:
            self._store = CredentialStore()
        return self._store

    # ---- list -------------------------------------------------------------

    def build_view(self, local_only: bool = False) -> Tuple[List[WorktreeEntry], CorrelatedView, Optional[str]]:
        """Read worktrees and, unless local-only, correlate them with pull requests.

        Provider failures never abort the listing: they produce a view whose
        pr_status says why pull request data is missing.

        Returns:
            (worktrees, view, hint) where hint is remediation text for the user
        """
        worktrees = self.worktree_service.list_worktrees()

        if local_only:
            return worktrees, build_view(worktrees, status=PrDataStatus.SKIPPED), None

        provider = self.project.provider
        if provider is None:
            hint = "Run 'gwt init --provider <provider>' to choose where pull requests live."
            return worktrees, build_view(worktrees, status=PrDataStatus.NOT_CONFIGURED), hint

        identity = identity_from_config(self.config, self.project.remote_url)
        if identity is None:
            hint = f"The origin remote does not point at a {provider.label} repository."
            return worktrees, build_view(worktrees, status=PrDataStatus.NOT_CONFIGURED), hint

        try:
            credential = resolve_credential(provider, self.store, self.executor, self.config)
        except StoreError as e:
            logger.info(f"Credential store unavailable: {e}")
            return worktrees, build_view(worktrees, status=PrDataStatus.UNAVAILABLE, error=str(e)), None

        if credential is None:
            hint = f"Run 'gwt auth {provider.value} setup' to configure credentials."
            return worktrees, build_view(worktrees, status=PrDataStatus.NOT_CONFIGURED), hint

        client = self.client_factory(provider, self.config)
        try:
            pull_requests = client.fetch_pull_requests(identity, credential)
        except AuthError as e:
            logger.info(f"Pull request fetch failed: {e}")
            view = build_view(worktrees, status=PrDataStatus.UNAVAILABLE, error=e.message)
            return worktrees, view, e.setup_hint
        except ProviderError as e:
            logger.info(f"Pull request fetch failed: {e}")
            return worktrees, build_view(worktrees, status=PrDataStatus.UNAVAILABLE, error=e.message), None
        finally:
            client.close()

        return worktrees, build_view(worktrees, pull_requests), None

    def list_worktrees(self, local_only: bool = False) -> CorrelatedView:
        """Print the worktree listing. Returns the view that was shown."""
        worktrees, view, hint = self.build_view(local_only)

        if not worktrees:
            self.console.print("[yellow]No worktrees found.[/yellow]")
            return view

        current = find_current_worktree(worktrees)
        provider = self.project.provider
        self.display_service.display_view(
            view,
            current_path=current.path if current else None,
            base_path=str(Path(self.project.root).parent),
            provider_label=provider.label if provider else None,
            hint=hint,
            show_legend=self.config.verbose,
        )
        return view

    # ---- add --------------------------------------------------------------

    def add_worktree(self, branch: str) -> str:
        """Create a worktree for a branch under the worktrees directory.

        An existing local branch is checked out; a branch that only exists on
        origin is created tracking it; anything else is created from the
        main branch without tracking.

        Returns:
            Path of the new worktree
        """
        branch = branch.strip()
        if not branch:
            raise GitWorktreeError("Branch name is required\nUsage: gwt add <branch-name>")

        worktrees = self.worktree_service.list_worktrees()
        existing = next((wt for wt in worktrees if wt.branch == branch), None)
        if existing is not None:
            raise GitWorktreeError(f"Branch '{branch}' is already checked out at {existing.path}")

        worktrees_path = self.project.worktrees_path
        target_path = worktrees_path / branch
        if target_path.exists():
            raise GitWorktreeError(f"Target path already exists: {target_path}")
        worktrees_path.mkdir(parents=True, exist_ok=True)

        has_origin = self.git_operations.get_remote_url() is not None
        if has_origin:
            self.console.print("[cyan]Fetching latest changes from origin...[/cyan]")
            self.worktree_service.fetch("origin")
        else:
            logger.info("No origin remote, creating worktree from local branches only")

        main_branch = self.config.main_branch
        if self.git_operations.has_local_branch(branch):
            self.console.print(f"[yellow]Branch '{escape(branch)}' exists locally, checking out existing branch...[/yellow]")
            self.worktree_service.add_worktree(str(target_path), branch)
        elif has_origin and self.git_operations.has_remote_branch(branch):
            self.console.print(f"[yellow]Branch '{escape(branch)}' exists remotely, checking out remote branch...[/yellow]")
            self.worktree_service.add_worktree(str(target_path), branch, start_point=f"origin/{branch}")
        else:
            start_point = f"origin/{main_branch}" if has_origin else main_branch
            self.console.print(f"[cyan]Creating new branch '{escape(branch)}' from '{escape(start_point)}'...[/cyan]")
            self.worktree_service.add_worktree(str(target_path), branch, start_point=start_point, no_track=True)

        self.console.print(f"[green]✓ Worktree created at: {escape(str(target_path))}[/green]")
        self.console.print(f"[green]✓ Branch: {escape(branch)}[/green]")

        self.hook_runner.run("postAdd", str(target_path), {
            "branchName": branch,
            "worktreePath": str(target_path),
        })
        return str(target_path)

    # ---- remove -----------------------------------------------------------

    def _resolve_target(self, worktrees: List[WorktreeEntry], target: Optional[str]) -> WorktreeEntry:
        if target:
            found = find_worktree(worktrees, target)
            if found is None:
                self.console.print("[yellow]Available worktrees:[/yellow]")
                self.display_service.display_worktree_list(worktrees)
                raise WorktreeNotFoundError(target)
            return found

        current = find_current_worktree(worktrees)
        if current is None:
            raise GitWorktreeError("Not in a git worktree. Please specify a branch to remove.")
        return current

    def remove_worktree(self, target: Optional[str] = None, force: bool = False) -> bool:
        """Remove a worktree and its branch.

        Args:
            target: Branch or directory name; defaults to the current worktree
            force: Skip confirmation and force-delete unmerged branches

        Returns:
            True if the worktree was removed, False if the user cancelled
        """
        worktrees = self.worktree_service.list_worktrees()
        if not worktrees:
            self.console.print("[yellow]No worktrees found.[/yellow]")
            return False

        wt = self._resolve_target(worktrees, target)
        if wt.is_bare:
            raise GitWorktreeError("Cannot remove the main (bare) repository.")
        if Path(wt.path).resolve() == Path(worktrees[0].path).resolve():
            raise GitWorktreeError("Cannot remove the main worktree.")

        self.console.print("[bold cyan]About to remove worktree:[/bold cyan]")
        self.console.print(f"  [dim]Path[/dim]: {escape(wt.path)}")
        self.console.print(f"  [dim]Branch[/dim]: [green]{escape(wt.display_name)}[/green]")

        cwd = Path(os.getcwd()).resolve()
        wt_path = Path(wt.path).resolve()
        removing_current = cwd == wt_path or wt_path in cwd.parents
        if removing_current:
            self.console.print(
                "\n[yellow]You are currently in this worktree. "
                "You will need to move to the project root after removal.[/yellow]"
            )

        if not force and not self.confirm("Are you sure you want to remove this worktree?"):
            self.console.print("[yellow]Removal cancelled.[/yellow]")
            return False

        git_dir = pick_git_working_dir(worktrees, wt)
        if git_dir is None:
            raise GitWorktreeError("No other worktree found to run git from.")

        variables = {"branchName": wt.branch or "", "worktreePath": wt.path}
        if wt_path.is_dir():
            self.hook_runner.run("preRemove", wt.path, variables)

        if wt.is_prunable:
            # Directory is already gone; only git's administrative files remain
            self.console.print("\n[cyan]Worktree directory is missing, pruning stale worktree data...[/cyan]")
            self.worktree_service.prune_worktrees()
            self.console.print(f"[green]✓ Stale worktree pruned: {escape(wt.path)}[/green]")
        else:
            self.console.print("\n[cyan]Removing worktree...[/cyan]")
            self.worktree_service.remove_worktree(wt.path, force=True, cwd=git_dir.path)
            self.console.print(f"[green]✓ Worktree removed: {escape(wt.path)}[/green]")

        if wt.branch is not None:
            self._delete_branch(wt.branch, git_dir.path, force)

        self.hook_runner.run("postRemove", self.project.root, variables)

        if removing_current:
            self.console.print(f"[green]✓ Please navigate to project root: {escape(self.project.root)}[/green]")
        return True

    def _delete_branch(self, branch: str, cwd: str, force: bool) -> None:
        """Delete the branch of a removed worktree unless it is protected."""
        if branch in PROTECTED_BRANCHES:
            self.console.print(f"[green]✓ Branch: {escape(branch)} (preserved - main branch)[/green]")
            return

        try:
            self.worktree_service.delete_branch(branch, cwd=cwd)
            self.console.print(f"[green]✓ Branch deleted: {escape(branch)}[/green]")
            return
        except NonZeroExitError as e:
            if "not fully merged" not in e.stderr:
                self.console.print(f"[red]Failed to delete branch '{escape(branch)}': {escape(e.stderr or str(e))}[/red]")
                return

        self.console.print(f"[yellow]Branch '{escape(branch)}' has unmerged changes[/yellow]")
        if not force and not self.confirm("Force delete the branch?"):
            self.console.print(f"[yellow]Branch '{escape(branch)}' was not deleted[/yellow]")
            return

        try:
            self.worktree_service.delete_branch(branch, force=True, cwd=cwd)
        except NonZeroExitError as e:
            self.console.print(f"[red]Failed to delete branch '{escape(branch)}': {escape(e.stderr or str(e))}[/red]")
            return
        self.console.print(f"[green]✓ Branch force deleted: {escape(branch)}[/green]")
