"""Entry point for the `gwt` command."""

import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape

from git_worktree_cli.cli.args import parse_args
from git_worktree_cli.config import find_config
from git_worktree_cli.core.auth import AuthManager
from git_worktree_cli.core.project import init_project, load_project
from git_worktree_cli.core.worktree_manager import WorktreeManager
from git_worktree_cli.exceptions import AuthError, GitWorktreeError, ParseError
from git_worktree_cli.logging_config import get_log_file, get_logger, setup_logging
from git_worktree_cli.models.provider import ProviderKind

console = Console()
logger = get_logger(__name__)


def _run_init(args) -> int:
    provider = ProviderKind(args.provider) if args.provider else None
    init_project(repo_url=args.repo_url, provider=provider, output=console)
    return 0


def _manager(args) -> WorktreeManager:
    project = load_project()
    project.config.verbose = args.verbose
    project.config.debug = args.debug
    return WorktreeManager(project, output=console)


def _run_list(args) -> int:
    _manager(args).list_worktrees(local_only=args.local)
    return 0


def _run_add(args) -> int:
    _manager(args).add_worktree(args.branch)
    return 0


def _run_remove(args) -> int:
    _manager(args).remove_worktree(args.branch, force=args.force)
    return 0


def _run_auth(args) -> int:
    found = find_config()
    config = found[1] if found else None
    manager = AuthManager(config=config, output=console)
    kind = ProviderKind(args.provider)

    if args.action == "setup":
        manager.setup(kind)
    elif args.action == "test":
        manager.test(kind)
    else:
        manager.logout(kind)
    return 0


COMMANDS = {
    "init": _run_init,
    "list": _run_list,
    "ls": _run_list,
    "add": _run_add,
    "remove": _run_remove,
    "rm": _run_remove,
    "auth": _run_auth,
}


def main(argv=None) -> int:
    """Main entry point for the application."""
    parsed_args: Optional[object] = None
    try:
        parsed_args = parse_args(argv)

        # Setup logging before running any command
        setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

        if parsed_args.debug:
            console.print(f"[yellow]Debug mode enabled, logging to {get_log_file()}[/yellow]")

        return COMMANDS[parsed_args.command](parsed_args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except AuthError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        console.print(f"[yellow]{escape(e.setup_hint)}[/yellow]")
        return 1
    except ParseError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        console.print("[yellow]Your git version may use a worktree listing format this tool does not understand.[/yellow]")
        return 1
    except GitWorktreeError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if getattr(parsed_args, "debug", False):
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
