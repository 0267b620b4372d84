"""User-configured shell hooks around worktree changes."""

from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from git_worktree_cli.config import Hooks
from git_worktree_cli.constants import HOOK_ENV_FORCE_COLOR, HOOK_TYPES
from git_worktree_cli.exceptions import ExecError, HookError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.services.executor import CommandExecutor

console = Console()
logger = get_logger(__name__)


def substitute_variables(command: str, variables: Dict[str, str]) -> str:
    """Replace ${name} placeholders; unknown placeholders are left alone."""
    for name, value in variables.items():
        command = command.replace(f"${{{name}}}", value)
    return command


class HookRunner:
    """Runs the postAdd, preRemove and postRemove hook commands."""

    def __init__(self, hooks: Hooks, executor: Optional[CommandExecutor] = None,
                 output: Optional[Console] = None):
        self.hooks = hooks
        self.executor = executor or CommandExecutor()
        self.console = output or console

    def run(self, hook_type: str, working_directory: str, variables: Dict[str, str]) -> List[HookError]:
        """Run every command of a hook type in order.

        A failing command is reported as a warning and the remaining commands
        still run.

        Args:
            hook_type: postAdd, preRemove or postRemove
            working_directory: Directory the commands run in
            variables: Values for ${branchName}, ${worktreePath}, ...

        Returns:
            The failures, empty when every command succeeded
        """
        if hook_type not in HOOK_TYPES:
            raise ValueError(f"Unknown hook type '{hook_type}', expected one of {HOOK_TYPES}")

        commands = self.hooks.for_type(hook_type)
        if not commands:
            logger.debug(f"No {hook_type} hooks configured")
            return []

        self.console.print(f"[cyan]Running {hook_type} hooks...[/cyan]")
        failures: List[HookError] = []

        for template in commands:
            command = substitute_variables(template, variables)
            self.console.print(f"   [blue]Executing: {escape(command)}[/blue]")
            try:
                self.executor.run(
                    "sh", ["-c", command],
                    cwd=working_directory,
                    stream_output=True,
                    env={"FORCE_COLOR": HOOK_ENV_FORCE_COLOR},
                )
            except ExecError as e:
                error = HookError(hook_type, command, e.message)
                failures.append(error)
                logger.debug(str(error))
                self.console.print(f"   [yellow]Hook failed: {escape(e.message or str(e))}[/yellow]")
                continue
            self.console.print("   [green]✓ Hook completed successfully[/green]")

        return failures
