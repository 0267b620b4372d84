"""Run external commands, either streaming their output live or capturing it."""

import os
import signal
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Sequence

from git_worktree_cli.exceptions import CommandNotFoundError, ExecError, NonZeroExitError
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)

# Seconds a child gets to exit after a forwarded SIGINT before it is killed
INTERRUPT_GRACE_PERIOD = 5.0

OutputSink = Callable[[str], None]


def write_to_stdout(line: str) -> None:
    """Default sink: forward a line to our own stdout immediately."""
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished command."""

    exit_code: int
    stdout: str
    stderr: str


class CommandExecutor:
    """Runs external processes for git, gh and hooks.

    The caller picks one mode per call: `stream_output=True` forwards every
    line to the sink as it arrives (stderr merged into stdout) for long
    running, user-facing commands; `stream_output=False` captures both
    streams for parsing.
    """

    def __init__(self, sink: Optional[OutputSink] = None):
        """Initialize the executor.

        Args:
            sink: Callable receiving each streamed line (defaults to stdout)
        """
        self.sink = sink or write_to_stdout

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Optional[str] = None,
        stream_output: bool = False,
        allowed_exit_codes: Iterable[int] = (0,),
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            command: Executable name or path
            args: Arguments passed to the executable
            cwd: Working directory
            stream_output: Forward output live instead of capturing it
            allowed_exit_codes: Exit codes the caller treats as success
            env: Extra environment variables layered over ours

        Returns:
            CommandResult with the exit code and output

        Raises:
            CommandNotFoundError: The executable cannot be located
            NonZeroExitError: The exit code is not in allowed_exit_codes
            ExecError: The working directory does not exist
        """
        argv = [command, *args]
        display = " ".join(argv)
        allowed = set(allowed_exit_codes)
        full_env = {**os.environ, **env} if env else None

        if cwd is not None and not os.path.isdir(cwd):
            raise ExecError(display, f"working directory '{cwd}' does not exist")

        logger.debug(f"Running: {display} (cwd={cwd or os.getcwd()}, stream={stream_output})")

        try:
            process = subprocess.Popen(
                argv,
                cwd=cwd,
                env=full_env,
                stdin=subprocess.DEVNULL if not stream_output else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT if stream_output else subprocess.PIPE,
                text=True,
                errors="replace",
                bufsize=1 if stream_output else -1,
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(command) from e
        except PermissionError as e:
            raise ExecError(display, f"permission denied: {e}") from e

        try:
            if stream_output:
                stdout = self._pump(process)
                stderr = ""
            else:
                stdout, stderr = process.communicate()
        except KeyboardInterrupt:
            self._interrupt(process, display)
            raise

        exit_code = process.returncode
        logger.debug(f"Finished: {display} (exit {exit_code})")

        if exit_code not in allowed:
            # In streaming mode stderr went to the sink; keep the tail for the message
            detail = stderr if not stream_output else "\n".join(stdout.splitlines()[-5:])
            raise NonZeroExitError(display, exit_code, detail)

        return CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr)

    def _pump(self, process: subprocess.Popen) -> str:
        """Forward output line by line until the child closes stdout, then reap it."""
        lines = []
        assert process.stdout is not None
        with process.stdout:
            for line in process.stdout:
                line = line.rstrip("\r\n")
                lines.append(line)
                self.sink(line)
        process.wait()
        return "\n".join(lines)

    @staticmethod
    def _interrupt(process: subprocess.Popen, display: str) -> None:
        """Forward SIGINT to the child and wait for it so nothing is left orphaned."""
        if process.poll() is None:
            logger.debug(f"Forwarding interrupt to: {display}")
            try:
                process.send_signal(signal.SIGINT)
                process.wait(timeout=INTERRUPT_GRACE_PERIOD)
            except subprocess.TimeoutExpired:
                logger.debug(f"Child did not exit after interrupt, killing: {display}")
                process.kill()
                process.wait()
            except ProcessLookupError:
                pass
