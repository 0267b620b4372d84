"""Custom exceptions for git-worktree-cli"""

from typing import Optional


class GitWorktreeError(Exception):
    """Base exception for all git-worktree-cli errors."""
    pass


class ExecError(GitWorktreeError):
    """Exception raised when an external command cannot be run to completion."""

    def __init__(self, command: str, message: Optional[str] = None):
        self.command = command
        self.message = message

        error_msg = f"Command '{command}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class CommandNotFoundError(ExecError):
    """Exception raised when the executable cannot be located."""

    def __init__(self, command: str):
        super().__init__(command, "executable not found")


class NonZeroExitError(ExecError):
    """Exception raised when a command exits with an unexpected status."""

    def __init__(self, command: str, code: int, stderr: str = ""):
        self.code = code
        self.stderr = stderr.strip()

        message = f"exit code {code}"
        if self.stderr:
            message += f": {self.stderr}"

        super().__init__(command, message)


class VcsUnavailable(GitWorktreeError):
    """Exception raised when git is missing or unusable for this repository."""

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint or "Make sure git is installed and run the command inside a git repository."
        super().__init__(f"{message}\n{self.hint}")


class ParseError(GitWorktreeError):
    """Exception raised when 'git worktree list --porcelain' output is malformed."""

    def __init__(self, message: str, raw_block: str = ""):
        self.message = message
        self.raw_block = raw_block

        error_msg = f"Unexpected worktree listing format: {message}"
        if raw_block:
            error_msg += f"\n--- offending block ---\n{raw_block}"

        super().__init__(error_msg)


class ProviderError(GitWorktreeError):
    """Exception raised for errors talking to a pull-request hosting backend."""

    def __init__(self, provider: str, message: Optional[str] = None):
        self.provider = provider
        self.message = message

        error_msg = f"{provider} request failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class AuthError(ProviderError):
    """Exception raised for invalid, missing or expired credentials."""

    def __init__(self, provider: str, message: Optional[str] = None):
        self.setup_hint = f"Run 'gwt auth {provider} setup' to configure credentials."
        super().__init__(provider, message or "authentication failed")


class NotFound(ProviderError):
    """Exception raised when the repository does not resolve at the provider."""

    def __init__(self, provider: str, repository: str):
        self.repository = repository
        super().__init__(provider, f"repository '{repository}' not found")


class TransientError(ProviderError):
    """Exception raised for timeouts, connection failures and 5xx responses."""
    pass


class StoreError(GitWorktreeError):
    """Exception raised when the OS secret store is unreachable or refuses access."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.message = message

        error_msg = f"Credential store operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class ConfigError(GitWorktreeError):
    """Exception raised for missing or invalid configuration."""
    pass


class HookError(GitWorktreeError):
    """Exception raised when a hook command fails."""

    def __init__(self, hook_type: str, command: str, message: Optional[str] = None):
        self.hook_type = hook_type
        self.command = command

        error_msg = f"{hook_type} hook '{command}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class WorktreeNotFoundError(GitWorktreeError):
    """Exception raised when no worktree matches the requested branch or path."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"Worktree for '{target}' not found")
