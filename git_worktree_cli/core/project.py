"""Locate the project a command runs against."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console
from rich.markup import escape

from git_worktree_cli.config import Config, find_config, new_config, save_config
from git_worktree_cli.constants import CONFIG_FILE_NAME, GIT_EXTENSION, PROTECTED_BRANCHES
from git_worktree_cli.exceptions import ConfigError, VcsUnavailable
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.provider import ProviderKind
from git_worktree_cli.models.worktree import WorktreeEntry
from git_worktree_cli.services.executor import CommandExecutor
from git_worktree_cli.services.git import GitOperations, find_repo_root
from git_worktree_cli.services.providers import BitbucketDataCenterClient, detect_provider

console = Console()
logger = get_logger(__name__)


@dataclass
class Project:
    """A repository, its main checkout and its configuration (if initialized)."""

    root: str
    config: Config
    config_path: Optional[Path] = None
    provider: Optional[ProviderKind] = None
    remote_url: Optional[str] = None

    @property
    def is_initialized(self) -> bool:
        return self.config_path is not None

    @property
    def worktrees_path(self) -> Path:
        return self.config.get_worktrees_path(Path(self.root))


def load_project(start: Optional[str] = None) -> Project:
    """Resolve the repository and configuration for the current directory.

    Without a config file the provider is detected from the origin URL, so
    `gwt list` works in any repository.

    Raises:
        VcsUnavailable: Not inside a git repository or a configured project
        ConfigError: The config file exists but is invalid
    """
    start = start or os.getcwd()
    found = find_config(Path(start))

    root = find_repo_root(start)
    if root is None and found is not None:
        config_path, config = found
        # From <name>-worktrees/ the repository lives next to the config file
        root = find_repo_root(config.project_path or str(config_path.parent))
    if root is None:
        raise VcsUnavailable(
            f"'{start}' is not inside a git repository",
            hint="Run gwt inside a repository or one of its worktrees, or run 'gwt init' first.",
        )

    remote_url = GitOperations(root).get_remote_url()

    if found is not None:
        config_path, config = found
        logger.debug(f"Using config {config_path} (provider {config.source_control})")
        return Project(root=root, config=config, config_path=config_path,
                       provider=config.provider, remote_url=remote_url)

    provider = detect_provider(remote_url) if remote_url else None
    config = Config(repository_url=remote_url or "",
                    source_control=(provider or ProviderKind.GITHUB).value)
    logger.debug(f"No config file; detected provider {provider.value if provider else None}")
    return Project(root=root, config=config, provider=provider, remote_url=remote_url)


def find_current_worktree(worktrees: List[WorktreeEntry], cwd: Optional[str] = None) -> Optional[WorktreeEntry]:
    """The worktree containing `cwd`; the deepest one wins when worktrees are nested."""
    current = Path(cwd or os.getcwd()).resolve()
    best: Optional[WorktreeEntry] = None
    best_depth = -1
    for wt in worktrees:
        wt_path = Path(wt.path).resolve()
        if current == wt_path or wt_path in current.parents:
            depth = len(wt_path.parts)
            if depth > best_depth:
                best, best_depth = wt, depth
    return best


def find_worktree(worktrees: List[WorktreeEntry], target: str) -> Optional[WorktreeEntry]:
    """Find a worktree by branch name, then by directory name or path."""
    for wt in worktrees:
        if wt.branch == target:
            return wt

    for wt in worktrees:
        if Path(wt.path).name == target or wt.path == target:
            return wt
    return None


def pick_git_working_dir(worktrees: List[WorktreeEntry], exclude: WorktreeEntry) -> Optional[WorktreeEntry]:
    """Another worktree to run git from, preferring one on a protected branch."""
    others = [wt for wt in worktrees if wt.path != exclude.path and not wt.is_prunable]
    for wt in others:
        if wt.branch in PROTECTED_BRANCHES:
            return wt
    return others[0] if others else None


def repo_name_from_url(url: str) -> str:
    """Directory name `git clone` would pick for a URL."""
    name = url.rstrip("/").replace(":", "/").split("/")[-1]
    if name.endswith(GIT_EXTENSION):
        name = name[: -len(GIT_EXTENSION)]
    if not name:
        raise ConfigError(f"Cannot derive a directory name from '{url}'")
    return name


def init_project(repo_url: Optional[str] = None, provider: Optional[ProviderKind] = None,
                 cwd: Optional[str] = None, executor: Optional[CommandExecutor] = None,
                 output: Optional[Console] = None) -> Tuple[Path, Config]:
    """Write the project configuration, cloning the repository first when a URL is given.

    Args:
        repo_url: Repository to clone into ./<name>; None initializes the current repository
        provider: Provider override (required for Bitbucket Data Center SSH remotes)
        cwd: Directory to run in
        executor: Runs git clone
        output: Console for progress messages

    Returns:
        (config_path, config)
    """
    cwd = cwd or os.getcwd()
    out = output or console

    if repo_url:
        target = Path(cwd) / repo_name_from_url(repo_url)
        if target.exists():
            raise ConfigError(f"Directory {target} already exists")
        out.print(f"[cyan]Cloning {escape(repo_url)}...[/cyan]")
        (executor or CommandExecutor()).run("git", ["clone", repo_url, str(target)], cwd=cwd, stream_output=True)
        root = str(target)
    else:
        root = find_repo_root(cwd)
        if root is None:
            raise VcsUnavailable(
                f"'{cwd}' is not inside a git repository",
                hint="Run 'gwt init' inside a repository, or pass a repository URL to clone.",
            )

    operations = GitOperations(root)
    remote_url = repo_url or operations.get_remote_url() or ""

    kind = provider or (detect_provider(remote_url) if remote_url else None)
    if kind is None:
        raise ConfigError(
            f"Could not detect repository provider from URL: {remote_url or '(no origin remote)'}\n"
            "Supported providers: GitHub, Bitbucket Cloud. "
            "Use --provider bitbucket-data-center for a self-hosted Bitbucket."
        )
    out.print(f"[green]✓ Detected provider: {kind.label}[/green]")

    main_branch = operations.get_default_branch()
    config = new_config(remote_url, main_branch, kind, project_path=Path(root),
                        worktrees_path=Config.derive_worktrees_path(Path(root)))

    if kind == ProviderKind.BITBUCKET_DATA_CENTER and remote_url:
        identity = BitbucketDataCenterClient.parse_remote_url(remote_url)
        if identity is not None:
            config.bitbucket_data_center_url = identity.base_url

    config_path = Path(root) / CONFIG_FILE_NAME
    save_config(config, config_path)

    out.print(f"[green]✓ Repository: {escape(remote_url or '(none)')}[/green]")
    out.print(f"[green]✓ Main branch: {escape(main_branch)}[/green]")
    out.print(f"[green]✓ Project path: {escape(root)}[/green]")
    out.print(f"[green]✓ Worktrees path: {escape(str(config.get_worktrees_path(Path(root))))}[/green]")
    out.print(f"[green]✓ Config saved to: {escape(str(config_path))}[/green]")
    return config_path, config
