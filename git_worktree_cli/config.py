"""Configuration handling for git-worktree-cli"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from git_worktree_cli.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_PER_PAGE,
    DEFAULT_REQUEST_TIMEOUT,
    WORKTREES_DIR_SUFFIX,
)
from git_worktree_cli.exceptions import ConfigError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.provider import ProviderKind

logger = get_logger(__name__)


@dataclass
class Hooks:
    """Shell commands run around worktree changes."""

    post_add: List[str] = field(default_factory=list)
    pre_remove: List[str] = field(default_factory=list)
    post_remove: List[str] = field(default_factory=list)

    def for_type(self, hook_type: str) -> List[str]:
        """Commands for a hook type name as used in the config file (postAdd, ...)."""
        return {
            "postAdd": self.post_add,
            "preRemove": self.pre_remove,
            "postRemove": self.post_remove,
        }.get(hook_type, [])

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "postAdd": list(self.post_add),
            "preRemove": list(self.pre_remove),
            "postRemove": list(self.post_remove),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Hooks":
        data = data or {}
        hooks = cls(
            post_add=list(data.get("postAdd") or []),
            pre_remove=list(data.get("preRemove") or []),
            post_remove=list(data.get("postRemove") or []),
        )
        for commands in (hooks.post_add, hooks.pre_remove, hooks.post_remove):
            if not all(isinstance(command, str) for command in commands):
                raise ValueError("hook commands must be strings")
        return hooks


@dataclass
class Config:
    """Configuration for git-worktree-cli with validation."""

    # Repository
    repository_url: str = ""
    main_branch: str = "main"
    source_control: str = ProviderKind.GITHUB.value
    project_path: Optional[str] = None
    worktrees_path: Optional[str] = None
    created_at: Optional[str] = None

    # Provider specifics
    bitbucket_email: Optional[str] = None
    bitbucket_data_center_url: Optional[str] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    per_page: int = DEFAULT_PER_PAGE

    hooks: Hooks = field(default_factory=Hooks)

    # Execution modes (from command-line flags, never persisted)
    local_only: bool = False
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_source_control()
        self._validate_main_branch()
        self._validate_request_timeout()
        self._validate_per_page()
        self._validate_data_center_url()

    def _validate_source_control(self):
        """Validate source_control is a known provider tag."""
        allowed = [kind.value for kind in ProviderKind]
        if self.source_control not in allowed:
            raise ValueError(f"source_control must be one of {allowed}, got '{self.source_control}'")

    def _validate_main_branch(self):
        """Validate main_branch is not empty."""
        if not self.main_branch or not self.main_branch.strip():
            raise ValueError("main_branch cannot be empty")
        self.main_branch = self.main_branch.strip()

    def _validate_request_timeout(self):
        """Validate request_timeout is positive."""
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")

    def _validate_per_page(self):
        """Validate per_page is within what the provider APIs accept."""
        if not 1 <= self.per_page <= 100:
            raise ValueError(f"per_page must be between 1 and 100, got {self.per_page}")

    def _validate_data_center_url(self):
        """Validate the Bitbucket Data Center base URL, if set."""
        url = self.bitbucket_data_center_url
        if url is None:
            return
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"bitbucket_data_center_url must be an http(s) URL, got '{url}'")
        self.bitbucket_data_center_url = url.rstrip("/")

    @property
    def provider(self) -> ProviderKind:
        return ProviderKind(self.source_control)

    @staticmethod
    def derive_worktrees_path(project_root: Path) -> Path:
        """`/src/repo` keeps its worktrees in `/src/repo-worktrees`."""
        project_root = Path(project_root)
        return project_root.parent / f"{project_root.name}{WORKTREES_DIR_SUFFIX}"

    def get_worktrees_path(self, project_root: Path) -> Path:
        """Configured worktrees directory, or the derived default."""
        if self.worktrees_path:
            return Path(self.worktrees_path).expanduser()
        return self.derive_worktrees_path(project_root)

    def to_dict(self) -> dict:
        """Convert config to the camelCase mapping stored on disk."""
        data = {
            "repositoryUrl": self.repository_url,
            "mainBranch": self.main_branch,
            "sourceControl": self.source_control,
            "createdAt": self.created_at,
            "projectPath": self.project_path,
            "worktreesPath": self.worktrees_path,
            "bitbucketEmail": self.bitbucket_email,
            "bitbucketDataCenterUrl": self.bitbucket_data_center_url,
            "requestTimeout": self.request_timeout,
            "perPage": self.per_page,
            "hooks": self.hooks.to_dict(),
        }
        return {key: value for key, value in data.items() if value is not None}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from the on-disk camelCase mapping."""
        # Extract only known fields
        known_fields = {
            "repositoryUrl": "repository_url",
            "mainBranch": "main_branch",
            "sourceControl": "source_control",
            "createdAt": "created_at",
            "projectPath": "project_path",
            "worktreesPath": "worktrees_path",
            "bitbucketEmail": "bitbucket_email",
            "bitbucketDataCenterUrl": "bitbucket_data_center_url",
            "requestTimeout": "request_timeout",
            "perPage": "per_page",
        }

        filtered = {
            attr: config_dict[key] for key, attr in known_fields.items() if key in config_dict
        }
        if isinstance(filtered.get("created_at"), datetime):
            filtered["created_at"] = filtered["created_at"].isoformat()
        filtered["hooks"] = Hooks.from_dict(config_dict.get("hooks"))
        return cls(**filtered)


def new_config(repository_url: str, main_branch: str, provider: ProviderKind,
               project_path: Optional[Path] = None,
               worktrees_path: Optional[Path] = None) -> Config:
    """Create the configuration written by `gwt init`."""
    return Config(
        repository_url=repository_url,
        main_branch=main_branch,
        source_control=provider.value,
        project_path=str(project_path) if project_path else None,
        worktrees_path=str(worktrees_path) if worktrees_path else None,
        created_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
    )


def load_config(path: Path) -> Config:
    """Load a configuration file.

    Raises:
        ConfigError: If the file cannot be read or does not validate
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    try:
        return Config.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def save_config(config: Config, path: Path) -> None:
    """Write a configuration file, creating its directory if needed."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigError(f"Failed to write config file {path}: {e}") from e
    logger.debug(f"Saved configuration to {path}")


def find_config(start: Optional[Path] = None) -> Optional[Tuple[Path, Config]]:
    """Look for a config file from `start` (default: cwd) up to the filesystem root.

    Inside `<name>-worktrees/...` the sibling `<name>` directory is checked as
    well, so commands work from any worktree.

    Returns:
        (config_path, Config) or None when no config file exists
    """
    start = Path(start or Path.cwd()).resolve()

    for directory in [start, *start.parents]:
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            logger.debug(f"Found config at {candidate}")
            return candidate, load_config(candidate)

        if directory.name.endswith(WORKTREES_DIR_SUFFIX):
            main_name = directory.name[: -len(WORKTREES_DIR_SUFFIX)]
            sibling = directory.parent / main_name / CONFIG_FILE_NAME
            if main_name and sibling.is_file():
                logger.debug(f"Found config next to worktrees directory at {sibling}")
                return sibling, load_config(sibling)

    return None
