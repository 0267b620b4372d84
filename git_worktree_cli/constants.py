"""Shared constants for git-worktree-cli."""

from dataclasses import dataclass
from typing import List


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


WORKTREE_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("branch", "Branch", 30),
    ColumnDefinition("path", "Path"),
    ColumnDefinition("head", "HEAD", 8),
    ColumnDefinition("flags", "Flags", 6),
    ColumnDefinition("prs", "Pull Requests"),
]

REMOTE_PR_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("branch", "Branch", 30),
    ColumnDefinition("pr", "Pull Request"),
    ColumnDefinition("state", "State", 10),
    ColumnDefinition("title", "Title"),
]


# Branches that `gwt remove` never deletes
PROTECTED_BRANCHES = ["main", "master", "dev", "develop"]

DEFAULT_MAIN_BRANCHES = ["main", "master"]

GIT_REFS_HEADS_PREFIX = "refs/heads/"
GIT_EXTENSION = ".git"
WORKTREES_DIR_SUFFIX = "-worktrees"

CONFIG_FILE_NAME = "git-worktree-config.yaml"

# Provider hosts and API endpoints
GITHUB_HOST = "github.com"
BITBUCKET_CLOUD_HOST = "bitbucket.org"
BITBUCKET_API_BASE = "https://api.bitbucket.org/2.0"
BITBUCKET_OAUTH_TOKEN_URL = "https://bitbucket.org/site/oauth2/access_token"

# Credential sources
KEYRING_SERVICE = "git-worktree-cli"
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"
BITBUCKET_CLOUD_EMAIL_ENV_VAR = "BITBUCKET_CLOUD_EMAIL"
BITBUCKET_CLOUD_TOKEN_ENV_VAR = "BITBUCKET_CLOUD_API_TOKEN"
BITBUCKET_DATA_CENTER_TOKEN_ENV_VAR = "BITBUCKET_DATA_CENTER_HTTP_ACCESS_TOKEN"

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_PER_PAGE = 100

# Hooks
HOOK_TYPES = ["postAdd", "preRemove", "postRemove"]
HOOK_ENV_FORCE_COLOR = "1"


# Symbols for worktree flags column
SYMBOL_CURRENT_WORKTREE = "@"
SYMBOL_BARE = "B"
SYMBOL_DETACHED = "D"
SYMBOL_LOCKED = "L"
SYMBOL_PRUNABLE = "P"

PR_UNAVAILABLE_TEXT = "unavailable"


# Rich colors per pull request state value
PR_STATE_COLORS = {
    "open": "green",
    "draft": "yellow",
    "merged": "magenta",
    "closed": "red",
    "declined": "red",
}


LEGEND_TEXT = """
Legend:
@ = Current worktree      B = Bare repository
D = Detached HEAD         L = Locked
P = Prunable (directory missing)
"""
