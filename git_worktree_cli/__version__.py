"""Version information for git-worktree-cli."""

try:
    from git_worktree_cli._version import __version__
except ImportError:
    # Running from a source checkout without generated version metadata
    __version__ = "0.0.0+unknown"
