"""Command-line argument parsing for git-worktree-cli."""

import argparse

from git_worktree_cli.__version__ import __version__
from git_worktree_cli.models.provider import ProviderKind

PROVIDER_CHOICES = [kind.value for kind in ProviderKind]


def build_parser() -> argparse.ArgumentParser:
    """Build the `gwt` argument parser."""
    parser = argparse.ArgumentParser(
        prog="gwt",
        description="Manage git worktrees and see the pull requests behind each branch",
        epilog="Pull request data needs credentials: run 'gwt auth <provider> setup' or set "
        "GITHUB_TOKEN / BITBUCKET_CLOUD_EMAIL + BITBUCKET_CLOUD_API_TOKEN / "
        "BITBUCKET_DATA_CENTER_HTTP_ACCESS_TOKEN.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--version", action="version", version=f"git-worktree-cli {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True

    init_parser = subparsers.add_parser(
        "init", help="Initialize the current repository, or clone and initialize a URL"
    )
    init_parser.add_argument("repo_url", nargs="?", help="Repository URL to clone first")
    init_parser.add_argument(
        "--provider",
        choices=PROVIDER_CHOICES,
        help="Pull request provider (detected from the remote URL when omitted)",
    )

    add_parser = subparsers.add_parser("add", help="Create a worktree for a branch")
    add_parser.add_argument("branch", help="Branch to check out or create")

    list_parser = subparsers.add_parser("list", aliases=["ls"], help="List worktrees with their pull requests")
    list_parser.add_argument(
        "-l", "--local", action="store_true", help="Skip the provider and list local worktrees only"
    )

    remove_parser = subparsers.add_parser("remove", aliases=["rm"], help="Remove a worktree and its branch")
    remove_parser.add_argument(
        "branch", nargs="?", help="Branch or directory name (default: the current worktree)"
    )
    remove_parser.add_argument(
        "-f", "--force", action="store_true",
        help="Skip confirmations and force-delete unmerged branches",
    )

    auth_parser = subparsers.add_parser("auth", help="Manage provider credentials")
    auth_parser.add_argument("provider", choices=PROVIDER_CHOICES, help="Provider to manage")
    auth_parser.add_argument(
        "action",
        nargs="?",
        default="setup",
        choices=["setup", "test", "logout"],
        help="setup: store credentials, test: verify them, logout: delete them (default: setup)",
    )

    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
