"""Pytest fixtures for git-worktree-cli tests"""
import io
import tempfile
from pathlib import Path

import git
import keyring.errors
import pytest
from rich.console import Console

from git_worktree_cli.config import Config
from git_worktree_cli.models import ProviderKind, PullRequest, PullRequestState, WorktreeEntry


class InMemoryKeyring:
    """Keyring backend keeping secrets in a dict."""

    def __init__(self):
        self.entries = {}
        self.set_calls = 0

    def get_password(self, service, username):
        return self.entries.get((service, username))

    def set_password(self, service, username, password):
        self.set_calls += 1
        self.entries[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise keyring.errors.PasswordDeleteError("not found")


class LockedKeyring:
    """Keyring backend that refuses every operation."""

    def get_password(self, service, username):
        raise keyring.errors.KeyringError("keyring is locked")

    def set_password(self, service, username, password):
        raise keyring.errors.KeyringError("keyring is locked")

    def delete_password(self, service, username):
        raise keyring.errors.KeyringError("keyring is locked")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def memory_keyring():
    return InMemoryKeyring()


@pytest.fixture
def locked_keyring():
    return LockedKeyring()


@pytest.fixture
def output_console():
    """Console writing plain text into a buffer, read back with .file.getvalue()."""
    return Console(file=io.StringIO(), width=200, color_system=None, force_terminal=False)


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with a GitHub origin remote."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    repo.git.branch("-M", "main")
    repo.create_remote("origin", "git@github.com:test/test-repo.git")

    yield repo

    repo.close()


@pytest.fixture
def git_repo_with_worktree(git_repo, temp_dir):
    """Repository with one linked worktree on feature/x under test_repo-worktrees/."""
    worktree_path = temp_dir / "test_repo-worktrees" / "feature" / "x"
    git_repo.git.worktree("add", "-b", "feature/x", str(worktree_path))
    yield git_repo, worktree_path


@pytest.fixture
def sample_porcelain():
    """Porcelain listing with a main checkout, a branch, a detached and a locked worktree."""
    return (
        "worktree /src/repo\n"
        "HEAD 1111111111111111111111111111111111111111\n"
        "branch refs/heads/main\n"
        "\n"
        "worktree /src/repo-worktrees/feature/x\n"
        "HEAD 2222222222222222222222222222222222222222\n"
        "branch refs/heads/feature/x\n"
        "\n"
        "worktree /src/repo-worktrees/review\n"
        "HEAD 3333333333333333333333333333333333333333\n"
        "detached\n"
        "\n"
        "worktree /src/repo-worktrees/hotfix\n"
        "HEAD 4444444444444444444444444444444444444444\n"
        "branch refs/heads/hotfix\n"
        "locked on a usb drive\n"
        "\n"
    )


def make_pr(pr_id, source_branch, state=PullRequestState.OPEN, target_branch="main",
            provider=ProviderKind.GITHUB, **kwargs):
    """Build a PullRequest with sensible defaults."""
    return PullRequest(
        id=pr_id,
        source_branch=source_branch,
        target_branch=target_branch,
        title=kwargs.pop("title", f"PR {pr_id}"),
        state=state,
        url=kwargs.pop("url", f"https://github.com/test/test-repo/pull/{pr_id}"),
        provider=provider,
        **kwargs,
    )


def make_worktree(path, branch, head="a" * 40, **kwargs):
    """Build a WorktreeEntry; branch=None makes it detached."""
    return WorktreeEntry(
        path=path,
        branch=branch,
        head_commit=head,
        is_detached=kwargs.pop("is_detached", branch is None),
        **kwargs,
    )


@pytest.fixture
def sample_worktrees():
    return [
        make_worktree("/src/repo", "main"),
        make_worktree("/src/repo-worktrees/feature/x", "feature/x"),
        make_worktree("/src/repo-worktrees/review", None),
    ]


@pytest.fixture
def sample_pull_requests():
    return [
        make_pr(7, "feature/x"),
        make_pr(8, "feature/y", state=PullRequestState.MERGED),
        make_pr(3, "feature/x", state=PullRequestState.CLOSED),
    ]


@pytest.fixture
def github_config():
    return Config(repository_url="git@github.com:test/test-repo.git", source_control="github")


@pytest.fixture
def pr_factory():
    return make_pr


@pytest.fixture
def worktree_factory():
    return make_worktree
