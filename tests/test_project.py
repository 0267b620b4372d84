"""Tests for project discovery and gwt init"""
from pathlib import Path

import pytest

from git_worktree_cli.config import load_config
from git_worktree_cli.core.project import (
    find_current_worktree,
    find_worktree,
    init_project,
    load_project,
    pick_git_working_dir,
    repo_name_from_url,
)
from git_worktree_cli.exceptions import ConfigError, VcsUnavailable
from git_worktree_cli.models import ProviderKind
from git_worktree_cli.services.git import find_repo_root


class TestFindRepoRoot:
    """Test locating the main checkout."""

    def test_from_main_checkout(self, git_repo):
        """Test the main checkout itself."""
        assert find_repo_root(git_repo.working_dir) == str(Path(git_repo.working_dir).resolve())

    def test_from_linked_worktree(self, git_repo_with_worktree):
        """Test that a linked worktree resolves to the main checkout."""
        repo, worktree_path = git_repo_with_worktree
        assert find_repo_root(str(worktree_path)) == str(Path(repo.working_dir).resolve())

    def test_outside_repository(self, temp_dir):
        """Test None outside any repository."""
        assert find_repo_root(str(temp_dir)) is None


class TestInitProject:
    """Test writing the project configuration."""

    def test_init_existing_repository(self, git_repo, output_console):
        """Test init inside a GitHub repository."""
        config_path, config = init_project(cwd=git_repo.working_dir, output=output_console)

        root = Path(git_repo.working_dir)
        assert config_path == root / "git-worktree-config.yaml"
        assert config.provider == ProviderKind.GITHUB
        assert config.main_branch == "main"
        assert config.worktrees_path == str(root.parent / "test_repo-worktrees")
        assert load_config(config_path).repository_url == "git@github.com:test/test-repo.git"
        assert "Detected provider: GitHub" in output_console.file.getvalue()

    def test_unknown_provider_needs_override(self, git_repo, output_console):
        """Test that an undetectable remote asks for --provider."""
        git_repo.remote("origin").set_url("ssh://git@git.example.com:7999/PROJ/repo.git")

        with pytest.raises(ConfigError) as exc_info:
            init_project(cwd=git_repo.working_dir, output=output_console)
        assert "--provider" in str(exc_info.value)

    def test_data_center_override(self, git_repo, output_console):
        """Test that --provider records the Data Center server URL."""
        git_repo.remote("origin").set_url("ssh://git@git.example.com:7999/PROJ/repo.git")

        _, config = init_project(provider=ProviderKind.BITBUCKET_DATA_CENTER,
                                 cwd=git_repo.working_dir, output=output_console)

        assert config.provider == ProviderKind.BITBUCKET_DATA_CENTER
        assert config.bitbucket_data_center_url == "https://git.example.com"

    def test_outside_repository(self, temp_dir, output_console):
        """Test that init without a URL needs a repository."""
        with pytest.raises(VcsUnavailable):
            init_project(cwd=str(temp_dir), output=output_console)


class TestLoadProject:
    """Test resolving the project for a command."""

    def test_without_config_detects_provider(self, git_repo):
        """Test that an uninitialized repository still works."""
        project = load_project(git_repo.working_dir)

        assert project.is_initialized is False
        assert project.provider == ProviderKind.GITHUB
        assert project.remote_url == "git@github.com:test/test-repo.git"

    def test_from_worktree_with_config(self, git_repo_with_worktree, output_console):
        """Test that a linked worktree finds the main checkout's config."""
        repo, worktree_path = git_repo_with_worktree
        init_project(cwd=repo.working_dir, output=output_console)

        project = load_project(str(worktree_path))

        assert project.is_initialized is True
        assert project.root == str(Path(repo.working_dir).resolve())

    def test_outside_repository(self, temp_dir):
        """Test that a plain directory is rejected."""
        with pytest.raises(VcsUnavailable):
            load_project(str(temp_dir))


class TestWorktreeLookup:
    """Test finding worktrees by name and location."""

    def test_find_by_branch_then_directory(self, sample_worktrees):
        """Test branch names first, then directory names."""
        assert find_worktree(sample_worktrees, "feature/x").path == "/src/repo-worktrees/feature/x"
        assert find_worktree(sample_worktrees, "review").path == "/src/repo-worktrees/review"
        assert find_worktree(sample_worktrees, "missing") is None

    def test_current_worktree_deepest_wins(self, temp_dir, worktree_factory):
        """Test that nested worktrees resolve to the innermost one."""
        outer = temp_dir / "outer"
        inner = outer / "nested" / "inner"
        (inner / "src").mkdir(parents=True)
        worktrees = [worktree_factory(str(outer), "main"), worktree_factory(str(inner), "feature")]

        assert find_current_worktree(worktrees, str(inner / "src")).branch == "feature"
        assert find_current_worktree(worktrees, str(outer)).branch == "main"
        assert find_current_worktree(worktrees, str(temp_dir)) is None

    def test_git_working_dir_prefers_protected_branch(self, worktree_factory):
        """Test the directory git runs from while removing a worktree."""
        target = worktree_factory("/wt/feature", "feature")
        worktrees = [
            worktree_factory("/wt/other", "other"),
            worktree_factory("/src/repo", "main"),
            target,
        ]
        assert pick_git_working_dir(worktrees, target).path == "/src/repo"
        assert pick_git_working_dir([target], target) is None

    @pytest.mark.parametrize("url, name", [
        ("git@github.com:test/test-repo.git", "test-repo"),
        ("https://bitbucket.org/acme/widgets", "widgets"),
        ("https://git.example.com/scm/PROJ/repo.git/", "repo"),
    ])
    def test_repo_name_from_url(self, url, name):
        """Test the directory name a clone gets."""
        assert repo_name_from_url(url) == name
