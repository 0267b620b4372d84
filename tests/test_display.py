"""Tests for listing output and formatters"""
from git_worktree_cli.formatters import (
    format_pr_link,
    format_pr_state,
    format_pr_title,
    format_worktree_flags,
    format_worktree_path,
)
from git_worktree_cli.models import PrDataStatus, PullRequestState
from git_worktree_cli.services.correlation import build_view
from git_worktree_cli.services.display_service import DisplayService


class TestFormatters:
    """Test the cell formatters."""

    def test_pr_link(self, pr_factory):
        """Test that the number links to the PR page."""
        pr = pr_factory(7, "feature/x")
        assert format_pr_link(pr) == "[link=https://github.com/test/test-repo/pull/7]#7[/link]"
        assert format_pr_link(pr_factory(7, "feature/x", url="")) == "#7"

    def test_pr_state_colors(self, pr_factory):
        """Test state colours and the draft label."""
        assert format_pr_state(pr_factory(1, "a")) == "[green]open[/green]"
        assert format_pr_state(pr_factory(1, "a", is_draft=True)) == "[yellow]draft[/yellow]"
        assert format_pr_state(pr_factory(1, "a", state=PullRequestState.MERGED)) == "[magenta]merged[/magenta]"

    def test_pr_title_truncated_and_escaped(self, pr_factory):
        """Test long titles and titles containing markup."""
        assert format_pr_title(pr_factory(1, "a", title="x" * 80), max_length=10) == "x" * 9 + "…"
        assert format_pr_title(pr_factory(1, "a", title="[wip] thing")) == "\\[wip] thing"

    def test_worktree_path(self):
        """Test relative paths below the base directory."""
        assert format_worktree_path("/src/repo-worktrees/feature/x", "/src/repo-worktrees") == "feature/x"
        assert format_worktree_path("/src/repo", "/src/repo-worktrees") == "/src/repo"
        assert format_worktree_path("/src/repo", None) == "/src/repo"

    def test_worktree_flags(self, worktree_factory):
        """Test flag symbols."""
        assert format_worktree_flags(worktree_factory("/a", "main"), is_current=True) == "@"
        assert format_worktree_flags(worktree_factory("/a", None, is_locked=True)) == "DL"
        assert format_worktree_flags(worktree_factory("/a", None, head=None, is_bare=True)) == "B"
        assert format_worktree_flags(worktree_factory("/a", "gone", is_prunable=True)) == "P"


class TestDisplayView:
    """Test the rendered listing."""

    def render(self, output_console, view, **kwargs):
        DisplayService(output_console).display_view(view, **kwargs)
        return output_console.file.getvalue()

    def test_available(self, output_console, sample_worktrees, sample_pull_requests):
        """Test worktrees with their pull requests and the remote-only table."""
        output = self.render(output_console, build_view(sample_worktrees, sample_pull_requests),
                             provider_label="GitHub")

        assert "Local Worktrees" in output
        assert "feature/x" in output
        assert "#7 open" in output
        assert "#3 closed" in output
        assert "Pull requests without a local worktree" in output
        assert "feature/y" in output
        assert "merged" in output
        assert "PR data unavailable" not in output

    def test_unavailable(self, output_console, sample_worktrees):
        """Test that a failed fetch still lists worktrees and explains why."""
        view = build_view(sample_worktrees, status=PrDataStatus.UNAVAILABLE, error="request timed out")
        output = self.render(output_console, view, provider_label="GitHub", hint="Check your network")

        assert "/src/repo" in output
        assert "feature/x" in output
        assert "unavailable" in output
        assert "PR data unavailable (GitHub): request timed out" in output
        assert "Check your network" in output
        assert "without a local worktree" not in output

    def test_not_configured(self, output_console, sample_worktrees):
        """Test the tip shown without credentials."""
        view = build_view(sample_worktrees, status=PrDataStatus.NOT_CONFIGURED)
        output = self.render(output_console, view, provider_label="GitHub",
                             hint="Run 'gwt auth github setup' to show pull requests.")

        assert "Tip: no GitHub credentials configured" in output
        assert "gwt auth github setup" in output

    def test_skipped_has_no_notes(self, output_console, sample_worktrees):
        """Test that a local-only listing prints just the table."""
        output = self.render(output_console, build_view(sample_worktrees, status=PrDataStatus.SKIPPED))

        assert "Local Worktrees" in output
        assert "unavailable" not in output
        assert "Tip:" not in output

    def test_current_and_relative_paths(self, output_console, sample_worktrees):
        """Test the current-worktree flag and relative paths."""
        output = self.render(
            output_console,
            build_view(sample_worktrees, status=PrDataStatus.SKIPPED),
            current_path="/src/repo-worktrees/feature/x",
            base_path="/src/repo-worktrees",
        )
        assert "@" in output
        assert "/src/repo-worktrees/feature/x" not in output

    def test_legend(self, output_console, sample_worktrees):
        """Test the optional flag legend."""
        output = self.render(output_console, build_view(sample_worktrees, status=PrDataStatus.SKIPPED),
                             show_legend=True)
        assert "Legend:" in output

    def test_worktree_list(self, output_console, sample_worktrees):
        """Test the plain worktree list."""
        DisplayService(output_console).display_worktree_list(sample_worktrees)
        output = output_console.file.getvalue()
        assert "feature/x" in output
        assert "/src/repo-worktrees/review" in output
