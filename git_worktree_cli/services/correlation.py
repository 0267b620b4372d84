"""Match local worktrees to pull requests by branch name."""

from typing import Dict, List, Optional, Sequence

from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.pull_request import PullRequest
from git_worktree_cli.models.view import CorrelatedEntry, CorrelatedView, PrDataStatus
from git_worktree_cli.models.worktree import WorktreeEntry

logger = get_logger(__name__)


def correlate(worktrees: Sequence[WorktreeEntry], pull_requests: Sequence[PullRequest]) -> CorrelatedView:
    """Attach each pull request to the worktree that has its source branch checked out.

    Worktrees keep their input order and pull requests keep provider order,
    both within a worktree and in `unmatched`. Every worktree and every pull
    request appears exactly once. Detached and bare worktrees have no branch,
    so they never match and are listed with no pull requests.
    """
    by_branch: Dict[str, List[PullRequest]] = {}
    for wt in worktrees:
        if wt.branch is not None:
            by_branch.setdefault(wt.branch, [])

    unmatched: List[PullRequest] = []
    for pr in pull_requests:
        matches = by_branch.get(pr.source_branch)
        if matches is None:
            unmatched.append(pr)
        else:
            matches.append(pr)

    claimed = set()
    entries = []
    for wt in worktrees:
        prs: List[PullRequest] = []
        # One worktree per branch in practice; guard so a PR is never listed twice
        if wt.branch is not None and wt.branch not in claimed:
            prs = by_branch[wt.branch]
            claimed.add(wt.branch)
        entries.append(CorrelatedEntry(worktree=wt, pull_requests=tuple(prs)))

    logger.debug(
        f"Correlated {len(worktrees)} worktrees with {len(pull_requests)} pull requests "
        f"({len(unmatched)} without a worktree)"
    )
    return CorrelatedView(entries=tuple(entries), unmatched=tuple(unmatched))


def build_view(worktrees: Sequence[WorktreeEntry],
               pull_requests: Optional[Sequence[PullRequest]] = None,
               status: PrDataStatus = PrDataStatus.AVAILABLE,
               error: Optional[str] = None) -> CorrelatedView:
    """Build the view for a listing, with or without pull request data.

    When status is AVAILABLE the worktrees are correlated with the pull
    requests; otherwise every worktree is listed with no pull requests and
    the status (and error text) tells the display why.
    """
    if status == PrDataStatus.AVAILABLE:
        return correlate(worktrees, pull_requests or ())

    entries = tuple(CorrelatedEntry(worktree=wt) for wt in worktrees)
    return CorrelatedView(entries=entries, pr_status=status, pr_error=error)
