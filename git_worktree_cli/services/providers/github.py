"""GitHub API integration"""

import re
from contextlib import contextmanager
from typing import Iterator, List, Optional

import requests
from github import (
    Auth,
    BadCredentialsException,
    Github,
    GithubException,
    RateLimitExceededException,
    UnknownObjectException,
)

from git_worktree_cli.constants import DEFAULT_PER_PAGE, DEFAULT_REQUEST_TIMEOUT
from git_worktree_cli.exceptions import AuthError, NotFound, ProviderError, TransientError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.credential import AuthIdentity, Credential
from git_worktree_cli.models.provider import ProviderKind, RepoIdentity
from git_worktree_cli.models.pull_request import PullRequest, PullRequestState
from git_worktree_cli.services.providers.base import ProviderClient

logger = get_logger(__name__)

# git@github.com:org/repo.git, https://github.com/org/repo(.git), ssh://git@github.com/org/repo
GITHUB_REMOTE_PATTERN = re.compile(r"github\.com[:/](?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$")


class GitHubClient(ProviderClient):
    """Pull requests from GitHub through PyGithub."""

    kind = ProviderKind.GITHUB
    log_prefix = "[GitHub]"

    def __init__(self, timeout: float = DEFAULT_REQUEST_TIMEOUT, per_page: int = DEFAULT_PER_PAGE,
                 base_url: Optional[str] = None):
        """Initialize the client.

        Args:
            timeout: Seconds allowed for each API request
            per_page: Page size for listing pull requests
            base_url: API URL for GitHub Enterprise (defaults to api.github.com)
        """
        super().__init__(timeout=timeout, per_page=per_page)
        self.base_url = base_url

    @classmethod
    def parse_remote_url(cls, url: str) -> Optional[RepoIdentity]:
        match = GITHUB_REMOTE_PATTERN.search(url.strip())
        if not match:
            return None
        return RepoIdentity(ProviderKind.GITHUB, match.group("owner"), match.group("name"))

    @contextmanager
    def _connect(self, credential: Credential) -> Iterator[Github]:
        """Open an API connection for one operation.

        Retries are disabled: a failure surfaces immediately and the caller
        decides whether to degrade.
        """
        kwargs = {}
        if self.base_url:
            kwargs["base_url"] = self.base_url
        github = Github(
            auth=Auth.Token(credential.secret),
            timeout=self.timeout,
            per_page=self.per_page,
            retry=None,
            **kwargs,
        )
        try:
            yield github
        except BadCredentialsException as e:
            raise AuthError(self.kind.value, "token rejected (401)") from e
        except RateLimitExceededException as e:
            raise TransientError(self.kind.value, "API rate limit exceeded") from e
        except GithubException as e:
            raise self._map_exception(e) from e
        except requests.Timeout as e:
            raise TransientError(self.kind.value, f"request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise TransientError(self.kind.value, f"connection failed: {e}") from e
        finally:
            github.close()

    def _map_exception(self, error: GithubException) -> ProviderError:
        status = error.status or 0
        if status in (401, 403):
            return AuthError(self.kind.value, f"access denied (HTTP {status})")
        if status >= 500:
            return TransientError(self.kind.value, f"HTTP {status}")
        return ProviderError(self.kind.value, f"unexpected response HTTP {status}")

    def fetch_pull_requests(self, repo: RepoIdentity, credential: Credential) -> List[PullRequest]:
        """Fetch all pull requests (open, closed and merged) of a repository."""
        with self._connect(credential) as github:
            try:
                gh_repo = github.get_repo(repo.full_name)
                pulls = [self._to_pull_request(pr) for pr in gh_repo.get_pulls(state="all")]
            except UnknownObjectException as e:
                raise NotFound(self.kind.value, repo.full_name) from e

        logger.debug(f"{self.log_prefix} Fetched {len(pulls)} pull requests for {repo.full_name}")
        return pulls

    def _to_pull_request(self, pr) -> PullRequest:
        """Normalize a PyGithub PullRequest."""
        if pr.state == "open":
            state = PullRequestState.OPEN
        elif pr.merged_at is not None:
            state = PullRequestState.MERGED
        else:
            state = PullRequestState.CLOSED

        return PullRequest(
            id=pr.number,
            source_branch=pr.head.ref,
            target_branch=pr.base.ref,
            title=pr.title or "",
            state=state,
            url=pr.html_url,
            provider=self.kind,
            is_draft=bool(pr.draft),
            author=pr.user.login if pr.user is not None else None,
        )

    def test_auth(self, credential: Credential) -> AuthIdentity:
        """Check the token by reading the authenticated user."""
        with self._connect(credential) as github:
            user = github.get_user()
            identity = AuthIdentity(username=user.login, display_name=user.name)
        logger.debug(f"{self.log_prefix} Authenticated as {identity.username}")
        return identity
