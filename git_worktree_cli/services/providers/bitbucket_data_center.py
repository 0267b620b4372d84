"""Bitbucket Data Center (self-hosted Bitbucket Server) API integration"""

import re
from typing import Any, Dict, List, Optional

from requests.auth import AuthBase, HTTPBasicAuth

from git_worktree_cli.exceptions import AuthError, ProviderError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.credential import AuthIdentity, AuthScheme, Credential
from git_worktree_cli.models.provider import ProviderKind, RepoIdentity
from git_worktree_cli.models.pull_request import PullRequest, PullRequestState
from git_worktree_cli.services.providers.base import HttpProviderClient
from git_worktree_cli.services.providers.bitbucket_cloud import BearerAuth

logger = get_logger(__name__)

# https://host[/context]/scm/PROJ/repo(.git)
SCM_URL_PATTERN = re.compile(
    r"^(?P<scheme>https?)://(?:[^@/]+@)?(?P<host>[^/]+)(?P<context>/.*?)?"
    r"/scm/(?P<project>[^/]+)/(?P<slug>[^/]+?)(?:\.git)?/?$"
)
# https://host[/context]/projects/PROJ/repos/repo[/browse...]
BROWSE_URL_PATTERN = re.compile(
    r"^(?P<scheme>https?)://(?:[^@/]+@)?(?P<host>[^/]+)(?P<context>/.*?)?"
    r"/projects/(?P<project>[^/]+)/repos/(?P<slug>[^/]+?)(?:\.git)?(?:/.*)?$"
)
# ssh://git@host[:port]/PROJ/repo.git
SSH_URL_PATTERN = re.compile(
    r"^ssh://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/(?P<project>[^/]+)/(?P<slug>[^/]+?)(?:\.git)?/?$"
)
# git@host:PROJ/repo.git
SCP_URL_PATTERN = re.compile(
    r"^(?:[^@/]+@)?(?P<host>[^:/]+):(?P<project>[^/]+)/(?P<slug>[^/]+?)(?:\.git)?/?$"
)

STATE_MAP = {
    "OPEN": PullRequestState.OPEN,
    "MERGED": PullRequestState.MERGED,
    "DECLINED": PullRequestState.DECLINED,
}


class BitbucketDataCenterClient(HttpProviderClient):
    """Pull requests from a self-hosted Bitbucket through the 1.0 REST API.

    TOKEN credentials are HTTP access tokens sent as bearer tokens; BASIC
    credentials are username + password.
    """

    kind = ProviderKind.BITBUCKET_DATA_CENTER
    log_prefix = "[Bitbucket DC]"

    @classmethod
    def parse_remote_url(cls, url: str) -> Optional[RepoIdentity]:
        """Identity and API base URL from a Data Center clone or browse URL.

        SSH remotes do not reveal the web URL, so https://<host> is assumed;
        set bitbucketDataCenterUrl in the config when that is wrong.
        """
        url = url.strip()
        for pattern in (SCM_URL_PATTERN, BROWSE_URL_PATTERN):
            match = pattern.match(url)
            if match:
                base_url = f"{match.group('scheme')}://{match.group('host')}{match.group('context') or ''}"
                return RepoIdentity(cls.kind, match.group("project"), match.group("slug"), base_url)

        for pattern in (SSH_URL_PATTERN, SCP_URL_PATTERN):
            match = pattern.match(url)
            if match:
                return RepoIdentity(cls.kind, match.group("project"), match.group("slug"),
                                    f"https://{match.group('host')}")
        return None

    def _auth(self, credential: Credential) -> AuthBase:
        if credential.scheme == AuthScheme.BASIC:
            if not credential.username:
                raise AuthError(self.kind.value, "basic credential has no username")
            return HTTPBasicAuth(credential.username, credential.secret)
        return BearerAuth(credential.secret)

    @staticmethod
    def _base_url(repo: RepoIdentity, credential: Credential) -> str:
        base_url = repo.base_url or credential.identifier
        if not base_url:
            raise ProviderError(
                ProviderKind.BITBUCKET_DATA_CENTER.value,
                "no server URL known; set bitbucketDataCenterUrl in the config",
            )
        return base_url.rstrip("/")

    def fetch_pull_requests(self, repo: RepoIdentity, credential: Credential) -> List[PullRequest]:
        """Fetch pull requests in every state, paging with start/nextPageStart."""
        auth = self._auth(credential)
        base_url = self._base_url(repo, credential)
        url = f"{base_url}/rest/api/1.0/projects/{repo.owner}/repos/{repo.name}/pull-requests"

        pulls: List[PullRequest] = []
        start = 0
        while True:
            params = {"state": "ALL", "limit": self.per_page, "start": start}
            data = self._get_json(url, repository=repo.full_name, params=params, auth=auth)
            values = data.get("values", [])
            if not isinstance(values, list):
                raise ProviderError(self.kind.value, "pull request page has no 'values' list")
            pulls.extend(self._to_pull_request(item) for item in values)

            if data.get("isLastPage", True):
                break
            next_start = data.get("nextPageStart")
            if next_start is None or next_start <= start:
                raise ProviderError(self.kind.value, "pagination did not advance")
            start = next_start

        logger.debug(f"{self.log_prefix} Fetched {len(pulls)} pull requests for {repo.full_name}")
        return pulls

    def _to_pull_request(self, item: Dict[str, Any]) -> PullRequest:
        """Normalize one entry of the pull-requests `values` array."""
        try:
            state = STATE_MAP[item["state"]]
            links = (item.get("links") or {}).get("self") or []
            author = (item.get("author") or {}).get("user") or {}
            return PullRequest(
                id=item["id"],
                source_branch=item["fromRef"]["displayId"],
                target_branch=item["toRef"]["displayId"],
                title=item.get("title") or "",
                state=state,
                url=links[0]["href"] if links else "",
                provider=self.kind,
                is_draft=bool(item.get("draft", False)),
                author=author.get("displayName") or author.get("name"),
            )
        except (KeyError, TypeError, IndexError) as e:
            raise ProviderError(self.kind.value, f"unexpected pull request payload: missing {e}") from e

    def test_auth(self, credential: Credential) -> AuthIdentity:
        """Check the credential; the server names the user in the X-AUSERNAME header."""
        if not credential.identifier:
            raise AuthError(self.kind.value, "credential has no server URL")
        url = f"{credential.identifier.rstrip('/')}/rest/api/1.0/users"
        response = self._request("GET", url, params={"limit": 1}, auth=self._auth(credential))

        username = response.headers.get("X-AUSERNAME")
        if not username:
            # Anonymous access is allowed on some servers; that is not a login
            raise AuthError(self.kind.value, "server did not recognise the credential")
        return AuthIdentity(username=username)
