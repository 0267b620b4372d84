"""Bitbucket Cloud API integration"""

import re
from typing import Any, Dict, List, Optional

from requests.auth import AuthBase, HTTPBasicAuth

from git_worktree_cli.constants import BITBUCKET_API_BASE, BITBUCKET_OAUTH_TOKEN_URL
from git_worktree_cli.exceptions import AuthError, ProviderError, TransientError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.credential import AuthIdentity, AuthScheme, Credential
from git_worktree_cli.models.provider import ProviderKind, RepoIdentity
from git_worktree_cli.models.pull_request import PullRequest, PullRequestState
from git_worktree_cli.services.providers.base import HttpProviderClient

logger = get_logger(__name__)

# https://bitbucket.org/workspace/repo(.git), git@bitbucket.org:workspace/repo.git
BITBUCKET_CLOUD_REMOTE_PATTERN = re.compile(
    r"bitbucket\.org[:/](?P<workspace>[^/]+)/(?P<slug>[^/]+?)(?:\.git)?/?$"
)

# Every state the API knows; without an explicit filter only OPEN is returned
REQUESTED_STATES = ["OPEN", "MERGED", "DECLINED", "SUPERSEDED"]

STATE_MAP = {
    "OPEN": PullRequestState.OPEN,
    "MERGED": PullRequestState.MERGED,
    "DECLINED": PullRequestState.CLOSED,
    "SUPERSEDED": PullRequestState.CLOSED,
}


class BearerAuth(AuthBase):
    """Attach an OAuth access token to a request."""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, request):
        request.headers["Authorization"] = f"Bearer {self.token}"
        return request


class BitbucketCloudClient(HttpProviderClient):
    """Pull requests from bitbucket.org through the 2.0 REST API.

    Two credential shapes are accepted:
    - BASIC: Atlassian account email + API token (or app password)
    - OAUTH: OAuth consumer key (username) + secret, exchanged for an
      access token with the client-credentials grant
    """

    kind = ProviderKind.BITBUCKET_CLOUD
    log_prefix = "[Bitbucket Cloud]"
    api_base = BITBUCKET_API_BASE

    @classmethod
    def parse_remote_url(cls, url: str) -> Optional[RepoIdentity]:
        match = BITBUCKET_CLOUD_REMOTE_PATTERN.search(url.strip())
        if not match:
            return None
        return RepoIdentity(ProviderKind.BITBUCKET_CLOUD, match.group("workspace"), match.group("slug"))

    def _auth(self, credential: Credential) -> AuthBase:
        """Build the requests auth object for a credential."""
        if not credential.username:
            raise AuthError(self.kind.value, "credential has no email or consumer key")
        if credential.scheme == AuthScheme.OAUTH:
            return BearerAuth(self._exchange_oauth_token(credential))
        return HTTPBasicAuth(credential.username, credential.secret)

    def _exchange_oauth_token(self, credential: Credential) -> str:
        """Trade an OAuth consumer key and secret for an access token."""
        logger.debug(f"{self.log_prefix} Requesting OAuth access token")
        try:
            response = self._request(
                "POST",
                BITBUCKET_OAUTH_TOKEN_URL,
                data={"grant_type": "client_credentials"},
                auth=HTTPBasicAuth(credential.username, credential.secret),
            )
        except (TransientError, AuthError):
            raise
        except ProviderError as e:
            # The token endpoint answers bad consumer credentials with HTTP 400 invalid_client
            raise AuthError(self.kind.value, f"OAuth token request rejected: {e.message}") from e
        try:
            token = response.json()["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError(self.kind.value, "OAuth token response has no access_token") from e
        return token

    def fetch_pull_requests(self, repo: RepoIdentity, credential: Credential) -> List[PullRequest]:
        """Fetch pull requests in every state, following `next` links until the last page."""
        auth = self._auth(credential)
        url: Optional[str] = f"{self.api_base}/repositories/{repo.owner}/{repo.name}/pullrequests"
        params: Optional[Dict[str, Any]] = {"state": REQUESTED_STATES, "pagelen": min(self.per_page, 50)}

        pulls: List[PullRequest] = []
        page = 0
        while url:
            page += 1
            data = self._get_json(url, repository=repo.full_name, params=params, auth=auth)
            values = data.get("values", [])
            if not isinstance(values, list):
                raise ProviderError(self.kind.value, "pull request page has no 'values' list")
            pulls.extend(self._to_pull_request(item) for item in values)

            # `next` already carries the query string
            url = data.get("next")
            params = None

        logger.debug(f"{self.log_prefix} Fetched {len(pulls)} pull requests for {repo.full_name} in {page} page(s)")
        return pulls

    def _to_pull_request(self, item: Dict[str, Any]) -> PullRequest:
        """Normalize one entry of the pullrequests `values` array."""
        try:
            raw_state = item["state"]
            state = STATE_MAP[raw_state]
            return PullRequest(
                id=item["id"],
                source_branch=item["source"]["branch"]["name"],
                target_branch=item["destination"]["branch"]["name"],
                title=item.get("title") or "",
                state=state,
                url=((item.get("links") or {}).get("html") or {}).get("href") or "",
                provider=self.kind,
                is_draft=bool(item.get("draft", False)),
                author=(item.get("author") or {}).get("display_name"),
            )
        except (KeyError, TypeError) as e:
            raise ProviderError(self.kind.value, f"unexpected pull request payload: missing {e}") from e

    def test_auth(self, credential: Credential) -> AuthIdentity:
        """Check the credential against the current-user endpoint."""
        data = self._get_json(f"{self.api_base}/user", auth=self._auth(credential))
        username = data.get("username") or data.get("nickname") or data.get("account_id") or ""
        return AuthIdentity(username=username, display_name=data.get("display_name"))
