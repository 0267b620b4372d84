"""Common interface and HTTP plumbing for pull request providers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from git_worktree_cli.constants import DEFAULT_PER_PAGE, DEFAULT_REQUEST_TIMEOUT
from git_worktree_cli.exceptions import AuthError, NotFound, ProviderError, TransientError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.credential import AuthIdentity, Credential
from git_worktree_cli.models.provider import ProviderKind, RepoIdentity
from git_worktree_cli.models.pull_request import PullRequest

logger = get_logger(__name__)


class ProviderClient(ABC):
    """A pull request hosting backend.

    Clients hold no credential state of their own: the credential is passed
    to every call and never stored.
    """

    kind: ProviderKind
    log_prefix: str = ""

    def __init__(self, timeout: float = DEFAULT_REQUEST_TIMEOUT, per_page: int = DEFAULT_PER_PAGE):
        """Initialize the client.

        Args:
            timeout: Seconds allowed for each network request
            per_page: Page size requested from paginated endpoints
        """
        self.timeout = timeout
        self.per_page = per_page

    @abstractmethod
    def fetch_pull_requests(self, repo: RepoIdentity, credential: Credential) -> List[PullRequest]:
        """Fetch every pull request of a repository, following pagination to the end.

        Raises:
            AuthError: Credentials rejected (401/403)
            NotFound: Repository unknown to the provider
            TransientError: Timeout, connection failure or 5xx response
            ProviderError: Any other unexpected response
        """

    @abstractmethod
    def test_auth(self, credential: Credential) -> AuthIdentity:
        """Verify a credential and report who it authenticates as.

        Raises:
            AuthError: Credentials rejected
        """

    @classmethod
    @abstractmethod
    def parse_remote_url(cls, url: str) -> Optional[RepoIdentity]:
        """Repository identity from a git remote URL, or None if the URL is not for this provider."""

    def close(self) -> None:
        """Release network resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


def error_for_status(provider: ProviderKind, status: int, repository: Optional[str] = None,
                     detail: str = "") -> ProviderError:
    """Map an HTTP status code to the matching ProviderError subclass."""
    if status in (401, 403):
        return AuthError(provider.value, detail or f"HTTP {status}")
    if status == 404:
        if repository:
            return NotFound(provider.value, repository)
        return ProviderError(provider.value, detail or "HTTP 404")
    if status >= 500:
        return TransientError(provider.value, f"HTTP {status} {detail}".strip())
    return ProviderError(provider.value, f"unexpected response HTTP {status} {detail}".strip())


class HttpProviderClient(ProviderClient):
    """Base for providers spoken to directly over their REST API with requests."""

    def __init__(self, timeout: float = DEFAULT_REQUEST_TIMEOUT, per_page: int = DEFAULT_PER_PAGE,
                 session: Optional[requests.Session] = None):
        super().__init__(timeout=timeout, per_page=per_page)
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, url: str, repository: Optional[str] = None,
                 **kwargs: Any) -> requests.Response:
        """Send a request with the configured timeout and map failures to ProviderError.

        Args:
            method: HTTP method
            url: Absolute URL
            repository: Repository name used in NotFound errors
            **kwargs: Passed through to requests (params, auth, headers, data)

        Returns:
            The successful response
        """
        logger.debug(f"{self.log_prefix} {method} {url} params={kwargs.get('params')}")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise TransientError(self.kind.value, f"request timed out after {self.timeout}s") from e
        except requests.ConnectionError as e:
            raise TransientError(self.kind.value, f"connection failed: {e}") from e
        except requests.RequestException as e:
            raise ProviderError(self.kind.value, str(e)) from e

        if not response.ok:
            logger.debug(f"{self.log_prefix} HTTP {response.status_code} from {url}")
            raise error_for_status(self.kind, response.status_code, repository, _error_detail(response))
        return response

    def _get_json(self, url: str, repository: Optional[str] = None, **kwargs: Any) -> Dict[str, Any]:
        response = self._request("GET", url, repository=repository, **kwargs)
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(self.kind.value, f"response from {url} is not JSON") from e
        if not isinstance(data, dict):
            raise ProviderError(self.kind.value, f"unexpected response body from {url}")
        return data


def _error_detail(response: requests.Response) -> str:
    """Short error text from a response body, if the provider sent one."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    # Bitbucket Cloud: {"error": {"message": ...}}; OAuth: {"error": "...", "error_description": ...};
    # Data Center: {"errors": [{"message": ...}]}
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        description = body.get("error_description")
        return f"{error}: {description}" if description else error
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        return str(errors[0].get("message", ""))
    return ""
