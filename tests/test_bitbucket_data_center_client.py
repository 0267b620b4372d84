"""Tests for the Bitbucket Data Center provider client"""
import json
from unittest.mock import Mock

import pytest
import requests
from requests.auth import HTTPBasicAuth

from git_worktree_cli.exceptions import AuthError, NotFound, ProviderError
from git_worktree_cli.models import AuthScheme, Credential, ProviderKind, PullRequestState, RepoIdentity
from git_worktree_cli.services.providers.bitbucket_cloud import BearerAuth
from git_worktree_cli.services.providers.bitbucket_data_center import BitbucketDataCenterClient

BASE_URL = "https://git.example.com"
REPO = RepoIdentity(ProviderKind.BITBUCKET_DATA_CENTER, "PROJ", "repo", BASE_URL)
CREDENTIAL = Credential(ProviderKind.BITBUCKET_DATA_CENTER, "http-token", identifier=BASE_URL)
PULLS_URL = f"{BASE_URL}/rest/api/1.0/projects/PROJ/repos/repo/pull-requests"


def make_response(status=200, body=None, headers=None):
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(body).encode() if body is not None else b""
    response.headers.update(headers or {})
    return response


def make_dc_pr(pr_id, source, state="OPEN"):
    return {
        "id": pr_id,
        "title": f"PR {pr_id}",
        "state": state,
        "fromRef": {"id": f"refs/heads/{source}", "displayId": source},
        "toRef": {"id": "refs/heads/main", "displayId": "main"},
        "links": {"self": [{"href": f"{BASE_URL}/projects/PROJ/repos/repo/pull-requests/{pr_id}"}]},
        "author": {"user": {"name": "jdoe", "displayName": "Jane Doe"}},
    }


@pytest.fixture
def session():
    session = Mock()
    session.headers = {}
    return session


class TestParseRemoteUrl:
    """Test Data Center remote URL parsing."""

    def test_scm_https_url(self):
        """Test an HTTPS clone URL."""
        identity = BitbucketDataCenterClient.parse_remote_url("https://git.example.com/scm/PROJ/repo.git")
        assert identity == REPO

    def test_scm_url_with_context_path_and_user(self):
        """Test that the context path and http scheme are kept."""
        identity = BitbucketDataCenterClient.parse_remote_url(
            "http://jdoe@git.example.com/bitbucket/scm/proj/my.repo.git"
        )
        assert identity.owner == "proj"
        assert identity.name == "my.repo"
        assert identity.base_url == "http://git.example.com/bitbucket"

    def test_browse_url(self):
        """Test a URL copied from the web UI."""
        identity = BitbucketDataCenterClient.parse_remote_url(
            "https://git.example.com/projects/PROJ/repos/repo/browse"
        )
        assert identity == REPO

    def test_ssh_url(self):
        """Test an SSH clone URL with a port."""
        identity = BitbucketDataCenterClient.parse_remote_url("ssh://git@git.example.com:7999/PROJ/repo.git")
        assert identity == REPO

    def test_unrecognised(self):
        """Test that a plain web URL is not claimed."""
        assert BitbucketDataCenterClient.parse_remote_url("https://git.example.com/about") is None


class TestFetchPullRequests:
    """Test start/limit pagination and normalization."""

    def test_pages_until_last(self, session):
        """Test that nextPageStart is followed until isLastPage."""
        session.request.side_effect = [
            make_response(body={"values": [make_dc_pr(1, "a")], "isLastPage": False, "nextPageStart": 25}),
            make_response(body={"values": [make_dc_pr(2, "b", state="MERGED")], "isLastPage": True}),
        ]

        pulls = BitbucketDataCenterClient(per_page=25, session=session).fetch_pull_requests(REPO, CREDENTIAL)

        assert [pr.id for pr in pulls] == [1, 2]
        first, second = session.request.call_args_list
        assert first.args == ("GET", PULLS_URL)
        assert first.kwargs["params"] == {"state": "ALL", "limit": 25, "start": 0}
        assert second.kwargs["params"]["start"] == 25
        assert isinstance(first.kwargs["auth"], BearerAuth)

    def test_normalization(self, session):
        """Test field mapping, including declined pull requests."""
        session.request.return_value = make_response(body={"values": [
            make_dc_pr(1, "feature/x"),
            make_dc_pr(2, "feature/y", state="DECLINED"),
        ], "isLastPage": True})

        pulls = BitbucketDataCenterClient(session=session).fetch_pull_requests(REPO, CREDENTIAL)

        assert pulls[0].source_branch == "feature/x"
        assert pulls[0].target_branch == "main"
        assert pulls[0].author == "Jane Doe"
        assert pulls[0].url == f"{BASE_URL}/projects/PROJ/repos/repo/pull-requests/1"
        assert pulls[1].state == PullRequestState.DECLINED

    def test_null_links(self, session):
        """Test that a pull request with "links": null gets an empty URL."""
        item = make_dc_pr(1, "feature/x")
        item["links"] = None
        session.request.return_value = make_response(body={"values": [item], "isLastPage": True})

        pulls = BitbucketDataCenterClient(session=session).fetch_pull_requests(REPO, CREDENTIAL)

        assert pulls[0].url == ""

    def test_pagination_must_advance(self, session):
        """Test that a server repeating the same start is an error, not a loop."""
        session.request.return_value = make_response(
            body={"values": [], "isLastPage": False, "nextPageStart": 0}
        )
        with pytest.raises(ProviderError):
            BitbucketDataCenterClient(session=session).fetch_pull_requests(REPO, CREDENTIAL)

    def test_base_url_from_credential(self, session):
        """Test that the credential's server URL is used when the identity has none."""
        session.request.return_value = make_response(body={"values": [], "isLastPage": True})
        repo = RepoIdentity(ProviderKind.BITBUCKET_DATA_CENTER, "PROJ", "repo")

        BitbucketDataCenterClient(session=session).fetch_pull_requests(repo, CREDENTIAL)
        assert session.request.call_args.args[1] == PULLS_URL

    def test_no_base_url(self, session):
        """Test that a missing server URL is reported."""
        repo = RepoIdentity(ProviderKind.BITBUCKET_DATA_CENTER, "PROJ", "repo")
        credential = Credential(ProviderKind.BITBUCKET_DATA_CENTER, "http-token")
        with pytest.raises(ProviderError):
            BitbucketDataCenterClient(session=session).fetch_pull_requests(repo, credential)

    def test_basic_credential(self, session):
        """Test username and password credentials."""
        session.request.return_value = make_response(body={"values": [], "isLastPage": True})
        credential = Credential(ProviderKind.BITBUCKET_DATA_CENTER, "pw", scheme=AuthScheme.BASIC, username="jdoe")

        BitbucketDataCenterClient(session=session).fetch_pull_requests(REPO, credential)
        assert isinstance(session.request.call_args.kwargs["auth"], HTTPBasicAuth)

    def test_missing_repository(self, session):
        """Test that a 404 names the repository."""
        session.request.return_value = make_response(404, {"errors": [{"message": "Repository does not exist"}]})
        with pytest.raises(NotFound) as exc_info:
            BitbucketDataCenterClient(session=session).fetch_pull_requests(REPO, CREDENTIAL)
        assert exc_info.value.repository == "PROJ/repo"


class TestDataCenterAuth:
    """Test credential verification."""

    def test_username_from_header(self, session):
        """Test that the X-AUSERNAME header identifies the user."""
        session.request.return_value = make_response(body={"values": []}, headers={"X-AUSERNAME": "jdoe"})

        identity = BitbucketDataCenterClient(session=session).test_auth(CREDENTIAL)

        assert identity.username == "jdoe"
        call = session.request.call_args
        assert call.args == ("GET", f"{BASE_URL}/rest/api/1.0/users")
        assert call.kwargs["params"] == {"limit": 1}

    def test_anonymous_response(self, session):
        """Test that a response without a user is not a login."""
        session.request.return_value = make_response(body={"values": []})
        with pytest.raises(AuthError):
            BitbucketDataCenterClient(session=session).test_auth(CREDENTIAL)

    def test_no_server_url(self, session):
        """Test that the credential must carry a server URL."""
        with pytest.raises(AuthError):
            BitbucketDataCenterClient(session=session).test_auth(
                Credential(ProviderKind.BITBUCKET_DATA_CENTER, "http-token")
            )
