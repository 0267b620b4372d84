"""Provider and repository identity models."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ProviderKind(Enum):
    """Pull request hosting backends."""
    GITHUB = "github"
    BITBUCKET_CLOUD = "bitbucket-cloud"
    BITBUCKET_DATA_CENTER = "bitbucket-data-center"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    ProviderKind.GITHUB: "GitHub",
    ProviderKind.BITBUCKET_CLOUD: "Bitbucket Cloud",
    ProviderKind.BITBUCKET_DATA_CENTER: "Bitbucket Data Center",
}


@dataclass(frozen=True)
class RepoIdentity:
    """Where a repository lives at its provider.

    `owner` is the GitHub owner, the Bitbucket Cloud workspace or the
    Bitbucket Data Center project key. `base_url` is only set for
    self-hosted Data Center instances.
    """
    provider: ProviderKind
    owner: str
    name: str
    base_url: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"
