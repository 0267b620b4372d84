"""Credential models."""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from git_worktree_cli.models.provider import ProviderKind


class AuthScheme(Enum):
    """How a credential is presented to the provider."""
    TOKEN = "token"  # Bearer / personal access token
    BASIC = "basic"  # username + password, app password or API token
    OAUTH = "oauth"  # OAuth consumer key + secret, exchanged for a bearer token


@dataclass(frozen=True)
class Credential:
    """Secret material for one provider.

    `identifier` is an optional auxiliary identifier such as a Bitbucket
    workspace or a self-hosted base URL.
    """

    provider: ProviderKind
    secret: str
    scheme: AuthScheme = AuthScheme.TOKEN
    username: Optional[str] = None
    identifier: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"Credential(provider={self.provider.value!r}, scheme={self.scheme.value!r}, "
            f"username={self.username!r}, identifier={self.identifier!r}, secret='***')"
        )

    def to_json(self) -> str:
        """Serialize into the single string stored in the secret store."""
        return json.dumps({
            "provider": self.provider.value,
            "scheme": self.scheme.value,
            "secret": self.secret,
            "username": self.username,
            "identifier": self.identifier,
        })

    @classmethod
    def from_json(cls, payload: str) -> "Credential":
        """Inverse of to_json. Raises ValueError on malformed payloads."""
        data = json.loads(payload)
        if not isinstance(data, dict) or not data.get("secret"):
            raise ValueError("credential payload has no secret")
        return cls(
            provider=ProviderKind(data["provider"]),
            secret=data["secret"],
            scheme=AuthScheme(data.get("scheme", AuthScheme.TOKEN.value)),
            username=data.get("username"),
            identifier=data.get("identifier"),
        )


@dataclass(frozen=True)
class AuthIdentity:
    """Who a credential authenticates as."""

    username: str
    display_name: Optional[str] = None

    def __str__(self) -> str:
        if self.display_name and self.display_name != self.username:
            return f"{self.display_name} ({self.username})"
        return self.username
