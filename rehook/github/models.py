"""Pull request event parsing and GitHub API records."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from rehook.errors import ExternalAPIError, PayloadError


@dataclass(frozen=True)
class PullRequestRef:
    owner: str
    repo: str
    number: int

    @property
    def pull_id(self) -> str:
        """Stable key for per-pull-request component state."""
        return f"{self.owner}-{self.repo}-{self.number}"


@dataclass(frozen=True)
class Commit:
    sha: str
    message: str
    author_name: str
    author_email: str

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Commit:
        try:
            commit = data["commit"]
            author = commit.get("author") or {}
            return cls(
                sha=data["sha"],
                message=commit.get("message") or "",
                author_name=author.get("name") or "",
                author_email=author.get("email") or "",
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ExternalAPIError(f"unexpected commit record: {e}") from e


def parse_pull_request_event(body: bytes) -> PullRequestRef:
    """Extract the pull request a ``pull_request`` event refers to."""
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise PayloadError(f"invalid JSON payload: {e}") from e
    if not isinstance(payload, dict):
        raise PayloadError("not a pull request")

    pr = payload.get("pull_request")
    if not isinstance(pr, dict):
        raise PayloadError("not a pull request")

    try:
        repo = pr["base"]["repo"]
        owner = repo["owner"]["login"]
        name = repo["name"]
        number = payload.get("number", pr.get("number"))
        return PullRequestRef(owner=str(owner), repo=str(name), number=int(number))
    except (KeyError, TypeError, ValueError) as e:
        raise PayloadError(f"incomplete pull request event: {e}") from e
