"""Minimal GitHub REST client used by the GitHub components."""

from __future__ import annotations

from typing import Any, Callable, Protocol

import httpx

from rehook.config import GitHubConfig
from rehook.errors import ExternalAPIError
from rehook.github.models import Commit, PullRequestRef
from rehook.utils.logging import get_logger

log = get_logger(__name__)


class GitHubAPI(Protocol):
    """The subset of the GitHub API the components rely on."""

    async def __aenter__(self) -> GitHubAPI: ...

    async def __aexit__(self, *exc: Any) -> None: ...

    async def list_commits(self, pr: PullRequestRef) -> list[Commit]: ...

    async def create_status(
        self,
        pr: PullRequestRef,
        sha: str,
        state: str,
        description: str,
        context: str,
        target_url: str = "",
    ) -> None: ...

    async def create_comment(self, pr: PullRequestRef, body: str) -> int: ...

    async def edit_comment(self, pr: PullRequestRef, comment_id: int, body: str) -> None: ...

    async def delete_comment(self, pr: PullRequestRef, comment_id: int) -> None: ...

    async def request_reviewers(self, pr: PullRequestRef, reviewers: list[str]) -> None: ...


# Builds an API client authenticated with a binding's token
ClientFactory = Callable[[str], GitHubAPI]


class GitHubClient:
    """Token-authenticated GitHub client. One instance per processed delivery."""

    def __init__(
        self,
        token: str,
        config: GitHubConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or GitHubConfig()
        self._client = httpx.AsyncClient(
            base_url=self._config.api_url.rstrip("/"),
            timeout=self._config.timeout,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": self._config.user_agent,
            },
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            log.warning("github_request_failed", method=method, path=path, status=status)
            raise ExternalAPIError(f"{method} {path} returned {status}", status=status) from e
        except httpx.HTTPError as e:
            log.warning("github_request_error", method=method, path=path, error=str(e))
            raise ExternalAPIError(f"{method} {path} failed: {e}") from e

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    async def list_commits(self, pr: PullRequestRef) -> list[Commit]:
        """All commits of a pull request, oldest first."""
        per_page = self._config.per_page
        path = f"/repos/{pr.owner}/{pr.repo}/pulls/{pr.number}/commits"
        commits: list[Commit] = []
        page = 1
        while True:
            resp = await self._request("GET", path, params={"per_page": per_page, "page": page})
            batch = resp.json()
            if not isinstance(batch, list):
                raise ExternalAPIError(f"GET {path} returned {type(batch).__name__}, expected list")
            commits.extend(Commit.from_api(item) for item in batch)
            if len(batch) < per_page:
                return commits
            page += 1

    async def request_reviewers(self, pr: PullRequestRef, reviewers: list[str]) -> None:
        await self._request(
            "POST",
            f"/repos/{pr.owner}/{pr.repo}/pulls/{pr.number}/requested_reviewers",
            json={"reviewers": reviewers},
        )

    # ------------------------------------------------------------------
    # Statuses and comments
    # ------------------------------------------------------------------

    async def create_status(
        self,
        pr: PullRequestRef,
        sha: str,
        state: str,
        description: str,
        context: str,
        target_url: str = "",
    ) -> None:
        body: dict[str, Any] = {
            "state": state,
            "description": description,
            "context": context,
        }
        if target_url:
            body["target_url"] = target_url
        await self._request("POST", f"/repos/{pr.owner}/{pr.repo}/statuses/{sha}", json=body)

    async def create_comment(self, pr: PullRequestRef, body: str) -> int:
        resp = await self._request(
            "POST",
            f"/repos/{pr.owner}/{pr.repo}/issues/{pr.number}/comments",
            json={"body": body},
        )
        try:
            return int(resp.json()["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalAPIError(f"comment created without an id: {e}") from e

    async def edit_comment(self, pr: PullRequestRef, comment_id: int, body: str) -> None:
        await self._request(
            "PATCH",
            f"/repos/{pr.owner}/{pr.repo}/issues/comments/{comment_id}",
            json={"body": body},
        )

    async def delete_comment(self, pr: PullRequestRef, comment_id: int) -> None:
        await self._request(
            "DELETE", f"/repos/{pr.owner}/{pr.repo}/issues/comments/{comment_id}"
        )


def client_factory(config: GitHubConfig) -> ClientFactory:
    """Factory producing GitHubClient instances bound to one configuration."""

    def _build(token: str) -> GitHubAPI:
        return GitHubClient(token, config)

    return _build
