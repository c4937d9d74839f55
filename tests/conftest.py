"""Shared fixtures: a temporary store and an in-memory GitHub API."""

import json

import pytest

from rehook.components import build_registry
from rehook.dispatch.dispatcher import Dispatcher
from rehook.errors import ExternalAPIError
from rehook.github.models import Commit, PullRequestRef
from rehook.hooks.store import HookStore
from rehook.models import Delivery
from rehook.storage.engine import Store


class FakeGitHub:
    """Records every call; methods listed in ``fail`` raise ExternalAPIError."""

    def __init__(self) -> None:
        self.commits: list[Commit] = []
        self.calls: list[tuple] = []
        self.tokens: list[str] = []
        self.comments: dict[int, str] = {}
        self.fail: dict[str, int] = {}
        self._next_comment_id = 100

    def factory(self, token: str) -> "FakeGitHub":
        self.tokens.append(token)
        return self

    async def __aenter__(self) -> "FakeGitHub":
        return self

    async def __aexit__(self, *exc) -> None:
        return None

    def _call(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise ExternalAPIError(f"{name} failed", status=self.fail[name])

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    async def list_commits(self, pr: PullRequestRef) -> list[Commit]:
        self._call("list_commits", pr)
        return list(self.commits)

    async def create_status(self, pr, sha, state, description, context, target_url=""):
        self._call("create_status", pr, sha, state, description)

    async def create_comment(self, pr, body):
        self._call("create_comment", pr, body)
        comment_id = self._next_comment_id
        self._next_comment_id += 1
        self.comments[comment_id] = body
        return comment_id

    async def edit_comment(self, pr, comment_id, body):
        self._call("edit_comment", pr, comment_id, body)
        self.comments[comment_id] = body

    async def delete_comment(self, pr, comment_id):
        self._call("delete_comment", pr, comment_id)
        self.comments.pop(comment_id, None)

    async def request_reviewers(self, pr, reviewers):
        self._call("request_reviewers", pr, list(reviewers))


def signed(message: str, name: str = "Alice Example", email: str = "alice@example.com") -> str:
    return f"{message}\n\nSigned-off-by: {name} <{email}>"


def pr_event_body(owner: str = "octo", repo: str = "widgets", number: int = 7) -> bytes:
    return json.dumps({
        "action": "synchronize",
        "number": number,
        "pull_request": {
            "number": number,
            "base": {"repo": {"name": repo, "owner": {"login": owner}}},
        },
    }).encode()


@pytest.fixture
async def store(tmp_path):
    s = Store(tmp_path / "rehook.db")
    await s.start()
    yield s
    await s.stop()


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def registry(github):
    return build_registry(github.factory)


@pytest.fixture
async def hooks(store, registry):
    h = HookStore(store, registry)
    await h.init()
    return h


@pytest.fixture
def dispatcher(store, hooks, registry):
    return Dispatcher(store, hooks, registry)


@pytest.fixture
def commit():
    def _make(sha: str, message: str, name: str = "Alice Example", email: str = "alice@example.com") -> Commit:
        return Commit(sha=sha, message=message, author_name=name, author_email=email)
    return _make


@pytest.fixture
def pr_delivery():
    def _make(hook_id: str, delivery_id: str = "d-1", body: bytes | None = None) -> Delivery:
        return Delivery(
            hook_id=hook_id,
            headers={"X-GitHub-Delivery": delivery_id, "X-GitHub-Event": "pull_request"},
            body=pr_event_body() if body is None else body,
        )
    return _make


@pytest.fixture
def sign():
    return signed
