"""Tests for GitHub signature validation and replay protection."""

import hashlib
import hmac

import pytest

from rehook.components.validator import validate_github_signature
from rehook.dispatch.dispatcher import DeliveryState
from rehook.errors import DuplicateDeliveryError, PayloadError
from rehook.models import Delivery, Hook

SECRET = "gh-secret"
BODY = b'{"zen": "Design for failure."}'


def sign256(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def signed_delivery(ident: str, signature: str | None = None) -> Delivery:
    headers = {
        "X-GitHub-Delivery": ident,
        "X-Hub-Signature-256": sign256(BODY) if signature is None else signature,
    }
    return Delivery(hook_id="h", headers=headers, body=BODY)


@pytest.fixture
async def hook(hooks):
    await hooks.create(Hook(id="h"))
    await hooks.attach_component("h", "github-validator", {"secret": SECRET})
    return await hooks.get("h")


class TestGitHubSignature:
    def test_valid_sha256(self):
        assert validate_github_signature(BODY, sign256(BODY), SECRET) is True

    def test_valid_legacy_sha1(self):
        sig = "sha1=" + hmac.new(SECRET.encode(), BODY, hashlib.sha1).hexdigest()
        assert validate_github_signature(BODY, sig, SECRET) is True

    def test_invalid_signature(self):
        assert validate_github_signature(BODY, "sha256=bad", SECRET) is False

    def test_unknown_algorithm(self):
        assert validate_github_signature(BODY, "md5=abc", SECRET) is False

    def test_missing_signature(self):
        assert validate_github_signature(BODY, "", SECRET) is False

    def test_no_secret_configured_rejects(self):
        assert validate_github_signature(BODY, sign256(BODY, ""), "") is False


class TestGitHubValidator:
    async def test_valid_delivery(self, hook, dispatcher):
        outcome = await dispatcher.dispatch(signed_delivery("d-1"))
        assert outcome.committed
        assert outcome.results[0].detail == "signature valid"

    async def test_bad_signature_aborts(self, hook, dispatcher):
        outcome = await dispatcher.dispatch(signed_delivery("d-1", signature="sha256=00"))
        assert outcome.state is DeliveryState.ABORTED
        assert isinstance(outcome.error, PayloadError)

    async def test_replay_is_rejected(self, hook, dispatcher):
        assert (await dispatcher.dispatch(signed_delivery("d-1"))).committed
        outcome = await dispatcher.dispatch(signed_delivery("d-1"))
        assert outcome.state is DeliveryState.ABORTED
        assert isinstance(outcome.error, DuplicateDeliveryError)
        assert outcome.error.delivery_id == "d-1"

    async def test_replay_stops_later_components(
        self, hooks, hook, dispatcher, github, commit, pr_delivery
    ):
        await hooks.attach_component("h", "github-review-request", {"token": "t"})
        github.commits = [commit("1", "R=alice")]
        body = pr_delivery("h").body
        headers = {"X-GitHub-Delivery": "d-1", "X-Hub-Signature-256": sign256(body)}

        first = await dispatcher.dispatch(Delivery(hook_id="h", headers=headers, body=body))
        second = await dispatcher.dispatch(Delivery(hook_id="h", headers=headers, body=body))

        assert first.committed
        assert second.state is DeliveryState.ABORTED
        assert github.count("list_commits") == 1
