"""Tests for the GitHub review-request component."""

import pytest

from rehook.components.review_request import extract_reviewers
from rehook.dispatch.dispatcher import DeliveryState
from rehook.errors import ConfigurationError
from rehook.github.models import PullRequestRef
from rehook.models import Hook

COMPONENT = "github-review-request"
PR = PullRequestRef(owner="octo", repo="widgets", number=7)


@pytest.fixture
async def hook(hooks):
    await hooks.create(Hook(id="h"))
    await hooks.attach_component("h", COMPONENT, {"token": "gh-token"})
    return await hooks.get("h")


class TestExtractReviewers:
    def test_collects_across_commits_without_repeats(self, commit):
        commits = [
            commit("1", "Add widget\n\nR=alice"),
            commit("2", "Fix widget\n\nR=bob\nR=alice"),
        ]
        assert extract_reviewers(commits) == ["alice", "bob"]

    def test_ignores_empty_tokens(self, commit):
        assert extract_reviewers([commit("1", "R= nobody")]) == []

    def test_token_stops_at_non_alnum(self, commit):
        assert extract_reviewers([commit("1", "R=carol, R=dave.")]) == ["carol", "dave"]


class TestReviewRequest:
    async def test_requests_named_reviewers_once(
        self, hook, dispatcher, github, commit, pr_delivery
    ):
        github.commits = [
            commit("1", "Add widget\n\nR=alice"),
            commit("2", "Fix widget\n\nR=bob\nR=alice"),
        ]
        outcome = await dispatcher.dispatch(pr_delivery("h", "d-1"))

        assert outcome.committed
        assert github.named("request_reviewers") == [
            ("request_reviewers", PR, ["alice", "bob"]),
        ]
        assert outcome.results[0].detail == "requested alice, bob"

    async def test_no_reviewers_no_request(self, hook, dispatcher, github, commit, pr_delivery):
        github.commits = [commit("1", "No reviewers here")]
        outcome = await dispatcher.dispatch(pr_delivery("h", "d-1"))
        assert outcome.committed
        assert github.count("request_reviewers") == 0

    async def test_replay_is_deduplicated(self, hook, dispatcher, github, commit, pr_delivery):
        github.commits = [commit("1", "R=alice")]
        await dispatcher.dispatch(pr_delivery("h", "d-1"))
        outcome = await dispatcher.dispatch(pr_delivery("h", "d-1"))

        assert outcome.results[0].duplicate
        assert github.count("request_reviewers") == 1
        assert github.count("list_commits") == 1

    async def test_external_failure_aborts(self, hook, dispatcher, github, commit, pr_delivery):
        github.commits = [commit("1", "R=alice")]
        github.fail["request_reviewers"] = 422
        outcome = await dispatcher.dispatch(pr_delivery("h", "d-1"))
        assert outcome.state is DeliveryState.ABORTED

        del github.fail["request_reviewers"]
        outcome = await dispatcher.dispatch(pr_delivery("h", "d-1"))
        assert outcome.committed
        assert not outcome.results[0].duplicate

    async def test_missing_token_at_processing_time(self, hooks, dispatcher, store, pr_delivery):
        await hooks.create(Hook(id="h"))
        await hooks.attach_component("h", COMPONENT, {"token": "t"})
        # Simulate a binding whose token was lost
        async with store.update() as tx:
            hook = await hooks.get_in(tx, "h")
            ns = await hooks.binding(tx, hook, COMPONENT)
            await ns.delete("h-token")

        outcome = await dispatcher.dispatch(pr_delivery("h", "d-1"))
        assert outcome.state is DeliveryState.ABORTED
        assert isinstance(outcome.error, ConfigurationError)
