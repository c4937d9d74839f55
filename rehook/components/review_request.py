"""Requests reviewers named by ``R=<login>`` lines in commit messages."""

from __future__ import annotations

import re

from rehook.components import dedup
from rehook.components.base import OptionsComponent
from rehook.github.client import ClientFactory
from rehook.github.models import Commit, parse_pull_request_event
from rehook.models import Delivery, Hook, ProcessResult
from rehook.storage.namespace import Namespace
from rehook.utils.logging import get_logger

log = get_logger(__name__)

DELIVERY_HEADER = "X-GitHub-Delivery"

_REVIEWER_RE = re.compile(r"R=([A-Za-z0-9]*)")


def extract_reviewers(commits: list[Commit]) -> list[str]:
    """Reviewer logins across all commits, first-seen order, without repeats."""
    reviewers: list[str] = []
    for commit in commits:
        for login in _REVIEWER_RE.findall(commit.message):
            if login and login not in reviewers:
                reviewers.append(login)
    return reviewers


class GitHubReviewRequest(OptionsComponent):
    type_name = "github-review-request"
    options = ("token",)
    required = ("token",)
    namespaces = (dedup.DELIVERIES,)

    def __init__(self, api: ClientFactory) -> None:
        self._api = api

    @property
    def name(self) -> str:
        return "Github Review Request"

    @property
    def template(self) -> str:
        return "github-review-request"

    async def process(self, hook: Hook, delivery: Delivery, ns: Namespace) -> ProcessResult:
        ident = dedup.delivery_id(delivery, DELIVERY_HEADER)
        if await dedup.seen(ns, ident):
            log.info("delivery_duplicate", component=self.type_name, delivery_id=ident)
            return self.result("duplicate", f"delivery {ident} already processed")

        token = await self.option(hook, ns, "token")
        pr = parse_pull_request_event(delivery.body)

        async with self._api(token) as api:
            reviewers = extract_reviewers(await api.list_commits(pr))
            if reviewers:
                await api.request_reviewers(pr, reviewers)

        await dedup.record(ns, ident)
        log.info("reviewers_requested", pull=pr.pull_id, reviewers=reviewers)
        if not reviewers:
            return self.result(detail="no reviewers named")
        return self.result(detail=f"requested {', '.join(reviewers)}")
