"""Checks that every commit of a pull request is signed off by its author."""

from __future__ import annotations

import re
from email.utils import parseaddr

from rehook.components import dedup
from rehook.components.base import OptionsComponent
from rehook.errors import ExternalAPIError, StorageError
from rehook.github.client import ClientFactory, GitHubAPI
from rehook.github.models import Commit, PullRequestRef, parse_pull_request_event
from rehook.models import Delivery, Hook, ProcessResult
from rehook.storage.namespace import Namespace
from rehook.utils.logging import get_logger

log = get_logger(__name__)

DELIVERY_HEADER = "X-GitHub-Delivery"
SIGNED_OFF_COMMENTS = "signed-off-comments"

STATUS_CONTEXT = "signed-off-by.me"
STATUS_TARGET_URL = "http://signed-off-by.me/"

_SIGNED_OFF_RE = re.compile(r"Signed-off-by: (.* <.*>)")


def check_commit(commit: Commit) -> str | None:
    """Return why a commit fails the sign-off check, or None if it passes."""
    match = _SIGNED_OFF_RE.search(commit.message)
    if match is None:
        return f"{commit.author_name} has not signed-off {commit.short_sha}."

    name, address = parseaddr(match.group(1))
    if not address or "@" not in address:
        return f"{commit.author_name} has a malformed sign-off on {commit.short_sha}."
    if name != commit.author_name:
        return (
            f"Commit {commit.short_sha}: author name and signed-off-by name do not match."
        )
    if address != commit.author_email:
        return (
            f"Commit {commit.short_sha}: author email and signed-off-by address do not match."
        )
    return None


def failure_comment(failures: list[tuple[Commit, str]]) -> str:
    shas = [commit.sha for commit, _ in failures]
    if len(shas) > 1:
        summary = f"Commits {', '.join(shas[:-1])} and {shas[-1]} are not signed-off."
    else:
        summary = f"Commit {shas[0]} is not signed-off."

    lines = [summary, "", "Please fix these issues:", ""]
    for i, (_, reason) in enumerate(failures, start=1):
        lines.append(f">\t{i}. {reason}")
    lines.extend([
        "",
        "",
        "If you'd like more information on how to sign your commits please visit "
        "[signed-off-by.me](https://signed-off-by.me)",
    ])
    return "\n".join(lines)


class GitHubSignedOffChecker(OptionsComponent):
    """Posts a commit status and a single consolidated comment per pull request.

    Replayed deliveries are reported as duplicates without touching GitHub.
    The posted failure comment is tracked per pull request so later
    deliveries edit it in place, and it is deleted once every commit passes.
    """

    type_name = "github-signed-off-checker"
    options = ("token",)
    required = ("token",)
    namespaces = (dedup.DELIVERIES, SIGNED_OFF_COMMENTS)

    def __init__(self, api: ClientFactory) -> None:
        self._api = api

    @property
    def name(self) -> str:
        return "Github Signed Off Checker"

    @property
    def template(self) -> str:
        return "github-signed-off-checker"

    async def process(self, hook: Hook, delivery: Delivery, ns: Namespace) -> ProcessResult:
        ident = dedup.delivery_id(delivery, DELIVERY_HEADER)
        if await dedup.seen(ns, ident):
            log.info("delivery_duplicate", component=self.type_name, delivery_id=ident)
            return self.result("duplicate", f"delivery {ident} already processed")

        token = await self.option(hook, ns, "token")
        pr = parse_pull_request_event(delivery.body)
        comments = await ns.child(SIGNED_OFF_COMMENTS)

        async with self._api(token) as api:
            commits = await api.list_commits(pr)
            if not commits:
                raise ExternalAPIError(f"pull request {pr.pull_id} has no commits")

            failures: list[tuple[Commit, str]] = []
            for commit in commits:
                reason = check_commit(commit)
                if reason is not None:
                    failures.append((commit, reason))

            last = commits[-1].sha
            if failures:
                await api.create_status(
                    pr, last, "error",
                    "All commits should be signed-off-by their respective authors",
                    STATUS_CONTEXT, STATUS_TARGET_URL,
                )
                await self._leave_comment(api, pr, failure_comment(failures), comments)
            else:
                await api.create_status(
                    pr, last, "success", "All commits are signed-off.",
                    STATUS_CONTEXT, STATUS_TARGET_URL,
                )
                await self._remove_comment(api, pr, comments)

        await dedup.record(ns, ident)
        log.info(
            "signed_off_checked",
            pull=pr.pull_id,
            commits=len(commits),
            failing=len(failures),
        )
        return self.result(
            detail=f"{len(commits)} commit(s) checked, {len(failures)} not signed-off"
        )

    async def _leave_comment(
        self, api: GitHubAPI, pr: PullRequestRef, body: str, comments: Namespace
    ) -> None:
        tracked = await _tracked_comment(comments, pr)
        if tracked is not None:
            try:
                await api.edit_comment(pr, tracked, body)
                return
            except ExternalAPIError as e:
                # Stale comment (deleted on GitHub); post a fresh one
                log.warning("comment_edit_failed", pull=pr.pull_id, comment_id=tracked, error=str(e))
                await comments.delete(pr.pull_id)

        comment_id = await api.create_comment(pr, body)
        await comments.put(pr.pull_id, str(comment_id))

    async def _remove_comment(
        self, api: GitHubAPI, pr: PullRequestRef, comments: Namespace
    ) -> None:
        tracked = await _tracked_comment(comments, pr)
        if tracked is None:
            return
        try:
            await api.delete_comment(pr, tracked)
        except ExternalAPIError as e:
            if e.status != 404:
                raise
            log.info("comment_already_gone", pull=pr.pull_id, comment_id=tracked)
        await comments.delete(pr.pull_id)


async def _tracked_comment(comments: Namespace, pr: PullRequestRef) -> int | None:
    raw = await comments.get_str(pr.pull_id)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise StorageError(f"corrupt comment id for {pr.pull_id}: {raw!r}") from None
