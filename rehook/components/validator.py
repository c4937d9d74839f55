"""GitHub webhook signature validation and replay protection."""

from __future__ import annotations

import hashlib
import hmac

from rehook.components import dedup
from rehook.components.base import OptionsComponent
from rehook.errors import DuplicateDeliveryError, PayloadError
from rehook.models import Delivery, Hook, ProcessResult
from rehook.storage.namespace import Namespace

DELIVERY_HEADER = "X-GitHub-Delivery"


# ---------------------------------------------------------------------------
# Signature validation
# ---------------------------------------------------------------------------

def validate_github_signature(body: bytes, signature: str, secret: str) -> bool:
    """Validate a GitHub ``sha256=`` or legacy ``sha1=`` HMAC signature.

    Returns False if no secret is configured (rejects unauthenticated requests).
    """
    if not secret or not signature:
        return False
    algorithm, _, digest = signature.partition("=")
    if algorithm == "sha256":
        expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    elif algorithm == "sha1":
        expected = hmac.new(secret.encode(), body, hashlib.sha1).hexdigest()
    else:
        return False
    return hmac.compare_digest(expected, digest)


# ---------------------------------------------------------------------------
# Component
# ---------------------------------------------------------------------------

class GitHubValidator(OptionsComponent):
    """Rejects deliveries with a bad signature or an already-seen identifier.

    Unlike the other GitHub components a replay is a hard failure here: it
    aborts the whole delivery, so components attached after the validator
    never see a replayed request.
    """

    type_name = "github-validator"
    options = ("secret",)
    required = ("secret",)
    namespaces = (dedup.DELIVERIES,)

    @property
    def name(self) -> str:
        return "Github Validator"

    @property
    def template(self) -> str:
        return "github-validator"

    async def process(self, hook: Hook, delivery: Delivery, ns: Namespace) -> ProcessResult:
        secret = await self.option(hook, ns, "secret")
        signature = delivery.header("X-Hub-Signature-256") or delivery.header("X-Hub-Signature")
        if not validate_github_signature(delivery.body, signature, secret):
            raise PayloadError("invalid signature")

        ident = dedup.delivery_id(delivery, DELIVERY_HEADER)
        if await dedup.seen(ns, ident):
            raise DuplicateDeliveryError(ident)
        await dedup.record(ns, ident)
        return self.result(detail="signature valid")
