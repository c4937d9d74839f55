"""Per-binding delivery deduplication.

A dedup record is written in the same transaction as the rest of a
component's state, so it only persists when the whole delivery commits. An
external call made before a later abort is therefore repeated on retry:
at-least-once towards the remote API, exactly-once in local bookkeeping.
"""

from __future__ import annotations

from rehook.errors import PayloadError
from rehook.models import Delivery
from rehook.storage.namespace import Namespace

DELIVERIES = "deliveries"


def delivery_id(delivery: Delivery, header: str) -> str:
    value = delivery.header(header).strip()
    if not value:
        raise PayloadError(f"missing delivery identifier ({header} header)")
    return value


async def seen(ns: Namespace, ident: str) -> bool:
    deliveries = await ns.child(DELIVERIES)
    return await deliveries.get(ident) is not None


async def record(ns: Namespace, ident: str) -> None:
    deliveries = await ns.child(DELIVERIES)
    await deliveries.put(ident, b"")
