"""Delivery dispatch: hook lookup, ordered component execution, commit or abort."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import structlog

from rehook.components.registry import ComponentRegistry
from rehook.errors import HookNotFoundError, RehookError
from rehook.hooks.store import HookStore
from rehook.models import Delivery, ProcessResult
from rehook.storage.engine import Store
from rehook.utils.logging import get_logger

log = get_logger(__name__)


class DeliveryState(str, Enum):
    RECEIVED = "received"
    RESOLVED = "resolved"
    DISPATCHING = "dispatching"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass
class DispatchOutcome:
    hook_id: str
    state: DeliveryState = DeliveryState.RECEIVED
    results: list[ProcessResult] = field(default_factory=list)
    error: Exception | None = None
    failed_component: str = ""

    @property
    def committed(self) -> bool:
        return self.state is DeliveryState.COMMITTED

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "hook": self.hook_id,
            "state": self.state.value,
            "results": [r.to_dict() for r in self.results],
        }
        if self.error is not None:
            data["error"] = str(self.error)
            data["component"] = self.failed_component
        return data


class Dispatcher:
    """Runs a delivery through every component attached to its hook.

    All components of one delivery share a single write transaction and run
    sequentially in attachment order. The first failure rolls the
    transaction back, discarding the state written by components that had
    already succeeded, so a retried delivery starts from scratch.
    """

    def __init__(self, store: Store, hooks: HookStore, registry: ComponentRegistry) -> None:
        self._store = store
        self._hooks = hooks
        self._registry = registry

    async def dispatch(self, delivery: Delivery) -> DispatchOutcome:
        outcome = DispatchOutcome(hook_id=delivery.hook_id)
        with structlog.contextvars.bound_contextvars(hook_id=delivery.hook_id):
            try:
                hook = await self._hooks.get(delivery.hook_id)
            except HookNotFoundError as e:
                log.info("delivery_hook_not_found")
                return self._abort(outcome, e)
            except RehookError as e:
                log.warning("delivery_resolve_failed", error=str(e))
                return self._abort(outcome, e)
            outcome.state = DeliveryState.RESOLVED

            current = ""
            try:
                async with self._store.update() as tx:
                    outcome.state = DeliveryState.DISPATCHING
                    for type_name in hook.components:
                        current = type_name
                        prototype = self._registry.lookup(type_name)
                        ns = await self._hooks.binding(tx, hook, type_name)
                        result = await prototype.process(hook, delivery, ns)
                        outcome.results.append(result)
                        log.debug("component_processed", component=type_name, status=result.status)
            except RehookError as e:
                log.warning(
                    "delivery_aborted",
                    component=current,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                outcome.failed_component = current
                await self._count(hook.id, DeliveryState.ABORTED)
                return self._abort(outcome, e)
            except Exception as e:
                log.exception("delivery_failed", component=current)
                outcome.failed_component = current
                await self._count(hook.id, DeliveryState.ABORTED)
                return self._abort(outcome, e)

            outcome.state = DeliveryState.COMMITTED
            await self._count(hook.id, DeliveryState.COMMITTED)
            log.info(
                "delivery_committed",
                components=len(outcome.results),
                duplicates=sum(1 for r in outcome.results if r.duplicate),
            )
            return outcome

    async def _count(self, hook_id: str, state: DeliveryState) -> None:
        """Bump a stats counter. Counters never change a delivery's outcome."""
        try:
            await self._hooks.count(hook_id, state.value)
        except Exception as e:
            log.warning("stats_update_failed", state=state.value, error=str(e))

    def _abort(self, outcome: DispatchOutcome, error: Exception) -> DispatchOutcome:
        outcome.state = DeliveryState.ABORTED
        outcome.error = error
        # Nothing from the aborted transaction persisted
        outcome.results.clear()
        return outcome
