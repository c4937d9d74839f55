"""Hook records and component bindings on top of the bucket store.

Layout::

    hooks/<hookID>                      -> JSON hook record
    components/<hookID>/<type>/...      -> binding namespace of one component
    stats/<hookID>-<state>              -> delivery counters
"""

from __future__ import annotations

import re

from rehook.components.registry import ComponentRegistry
from rehook.errors import ConfigurationError, HookNotFoundError, StorageError
from rehook.models import Hook, new_hook_id
from rehook.storage.engine import Bucket, Store, Transaction
from rehook.storage.namespace import Namespace
from rehook.utils.logging import get_logger

log = get_logger(__name__)

BUCKET_HOOKS = "hooks"
BUCKET_COMPONENTS = "components"
BUCKET_STATS = "stats"

_HOOK_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


async def init_buckets(tx: Transaction) -> None:
    for name in (BUCKET_HOOKS, BUCKET_STATS, BUCKET_COMPONENTS):
        await tx.create_bucket_if_not_exists(name)


async def _top(tx: Transaction, name: str) -> Bucket:
    bucket = await tx.bucket(name)
    if bucket is None:
        raise StorageError(f"bucket {name!r} missing; store not initialized")
    return bucket


class HookStore:
    def __init__(self, store: Store, registry: ComponentRegistry) -> None:
        self._store = store
        self._registry = registry

    async def init(self) -> None:
        async with self._store.update() as tx:
            await init_buckets(tx)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def get(self, hook_id: str) -> Hook:
        async with self._store.view() as tx:
            return await self.get_in(tx, hook_id)

    async def get_in(self, tx: Transaction, hook_id: str) -> Hook:
        hooks = await _top(tx, BUCKET_HOOKS)
        raw = await hooks.get(hook_id) if hook_id else None
        if raw is None:
            raise HookNotFoundError(hook_id)
        return Hook.from_json(raw)

    async def list_hooks(self) -> list[Hook]:
        async with self._store.view() as tx:
            hooks = await _top(tx, BUCKET_HOOKS)
            return [Hook.from_json(raw) for _, raw in await hooks.items()]

    async def create(self, hook: Hook) -> Hook:
        """Persist a new hook, assigning an id when it has none."""
        if hook.components:
            raise ConfigurationError("components are attached with attach_component")
        hook_id = hook.id or new_hook_id()
        if not _HOOK_ID_RE.match(hook_id):
            raise ConfigurationError(f"invalid hook id: {hook_id!r}")
        created = Hook(id=hook_id, name=hook.name)

        async with self._store.update() as tx:
            hooks = await _top(tx, BUCKET_HOOKS)
            if await hooks.get(hook_id) is not None:
                raise ConfigurationError(f"hook {hook_id} already exists")
            await hooks.put(hook_id, created.to_json())

        log.info("hook_created", hook_id=hook_id, name=created.name)
        return created

    async def update(self, hook: Hook) -> Hook:
        """Update a hook's mutable attributes. The component list is left as is."""
        async with self._store.update() as tx:
            existing = await self.get_in(tx, hook.id)
            existing.name = hook.name
            await self._put(tx, existing)

        log.info("hook_updated", hook_id=existing.id, name=existing.name)
        return existing

    async def _put(self, tx: Transaction, hook: Hook) -> None:
        hooks = await _top(tx, BUCKET_HOOKS)
        await hooks.put(hook.id, hook.to_json())

    # ------------------------------------------------------------------
    # Component bindings
    # ------------------------------------------------------------------

    async def attach_component(
        self, hook_id: str, type_name: str, config: dict[str, str]
    ) -> Hook:
        """Attach a component type to a hook and initialize its binding.

        Runs in one transaction: if ``init`` fails nothing is persisted.
        """
        prototype = self._registry.lookup(type_name)

        async with self._store.update() as tx:
            hook = await self.get_in(tx, hook_id)
            if type_name in hook.components:
                raise ConfigurationError(f"{type_name} is already attached to hook {hook_id}")

            components = await _top(tx, BUCKET_COMPONENTS)
            per_hook = await components.create_bucket_if_not_exists(hook_id)
            binding = await per_hook.create_bucket_if_not_exists(type_name)
            await prototype.init(hook, dict(config), Namespace(binding))

            hook.components.append(type_name)
            await self._put(tx, hook)

        log.info("component_attached", hook_id=hook_id, component=type_name)
        return hook

    async def update_component(
        self, hook_id: str, type_name: str, config: dict[str, str]
    ) -> None:
        """Re-run ``init`` for an attached component with new configuration."""
        prototype = self._registry.lookup(type_name)

        async with self._store.update() as tx:
            hook = await self.get_in(tx, hook_id)
            ns = await self.binding(tx, hook, type_name)
            await prototype.init(hook, dict(config), ns)

        log.info("component_updated", hook_id=hook_id, component=type_name)

    async def component_params(self, hook_id: str, type_name: str) -> dict[str, str]:
        prototype = self._registry.lookup(type_name)
        async with self._store.view() as tx:
            hook = await self.get_in(tx, hook_id)
            ns = await self.binding(tx, hook, type_name)
            return await prototype.params(hook, ns)

    async def list_components(self, hook_id: str) -> list[str]:
        hook = await self.get(hook_id)
        return list(hook.components)

    async def binding(self, tx: Transaction, hook: Hook, type_name: str) -> Namespace:
        """Namespace of one attached component inside an open transaction."""
        if type_name not in hook.components:
            raise ConfigurationError(f"{type_name} is not attached to hook {hook.id}")
        components = await _top(tx, BUCKET_COMPONENTS)
        per_hook = await components.bucket(hook.id)
        binding = await per_hook.bucket(type_name) if per_hook is not None else None
        if binding is None:
            raise StorageError(f"binding {hook.id}/{type_name} missing")
        return Namespace(binding)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    async def count(self, hook_id: str, state: str) -> int:
        """Increment a per-hook delivery counter and return the new value."""
        async with self._store.update() as tx:
            stats = await _top(tx, BUCKET_STATS)
            key = f"{hook_id}-{state}"
            raw = await stats.get(key)
            value = int(raw) + 1 if raw else 1
            await stats.put(key, str(value))
        return value

    async def stats(self, hook_id: str) -> dict[str, int]:
        prefix = f"{hook_id}-"
        async with self._store.view() as tx:
            stats = await _top(tx, BUCKET_STATS)
            counters: dict[str, int] = {}
            for key, value in await stats.items(prefix):
                state = key.decode()[len(prefix):]
                # "a-" also prefixes the counters of hook "a-b"
                if "-" not in state:
                    counters[state] = int(value)
            return counters
