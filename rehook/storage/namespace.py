"""Capability-scoped storage handles handed to components."""

from __future__ import annotations

from rehook.errors import StorageError
from rehook.storage.engine import Bucket, Key


class Namespace:
    """Storage handle confined to one bucket and the buckets beneath it.

    A Namespace has no way to reach its parent, so a component holding one
    can only read and write its own binding's state. The public methods
    below are the whole contract; the wrapped bucket and its transaction are
    private and components must not touch them.
    """

    def __init__(self, bucket: Bucket) -> None:
        self._bucket = bucket

    @property
    def path(self) -> str:
        return "/".join(p.decode("utf-8", "replace") for p in self._bucket.path)

    @property
    def writable(self) -> bool:
        return self._bucket.writable

    def __repr__(self) -> str:
        return f"Namespace({self.path})"

    async def get(self, key: Key) -> bytes | None:
        return await self._bucket.get(key)

    async def get_str(self, key: Key) -> str | None:
        value = await self._bucket.get(key)
        return None if value is None else value.decode("utf-8")

    async def put(self, key: Key, value: Key) -> None:
        await self._bucket.put(key, value)

    async def delete(self, key: Key) -> bool:
        return await self._bucket.delete(key)

    async def child(self, name: Key) -> Namespace:
        """Return an existing sub-namespace. Raises StorageError if missing."""
        bucket = await self._bucket.bucket(name)
        if bucket is None:
            raise StorageError(f"namespace {name!r} does not exist under {self.path}")
        return Namespace(bucket)

    async def ensure_child(self, name: Key) -> Namespace:
        """Return a sub-namespace, creating it when absent."""
        return Namespace(await self._bucket.create_bucket_if_not_exists(name))
