"""Embedded transactional key-value store with nested buckets, SQLite backend.

Buckets form a tree rooted at an implicit root bucket. Every key inside a
bucket names either a value or a nested bucket, never both. Keys are compared
bytewise, so iteration order is stable.

Write transactions are serialized: one writer connection guarded by an
asyncio lock, started with ``BEGIN IMMEDIATE``. Read-only transactions open
their own connection and see a WAL snapshot, so they never wait for a writer.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Iterable

import aiosqlite

from rehook.errors import StorageError
from rehook.utils.logging import get_logger

log = get_logger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS buckets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    parent_id INTEGER NOT NULL,
    name BLOB NOT NULL,
    UNIQUE (parent_id, name)
);
CREATE TABLE IF NOT EXISTS entries (
    bucket_id INTEGER NOT NULL,
    key BLOB NOT NULL,
    value BLOB NOT NULL,
    PRIMARY KEY (bucket_id, key)
);
"""

ROOT_BUCKET_ID = 0

Key = str | bytes


def to_bytes(value: Key) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


class Transaction:
    """A read-only or read-write transaction. Only valid inside its context."""

    def __init__(self, conn: aiosqlite.Connection, writable: bool) -> None:
        self._conn = conn
        self.writable = writable
        self._closed = False
        self._root = Bucket(self, ROOT_BUCKET_ID, ())

    async def bucket(self, name: Key) -> Bucket | None:
        return await self._root.bucket(name)

    async def create_bucket(self, name: Key) -> Bucket:
        return await self._root.create_bucket(name)

    async def create_bucket_if_not_exists(self, name: Key) -> Bucket:
        return await self._root.create_bucket_if_not_exists(name)

    # ------------------------------------------------------------------
    # Statement helpers used by buckets
    # ------------------------------------------------------------------

    def _check(self, write: bool) -> None:
        if self._closed:
            raise StorageError("transaction is closed")
        if write and not self.writable:
            raise StorageError("transaction is read-only")

    async def _fetchone(self, sql: str, params: Iterable[Any]) -> Any:
        self._check(write=False)
        cursor = await self._conn.execute(sql, tuple(params))
        return await cursor.fetchone()

    async def _fetchall(self, sql: str, params: Iterable[Any]) -> list[Any]:
        self._check(write=False)
        cursor = await self._conn.execute(sql, tuple(params))
        return list(await cursor.fetchall())

    async def _write(self, sql: str, params: Iterable[Any]) -> aiosqlite.Cursor:
        self._check(write=True)
        return await self._conn.execute(sql, tuple(params))

    def _close(self) -> None:
        self._closed = True


class Bucket:
    """A namespace of ordered keys inside a transaction."""

    def __init__(self, tx: Transaction, bucket_id: int, path: tuple[bytes, ...]) -> None:
        self._tx = tx
        self._id = bucket_id
        self.path = path

    @property
    def writable(self) -> bool:
        return self._tx.writable

    def __repr__(self) -> str:
        return f"Bucket({'/'.join(p.decode('utf-8', 'replace') for p in self.path) or '/'})"

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    async def get(self, key: Key) -> bytes | None:
        row = await self._tx._fetchone(
            "SELECT value FROM entries WHERE bucket_id = ? AND key = ?",
            (self._id, to_bytes(key)),
        )
        return None if row is None else bytes(row[0])

    async def put(self, key: Key, value: Key) -> None:
        k = to_bytes(key)
        if not k:
            raise StorageError("key required")
        if await self._child_id(k) is not None:
            raise StorageError(f"{k!r} is a bucket in {self!r}")
        await self._tx._write(
            "INSERT INTO entries (bucket_id, key, value) VALUES (?, ?, ?) "
            "ON CONFLICT(bucket_id, key) DO UPDATE SET value = excluded.value",
            (self._id, k, to_bytes(value)),
        )

    async def delete(self, key: Key) -> bool:
        """Delete a value. Returns True if a value was deleted."""
        cursor = await self._tx._write(
            "DELETE FROM entries WHERE bucket_id = ? AND key = ?",
            (self._id, to_bytes(key)),
        )
        return cursor.rowcount > 0

    async def items(self, prefix: Key = b"") -> list[tuple[bytes, bytes]]:
        """All values in key order, optionally restricted to a key prefix."""
        rows = await self._tx._fetchall(
            "SELECT key, value FROM entries WHERE bucket_id = ? ORDER BY key",
            (self._id,),
        )
        p = to_bytes(prefix)
        return [(bytes(k), bytes(v)) for k, v in rows if bytes(k).startswith(p)]

    # ------------------------------------------------------------------
    # Nested buckets
    # ------------------------------------------------------------------

    async def _child_id(self, name: bytes) -> int | None:
        row = await self._tx._fetchone(
            "SELECT id FROM buckets WHERE parent_id = ? AND name = ?",
            (self._id, name),
        )
        return None if row is None else int(row[0])

    async def bucket(self, name: Key) -> Bucket | None:
        n = to_bytes(name)
        child = await self._child_id(n)
        if child is None:
            return None
        return Bucket(self._tx, child, self.path + (n,))

    async def create_bucket(self, name: Key) -> Bucket:
        n = to_bytes(name)
        if not n:
            raise StorageError("bucket name required")
        if await self._child_id(n) is not None:
            raise StorageError(f"bucket {n!r} already exists in {self!r}")
        if await self.get(n) is not None:
            raise StorageError(f"{n!r} is a value in {self!r}")
        cursor = await self._tx._write(
            "INSERT INTO buckets (parent_id, name) VALUES (?, ?)",
            (self._id, n),
        )
        return Bucket(self._tx, int(cursor.lastrowid), self.path + (n,))

    async def create_bucket_if_not_exists(self, name: Key) -> Bucket:
        existing = await self.bucket(name)
        if existing is not None:
            return existing
        return await self.create_bucket(name)


class Store:
    """Single-file bucketed key-value store.

    Usage::

        store = Store(path)
        await store.start()
        async with store.update() as tx:
            hooks = await tx.create_bucket_if_not_exists("hooks")
            await hooks.put("abc", b"...")
        async with store.view() as tx:
            ...
    """

    def __init__(self, db_path: Path, timeout: float = 1.0) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._writer: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._db_path

    async def start(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._writer = await self._connect()
        await self._writer.execute("PRAGMA journal_mode=WAL")
        await self._writer.executescript(_SCHEMA)
        log.info("store_opened", path=str(self._db_path))

    async def stop(self) -> None:
        if self._writer:
            async with self._write_lock:
                await self._writer.close()
                self._writer = None
            log.info("store_closed", path=str(self._db_path))

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(
            str(self._db_path), timeout=self._timeout, isolation_level=None
        )
        await conn.execute(f"PRAGMA busy_timeout={int(self._timeout * 1000)}")
        return conn

    @asynccontextmanager
    async def update(self) -> AsyncIterator[Transaction]:
        """Read-write transaction. Commits on normal exit, rolls back otherwise.

        Cancellation is treated like any other failure: the transaction rolls
        back before the CancelledError propagates. A failed COMMIT is rolled
        back too and raised as StorageError, leaving the writer usable.
        """
        async with self._write_lock:
            if self._writer is None:
                raise StorageError("store is not open")
            await self._writer.execute("BEGIN IMMEDIATE")
            tx = Transaction(self._writer, writable=True)
            try:
                yield tx
            except BaseException:
                tx._close()
                await self._writer.execute("ROLLBACK")
                raise
            tx._close()
            try:
                await self._writer.execute("COMMIT")
            except aiosqlite.Error as e:
                if self._writer.in_transaction:
                    await self._writer.execute("ROLLBACK")
                log.error("store_commit_failed", path=str(self._db_path), error=str(e))
                raise StorageError(f"commit failed: {e}") from e

    @asynccontextmanager
    async def view(self) -> AsyncIterator[Transaction]:
        """Read-only transaction over a consistent snapshot."""
        if self._writer is None:
            raise StorageError("store is not open")
        conn = await self._connect()
        try:
            await conn.execute("BEGIN")
            tx = Transaction(conn, writable=False)
            try:
                yield tx
            finally:
                tx._close()
                await conn.execute("ROLLBACK")
        finally:
            await conn.close()
