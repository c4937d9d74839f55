"""Hook persistence."""

from rehook.hooks.store import HookStore, init_buckets

__all__ = [
    "HookStore",
    "init_buckets",
]
