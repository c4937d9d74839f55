"""Embedded transactional storage."""

from rehook.storage.engine import Bucket, Store, Transaction
from rehook.storage.namespace import Namespace

__all__ = [
    "Bucket",
    "Namespace",
    "Store",
    "Transaction",
]
