"""
Storage Package

QueryStore implementations for query records.

Public API:
- QueryStore, RecordQuery: backend contract and predicate
- SQLiteQueryStore: persistent store (default)
- InMemoryQueryStore: per-user indexed store for tests and embedding
- open_store: build the configured backend
"""

from pathlib import Path
from typing import Optional, Union

from querytrail import config
from querytrail.storage.base import QueryStore, RecordQuery, is_prefix_related
from querytrail.storage.memory_store import InMemoryQueryStore
from querytrail.storage.sqlite import SQLiteQueryStore
from querytrail.exceptions import ConfigError


def open_store(path: Optional[Union[str, Path]] = None, backend: Optional[str] = None) -> QueryStore:
    """
    Open the configured store backend.

    Args:
        path: Database path override (sqlite backend only)
        backend: "sqlite" or "memory"; defaults to store.backend config
    """
    backend = backend or config.store_backend()
    if backend == "memory":
        return InMemoryQueryStore()
    if backend == "sqlite":
        return SQLiteQueryStore(Path(path) if path else config.store_path())
    raise ConfigError(f"Unknown store backend: {backend!r}")


__all__ = [
    'QueryStore',
    'RecordQuery',
    'is_prefix_related',
    'InMemoryQueryStore',
    'SQLiteQueryStore',
    'open_store',
]
