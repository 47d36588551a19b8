"""Per-key locks for serializing one user's read-then-write sequences."""

import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict


class KeyedLocks:
    """
    Lazily created lock per key.

    Locks are never evicted; the registry grows with the number of distinct
    keys seen by the process.
    """

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    def get(self, key: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks[key]

    @contextmanager
    def hold(self, key: str):
        lock = self.get(key)
        with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)
