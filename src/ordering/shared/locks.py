"""Per-record locks.

Status changes on a single order or shipment are read-validate-write
sequences. A ``KeyedLock`` serializes those sequences per record id without
serializing unrelated records. Callers hold at most one key at a time.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLock:
    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._manager_lock = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._manager_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key) -> Iterator[None]:
        lock = self._lock_for(str(key))
        with lock:
            yield


# One registry per record type, shared by every worker in the process
cart_locks = KeyedLock()
order_locks = KeyedLock()
shipment_locks = KeyedLock()
