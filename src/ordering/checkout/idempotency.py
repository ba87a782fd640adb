"""Idempotency records for checkout.

Lifecycle of a key:

    claim ─► PENDING ─► COMPLETED   (result replayed until the key expires)
                     └► FAILED      (error handed to waiters, key freed)

Only one request can claim a key. A duplicate arriving while the key is
PENDING waits for the outcome instead of running checkout a second time.
"""

import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum

from ordering.errors import CheckoutInProgress


class RecordState(Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass
class IdempotencyRecord:
    key: str
    state: RecordState
    created_at: datetime
    expires_at: datetime
    result: dict | None = None
    error: Exception | None = None
    _done: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def is_expired(self) -> bool:
        return datetime.now(UTC) >= self.expires_at


class IdempotencyStore(ABC):
    @abstractmethod
    def claim(self, key: str) -> tuple[bool, IdempotencyRecord]:
        """Atomically create a PENDING record.

        Returns ``(True, record)`` when this caller now owns the key, or
        ``(False, existing)`` when another request already holds it.
        """
        ...

    @abstractmethod
    def complete(self, key: str, result: dict) -> None: ...

    @abstractmethod
    def fail(self, key: str, error: Exception) -> None:
        """Publish the error to waiters and free the key for a later retry."""
        ...

    @abstractmethod
    def wait(self, record: IdempotencyRecord, timeout: float) -> IdempotencyRecord:
        """Block until ``record`` leaves PENDING.

        Raises:
            CheckoutInProgress: if it is still pending after ``timeout`` seconds.
        """
        ...


class InMemoryIdempotencyStore(IdempotencyStore):
    """Keys live for ``ttl_seconds``; expired records are pruned by ``claim``
    at most once every ``purge_interval_seconds``.
    """

    def __init__(self, ttl_seconds: float | None = None, purge_interval_seconds: float = 60.0) -> None:
        self.ttl = timedelta(seconds=ttl_seconds or float(os.environ.get("CHECKOUT_IDEMPOTENCY_TTL_SECONDS", "86400")))
        self.purge_interval = timedelta(seconds=purge_interval_seconds)
        self._records: dict[str, IdempotencyRecord] = {}
        self._lock = threading.Lock()
        self._last_purge = datetime.now(UTC)

    def claim(self, key: str) -> tuple[bool, IdempotencyRecord]:
        now = datetime.now(UTC)
        with self._lock:
            if now - self._last_purge >= self.purge_interval:
                self._purge_expired_locked(now)

            existing = self._records.get(key)
            if existing is not None and not existing.is_expired:
                return False, existing

            record = IdempotencyRecord(
                key=key,
                state=RecordState.PENDING,
                created_at=now,
                expires_at=now + self.ttl,
            )
            self._records[key] = record
            return True, record

    def get(self, key: str) -> IdempotencyRecord | None:
        with self._lock:
            record = self._records.get(key)
            if record is not None and record.is_expired:
                del self._records[key]
                return None
            return record

    def complete(self, key: str, result: dict) -> None:
        with self._lock:
            record = self._records[key]
            record.state = RecordState.COMPLETED
            record.result = result
        record._done.set()

    def fail(self, key: str, error: Exception) -> None:
        with self._lock:
            record = self._records.pop(key)
            record.state = RecordState.FAILED
            record.error = error
        record._done.set()

    def wait(self, record: IdempotencyRecord, timeout: float) -> IdempotencyRecord:
        if not record._done.wait(timeout):
            raise CheckoutInProgress(record.key)
        return record

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_expired_locked(datetime.now(UTC))

    def _purge_expired_locked(self, now: datetime) -> int:
        # PENDING records are kept so waiters are never orphaned
        expired = [
            key
            for key, record in self._records.items()
            if record.state != RecordState.PENDING and now >= record.expires_at
        ]
        for key in expired:
            del self._records[key]
        self._last_purge = now
        return len(expired)


_current_store: IdempotencyStore | None = None


def get_idempotency_store() -> IdempotencyStore:
    global _current_store
    if _current_store is None:
        _current_store = InMemoryIdempotencyStore()
    return _current_store


def set_idempotency_store(store: IdempotencyStore) -> None:
    global _current_store
    _current_store = store


def reset_idempotency_store() -> None:
    global _current_store
    _current_store = None
