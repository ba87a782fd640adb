"""Tests for the in-memory idempotency store."""

import threading
from datetime import UTC, datetime, timedelta

import pytest
from ordering.checkout.idempotency import (
    InMemoryIdempotencyStore,
    RecordState,
    get_idempotency_store,
    set_idempotency_store,
)
from ordering.errors import CheckoutInProgress, EmptyCart


@pytest.fixture()
def store():
    return InMemoryIdempotencyStore(ttl_seconds=60)


class TestClaim:
    def test_first_claim_owns_key(self, store):
        claimed, record = store.claim("user-001:key-1")
        assert claimed is True
        assert record.state == RecordState.PENDING

    def test_second_claim_gets_existing(self, store):
        _, first = store.claim("user-001:key-1")
        claimed, record = store.claim("user-001:key-1")
        assert claimed is False
        assert record is first

    def test_expired_key_can_be_claimed_again(self, store):
        _, record = store.claim("user-001:key-1")
        record.expires_at = datetime.now(UTC) - timedelta(seconds=1)

        claimed, _ = store.claim("user-001:key-1")
        assert claimed is True


class TestOutcomes:
    def test_complete_keeps_result(self, store):
        store.claim("k")
        store.complete("k", {"order_id": "o-1", "payment_required": True, "message": "ok"})

        record = store.get("k")
        assert record.state == RecordState.COMPLETED
        assert record.result["order_id"] == "o-1"

    def test_fail_frees_key(self, store):
        store.claim("k")
        store.fail("k", EmptyCart("user-001"))

        assert store.get("k") is None
        claimed, _ = store.claim("k")
        assert claimed is True

    def test_purge_expired(self, store):
        store.claim("old")
        store.complete("old", {"order_id": "o-1"})
        store.claim("new")
        store.get("old").expires_at = datetime.now(UTC) - timedelta(seconds=1)

        assert store.purge_expired() == 1
        assert store.get("new") is not None

    def test_purge_keeps_in_flight_records(self, store):
        _, record = store.claim("k")
        record.expires_at = datetime.now(UTC) - timedelta(seconds=1)
        assert store.purge_expired() == 0


class TestClaimPrunesExpired:
    def test_completed_keys_do_not_accumulate(self):
        store = InMemoryIdempotencyStore(ttl_seconds=60, purge_interval_seconds=0)
        for n in range(5):
            store.claim(f"key-{n}")
            store.complete(f"key-{n}", {"order_id": f"o-{n}"})
            store.get(f"key-{n}").expires_at = datetime.now(UTC) - timedelta(seconds=1)

        store.claim("fresh")
        assert store._records.keys() == {"fresh"}

    def test_pruning_waits_for_interval(self):
        store = InMemoryIdempotencyStore(ttl_seconds=60, purge_interval_seconds=3600)
        store.claim("old")
        store.complete("old", {"order_id": "o-1"})
        store._records["old"].expires_at = datetime.now(UTC) - timedelta(seconds=1)

        store.claim("fresh")
        assert "old" in store._records


class TestWait:
    def test_waiter_sees_completion(self, store):
        _, record = store.claim("k")
        timer = threading.Timer(0.05, store.complete, args=("k", {"order_id": "o-1"}))
        timer.start()

        finished = store.wait(record, timeout=2)
        timer.join()
        assert finished.state == RecordState.COMPLETED

    def test_waiter_sees_failure(self, store):
        _, record = store.claim("k")
        error = EmptyCart("user-001")
        store.fail("k", error)

        finished = store.wait(record, timeout=1)
        assert finished.state == RecordState.FAILED
        assert finished.error is error

    def test_timeout(self, store):
        _, record = store.claim("k")
        with pytest.raises(CheckoutInProgress) as exc:
            store.wait(record, timeout=0.01)
        assert exc.value.status_code == 409


class TestStoreFactory:
    def test_installed_store_is_used_by_checkout(self, store):
        from ordering.checkout.orchestrator import CheckoutOrchestrator

        set_idempotency_store(store)
        assert get_idempotency_store() is store
        assert CheckoutOrchestrator().idempotency is store

    def test_default_store_is_shared(self):
        assert get_idempotency_store() is get_idempotency_store()
