"""Stock Reservation Service — validate, then atomically decrement stock.

Reservation is two phases. Validation re-reads authoritative stock for every
product and rejects the first one that cannot cover its quantity. Commit hands
all quantities to the stock store as one conditional decrement. If stock
moved in between, the store reports ``ConcurrentModification`` and the
service starts over from validation, up to a bounded number of attempts with
exponential backoff.

Configuration (environment):
    CHECKOUT_RESERVATION_ATTEMPTS   attempts before giving up (default 3)
    CHECKOUT_RETRY_BACKOFF_MS       base backoff in milliseconds (default 10)
"""

import os
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import structlog

from ordering.errors import ConcurrentModification, InsufficientStock
from ordering.inventory import get_stock_store
from ordering.inventory.port import StockStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ReservedLine:
    product_id: str
    quantity: int


@dataclass
class Reservation:
    """Quantities actually decremented for one checkout."""

    lines: tuple[ReservedLine, ...]
    reservation_id: str = field(default_factory=lambda: str(uuid4()))
    reserved_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    released: bool = False

    def quantities(self) -> dict[str, int]:
        return {line.product_id: line.quantity for line in self.lines}


def merge_line_items(line_items: Iterable) -> list[ReservedLine]:
    """Collapse ``(product_id, quantity)`` pairs naming the same product.

    First-seen order is kept. Quantities must be positive integers.
    """
    merged: dict[str, int] = {}
    for product_id, quantity in line_items:
        if quantity < 1:
            raise ValueError(f"Quantity for product {product_id} must be at least 1")
        merged[str(product_id)] = merged.get(str(product_id), 0) + quantity
    return [ReservedLine(product_id=pid, quantity=qty) for pid, qty in merged.items()]


class StockReservationService:
    def __init__(
        self,
        store: StockStore | None = None,
        max_attempts: int | None = None,
        backoff_ms: float | None = None,
    ) -> None:
        self._store = store
        self.max_attempts = (
            max_attempts if max_attempts is not None else int(os.environ.get("CHECKOUT_RESERVATION_ATTEMPTS", "3"))
        )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.backoff_ms = backoff_ms if backoff_ms is not None else float(os.environ.get("CHECKOUT_RETRY_BACKOFF_MS", "10"))
        self._release_lock = threading.Lock()

    @property
    def store(self) -> StockStore:
        return self._store or get_stock_store()

    def reserve(self, line_items: Iterable) -> Reservation:
        """Reserve stock for ``(product_id, quantity)`` pairs.

        Returns the Reservation on success. Raises ``InsufficientStock``
        naming the first product that cannot be covered, including the
        product that lost the race once retries are exhausted. Nothing is
        decremented when an error is raised.
        """
        lines = merge_line_items(line_items)
        if not lines:
            raise ValueError("Nothing to reserve")

        quantities = {line.product_id: line.quantity for line in lines}
        store = self.store

        for attempt in range(1, self.max_attempts + 1):
            self._validate(store, lines)
            try:
                store.decrement_if_sufficient(quantities)
            except ConcurrentModification as exc:
                logger.info(
                    "Stock moved during reservation",
                    product_id=exc.product_id,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                )
                if attempt == self.max_attempts:
                    raise InsufficientStock(exc.product_id, requested=quantities[exc.product_id]) from exc
                time.sleep(self.backoff_ms * (2 ** (attempt - 1)) / 1000.0)
                continue

            reservation = Reservation(lines=tuple(lines))
            logger.debug(
                "Stock reserved",
                reservation_id=reservation.reservation_id,
                lines=len(lines),
                attempt=attempt,
            )
            return reservation

    @staticmethod
    def _validate(store: StockStore, lines: list[ReservedLine]) -> None:
        for line in lines:
            available = store.stock_of(line.product_id)
            if available < line.quantity:
                raise InsufficientStock(line.product_id, requested=line.quantity, available=available)

    def release(self, reservation: Reservation) -> None:
        """Give reserved quantities back. A second release is a no-op."""
        with self._release_lock:
            if reservation.released:
                return
            reservation.released = True

        self.store.release(reservation.quantities())
        logger.info("Reservation released", reservation_id=reservation.reservation_id)
