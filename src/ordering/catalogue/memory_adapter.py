"""In-memory catalogue for development and testing.

Holds products (price, stock, COD flag) in a dict and serves both as the
catalogue reader and as the stock store. All stock mutations happen under one
lock, which stands in for the row-level atomicity a database adapter would get
from its transaction.
"""

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from uuid import uuid4

from ordering.catalogue.port import CatalogueReader, ProductSnapshot
from ordering.errors import ConcurrentModification, NotFound
from ordering.inventory.port import StockStore
from ordering.shared.money import to_money


@dataclass
class _ProductRecord:
    product_id: str
    name: str
    price: object
    stock: int
    cod_available: bool

    def snapshot(self) -> ProductSnapshot:
        return ProductSnapshot(
            product_id=self.product_id,
            name=self.name,
            price=self.price,
            stock=self.stock,
            cod_available=self.cod_available,
        )


class InMemoryCatalogue(CatalogueReader, StockStore):
    """Dict-backed catalogue and stock store."""

    def __init__(self) -> None:
        self._products: dict[str, _ProductRecord] = {}
        self._lock = threading.Lock()

    # -------------------------------------------------------------------
    # Catalogue administration (catalogue-side writes)
    # -------------------------------------------------------------------
    def add_product(
        self,
        name: str,
        price,
        stock: int = 0,
        cod_available: bool = True,
        product_id: str | None = None,
    ) -> ProductSnapshot:
        price = to_money(price)
        if price < 0:
            raise ValueError("Price must be non-negative")
        if stock < 0:
            raise ValueError("Stock must be non-negative")

        record = _ProductRecord(
            product_id=product_id or str(uuid4()),
            name=name,
            price=price,
            stock=stock,
            cod_available=cod_available,
        )
        with self._lock:
            self._products[record.product_id] = record
        return record.snapshot()

    def set_price(self, product_id: str, price) -> None:
        price = to_money(price)
        if price < 0:
            raise ValueError("Price must be non-negative")
        with self._lock:
            self._record(product_id).price = price

    def restock(self, product_id: str, quantity: int) -> None:
        if quantity <= 0:
            raise ValueError("Restock quantity must be positive")
        with self._lock:
            self._record(product_id).stock += quantity

    def _record(self, product_id: str) -> _ProductRecord:
        record = self._products.get(str(product_id))
        if record is None:
            raise NotFound("Product", product_id)
        return record

    # -------------------------------------------------------------------
    # CatalogueReader
    # -------------------------------------------------------------------
    def get_product(self, product_id: str) -> ProductSnapshot:
        with self._lock:
            return self._record(product_id).snapshot()

    def list_products(self) -> list[ProductSnapshot]:
        with self._lock:
            return [record.snapshot() for record in self._products.values()]

    # -------------------------------------------------------------------
    # StockStore
    # -------------------------------------------------------------------
    def stock_of(self, product_id: str) -> int:
        with self._lock:
            return self._record(product_id).stock

    def decrement_if_sufficient(self, quantities: Mapping[str, int]) -> None:
        with self._lock:
            records = [(self._record(pid), qty) for pid, qty in sorted(quantities.items())]
            for record, qty in records:
                if record.stock < qty:
                    raise ConcurrentModification(record.product_id)
            for record, qty in records:
                record.stock -= qty

    def release(self, quantities: Mapping[str, int]) -> None:
        with self._lock:
            records = [(self._record(pid), qty) for pid, qty in quantities.items()]
            for record, qty in records:
                record.stock += qty
