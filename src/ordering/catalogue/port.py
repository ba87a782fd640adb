"""Catalogue reader port (abstract interface).

The catalogue owns products; checkout only reads them. Adapters are swapped
via ``set_catalogue()`` without touching checkout code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ProductSnapshot:
    """Authoritative product data as read at one instant."""

    product_id: str
    name: str
    price: Decimal
    stock: int
    cod_available: bool

    @property
    def is_available(self) -> bool:
        return self.stock > 0

    def to_dict(self) -> dict:
        return {
            "id": self.product_id,
            "name": self.name,
            "price": float(self.price),
            "stock": self.stock,
            "codAvailable": self.cod_available,
            "isAvailable": self.is_available,
        }


class CatalogueReader(ABC):
    """Read-only view of the product catalogue."""

    @abstractmethod
    def get_product(self, product_id: str) -> ProductSnapshot:
        """Return the current product record.

        Raises:
            NotFound: if no product has this id.
        """
        ...

    @abstractmethod
    def list_products(self) -> list[ProductSnapshot]: ...
