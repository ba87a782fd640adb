"""Stock store port — the only mutation boundary for product stock.

Stock is never assigned directly. Callers decrement through a conditional,
all-or-nothing primitive and hand stock back through ``release``. A database
adapter maps ``decrement_if_sufficient`` to one transaction of
``UPDATE ... SET stock = stock - :q WHERE id = :id AND stock >= :q`` statements
issued in ascending product id order.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping


class StockStore(ABC):
    @abstractmethod
    def stock_of(self, product_id: str) -> int:
        """Current stock level.

        Raises:
            NotFound: if the product does not exist.
        """
        ...

    @abstractmethod
    def decrement_if_sufficient(self, quantities: Mapping[str, int]) -> None:
        """Atomically decrement every product by its quantity.

        Applies all decrements or none. Raises ``ConcurrentModification``
        naming the first product whose stock no longer covers its quantity.
        """
        ...

    @abstractmethod
    def release(self, quantities: Mapping[str, int]) -> None:
        """Return previously decremented quantities to stock."""
        ...
