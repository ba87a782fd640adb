"""Stock store factory.

Stock lives with the catalogue, so unless a dedicated store is installed the
active catalogue doubles as the stock store.
"""

from ordering.inventory.port import StockStore

_current_store: StockStore | None = None


def get_stock_store() -> StockStore:
    if _current_store is not None:
        return _current_store

    from ordering.catalogue import get_catalogue

    catalogue = get_catalogue()
    if not isinstance(catalogue, StockStore):
        raise TypeError(f"{type(catalogue).__name__} does not manage stock; install a store with set_stock_store()")
    return catalogue


def set_stock_store(store: StockStore) -> None:
    global _current_store
    _current_store = store


def reset_stock_store() -> None:
    global _current_store
    _current_store = None
