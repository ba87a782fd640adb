"""Catalogue factory.

Provides get_catalogue() / set_catalogue() to swap implementations. The
default is a process-wide InMemoryCatalogue, which also owns product stock.
"""

from ordering.catalogue.memory_adapter import InMemoryCatalogue
from ordering.catalogue.port import CatalogueReader

_current_catalogue: CatalogueReader | None = None


def get_catalogue() -> CatalogueReader:
    """Return the current catalogue. Defaults to InMemoryCatalogue."""
    global _current_catalogue
    if _current_catalogue is None:
        _current_catalogue = InMemoryCatalogue()
    return _current_catalogue


def set_catalogue(catalogue: CatalogueReader) -> None:
    """Override the active catalogue (useful for tests)."""
    global _current_catalogue
    _current_catalogue = catalogue


def reset_catalogue() -> None:
    global _current_catalogue
    _current_catalogue = None
