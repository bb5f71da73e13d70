"""Product catalog factory.

Provides get_catalog() / set_catalog() to swap implementations. The default
is an empty InMemoryCatalog; deployments plug in their catalog service.
"""

from storefront.catalog.memory_adapter import InMemoryCatalog
from storefront.catalog.port import ProductCatalog

_current_catalog: ProductCatalog | None = None


def get_catalog() -> ProductCatalog:
    global _current_catalog
    if _current_catalog is None:
        _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: ProductCatalog) -> None:
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    global _current_catalog
    _current_catalog = None
