"""Product catalog port (abstract interface).

The catalog is an external collaborator: checkout only needs to know whether
a product or variant is still sellable and what it costs right now.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class CatalogVariant:
    id: str
    name: str
    price: Decimal | None = None
    is_active: bool = True


@dataclass(frozen=True)
class CatalogProduct:
    id: str
    name: str
    price: Decimal
    is_active: bool = True
    variants: tuple[CatalogVariant, ...] = field(default_factory=tuple)

    def variant(self, variant_id: str) -> CatalogVariant | None:
        return next((v for v in self.variants if v.id == variant_id), None)


class ProductCatalog(ABC):
    """Abstract catalog lookup."""

    @abstractmethod
    def find_product(self, product_id: str) -> CatalogProduct | None:
        """Return the product with its variants, or None if it does not exist."""
        ...
