"""In-memory product catalog for development and testing."""

from decimal import Decimal

from storefront.catalog.port import CatalogProduct, CatalogVariant, ProductCatalog


class InMemoryCatalog(ProductCatalog):
    def __init__(self) -> None:
        self._products: dict[str, CatalogProduct] = {}

    def add_product(
        self,
        product_id: str,
        name: str,
        price,
        is_active: bool = True,
        variants: list[dict] | None = None,
    ) -> CatalogProduct:
        """Register (or replace) a product. Variants are dicts with id, name, price, is_active."""
        product = CatalogProduct(
            id=product_id,
            name=name,
            price=Decimal(str(price)),
            is_active=is_active,
            variants=tuple(
                CatalogVariant(
                    id=v["id"],
                    name=v.get("name", v["id"]),
                    price=Decimal(str(v["price"])) if v.get("price") is not None else None,
                    is_active=v.get("is_active", True),
                )
                for v in (variants or [])
            ),
        )
        self._products[product_id] = product
        return product

    def find_product(self, product_id: str) -> CatalogProduct | None:
        return self._products.get(product_id)

    def clear(self) -> None:
        self._products.clear()
