"""Cart Snapshot Resolver: freezes a cart into priced line items at checkout.

The snapshot is the only input the order ledger takes. Quantities and unit
prices are copied out of the catalog once, here, and never re-derived later,
so catalog price changes after checkout cannot move an order's totals.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

import structlog

from storefront.cart.cart import Cart
from storefront.catalog.port import ProductCatalog
from storefront.errors import EmptyCart, InvalidQuantity, ProductUnavailable

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartLineSnapshot:
    product_id: str
    title: str
    quantity: int
    unit_price: Decimal
    variant_id: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def as_item_data(self) -> dict:
        return {
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "title": self.title,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
        }


@dataclass(frozen=True)
class CartSnapshot:
    user_id: str
    lines: tuple[CartLineSnapshot, ...]
    currency: str
    taken_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


def resolve_snapshot(cart: Cart, catalog: ProductCatalog, currency: str) -> CartSnapshot:
    """Price every cart line against the catalog as it stands right now.

    Draft and server carts go through the same checks: a draft kept in the
    browser may reference products that were deactivated since it was saved.
    """
    if cart.is_empty:
        raise EmptyCart()

    lines = []
    for line in cart.lines:
        if line.quantity is None or line.quantity <= 0:
            raise InvalidQuantity(line.product_id, line.quantity)

        product = catalog.find_product(line.product_id)
        if product is None or not product.is_active:
            raise ProductUnavailable(line.product_id)

        unit_price = product.price
        title = product.name
        if line.variant_id:
            variant = product.variant(line.variant_id)
            if variant is None or not variant.is_active:
                raise ProductUnavailable(line.product_id, line.variant_id)
            if variant.price is not None:
                unit_price = variant.price
            title = f"{product.name} ({variant.name})"

        lines.append(
            CartLineSnapshot(
                product_id=line.product_id,
                variant_id=line.variant_id,
                title=title,
                quantity=line.quantity,
                unit_price=unit_price,
            )
        )

    snapshot = CartSnapshot(user_id=cart.user_id, lines=tuple(lines), currency=currency)
    logger.debug(
        "Cart snapshot taken",
        user_id=cart.user_id,
        origin=cart.origin.value,
        line_count=len(lines),
        subtotal=str(snapshot.subtotal),
    )
    return snapshot
