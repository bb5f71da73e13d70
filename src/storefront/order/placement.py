"""Order placement: cart → snapshot → PENDING order."""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.addresses import get_address_book
from storefront.cart.cart import Cart, CartOrigin
from storefront.cart.snapshot import resolve_snapshot
from storefront.catalog import get_catalog
from storefront.config import get_settings
from storefront.domain import storefront
from storefront.errors import AddressRequired
from storefront.order.order import Order
from storefront.order.pricing import compute_pricing

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    cart = Text(required=True)  # JSON: list of {product_id, variant_id, quantity}
    cart_origin = String(max_length=10, default=CartOrigin.SERVER.value)
    shipping_address_id = Identifier()
    billing_address_id = Identifier()
    shipping_amount = Float(default=0.0)
    discount = Float(default=0.0)
    notes = Text()


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        settings = get_settings()
        user_id = str(command.user_id)

        lines = json.loads(command.cart) if isinstance(command.cart, str) else command.cart
        cart = Cart.from_lines(user_id, lines, origin=CartOrigin(command.cart_origin or CartOrigin.SERVER.value))
        snapshot = resolve_snapshot(cart, get_catalog(), settings.currency)

        if not command.shipping_address_id:
            raise AddressRequired()
        address_book = get_address_book()
        shipping = address_book.resolve(user_id, str(command.shipping_address_id))
        if shipping is None:
            raise AddressRequired(str(command.shipping_address_id))
        if command.billing_address_id and address_book.resolve(user_id, str(command.billing_address_id)) is None:
            raise AddressRequired(str(command.billing_address_id))

        pricing = compute_pricing(
            snapshot.subtotal,
            snapshot.currency,
            tax_rate=settings.tax_rate,
            shipping=command.shipping_amount or 0,
            discount=command.discount or 0,
        )

        order = Order.place(
            user_id=user_id,
            items_data=[line.as_item_data() for line in snapshot.lines],
            pricing=pricing,
            shipping_address_id=shipping.id,
            shipping_address=shipping.as_dict(),
            billing_address_id=command.billing_address_id,
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=user_id,
            item_count=snapshot.item_count,
            total=pricing["total"],
            currency=pricing["currency"],
        )
        return str(order.id)
