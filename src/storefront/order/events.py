"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A shopper checked out a cart and a PENDING order was recorded."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_number = String(required=True, max_length=50)
    item_count = Integer(required=True)
    total = Float(required=True)
    currency = String(required=True, max_length=3)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along its lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True, max_length=20)
    to_status = String(required=True, max_length=20)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    previous_status = String(required=True, max_length=20)
    reason = Text()
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderRefundRequested:
    """A refund was requested for a delivered order and issued at the gateway."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    refund_id = Identifier(required=True)
    amount = Integer(required=True)  # minor units
    reason = Text()
    items = Text()  # JSON: requested items, empty for a full refund
    requested_at = DateTime(required=True)
