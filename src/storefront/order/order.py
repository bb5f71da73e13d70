"""Order aggregate: the ledger entry created once per checkout.

Line items and pricing are copied out of the cart snapshot when the order is
placed and are never re-derived afterwards. Only ``status`` and ``notes``
change after creation (plus ``delivered_at``, stamped on delivery).

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED → REFUNDED
    PENDING | CONFIRMED → CANCELLED
"""

import secrets
import string
import time
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.errors import (
    IllegalTransition,
    InvalidQuantity,
    ItemNotInOrder,
    OrderNotCancellable,
    OrderNotDelivered,
    RefundWindowExpired,
)
from storefront.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderRefundRequested,
    OrderStatusChanged,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}

_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

# Fulfilment moves an administrator may request directly
FULFILMENT_STATES = {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED}

# Payment status (see storefront.payment.payment.PaymentStatus) → order status
# for an order still awaiting payment. Missing entries leave the order PENDING.
_PAYMENT_OUTCOMES = {
    "COMPLETED": OrderStatus.CONFIRMED,
    "CANCELLED": OrderStatus.CANCELLED,
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _VALID_TRANSITIONS.get(current, set())


def generate_order_number() -> str:
    """Human-facing order number: ``ORD-<epoch millis>-<6 upper-case alphanumerics>``."""
    alphabet = string.ascii_uppercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(6))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """The delivery address as it was when the order was placed."""

    full_name = String(max_length=255)
    phone = String(max_length=30)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(required=True, max_length=100)


@storefront.value_object(part_of="Order")
class OrderPricing:
    """Financial summary locked at checkout, in major currency units."""

    subtotal = Float(default=0.0)
    tax = Float(default=0.0)
    shipping = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)
    currency = String(max_length=3, default="ngn")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A line copied from the cart snapshot: product, quantity and frozen unit price."""

    product_id = Identifier(required=True)
    variant_id = Identifier()
    title = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def line_total(self) -> Decimal:
        return Decimal(str(self.unit_price)) * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    user_id = Identifier(required=True)
    order_number = String(max_length=50)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    items = HasMany(OrderItem)
    pricing = ValueObject(OrderPricing)
    shipping_address_id = Identifier(required=True)
    billing_address_id = Identifier()
    shipping_address = ValueObject(ShippingAddress)
    notes = Text()
    delivered_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def total_must_equal_its_components(self):
        if self.pricing is None:
            return
        p = self.pricing
        expected = round(p.subtotal + p.tax + p.shipping - p.discount, 2)
        if abs(expected - p.total) > 0.005:
            raise ValidationError({"pricing": ["Total must equal subtotal + tax + shipping - discount"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id,
        items_data,
        pricing,
        shipping_address_id,
        shipping_address,
        billing_address_id=None,
        notes=None,
    ):
        """Record a new PENDING order.

        Args:
            user_id: The shopper placing the order.
            items_data: List of dicts with product_id, variant_id, title,
                        quantity, unit_price (from the cart snapshot).
            pricing: Dict with subtotal, tax, shipping, discount, total, currency.
            shipping_address_id: Address book id of the shipping address.
            shipping_address: Dict with the resolved address fields.
            billing_address_id: Defaults to the shipping address id.
        """
        now = datetime.now(UTC)

        order = cls(
            user_id=user_id,
            order_number=generate_order_number(),
            status=OrderStatus.PENDING.value,
            pricing=OrderPricing(**pricing),
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id or shipping_address_id,
            shipping_address=ShippingAddress(**shipping_address),
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for item in items_data:
            order.add_items(OrderItem(**item))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                order_number=order.order_number,
                item_count=sum(item["quantity"] for item in items_data),
                total=order.pricing.total,
                currency=order.pricing.currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def transition_to(self, target: OrderStatus) -> None:
        """Move to ``target`` if the state graph allows it, else raise IllegalTransition."""
        current = self.current_status
        if not can_transition(current, target):
            raise IllegalTransition(current.value, target.value)

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        if target == OrderStatus.DELIVERED:
            self.delivered_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=current.value,
                to_status=target.value,
                changed_at=now,
            )
        )

    def cancel(self, reason=None):
        current = self.current_status
        if current not in _CANCELLABLE_STATES:
            raise OrderNotCancellable(current.value)

        self.transition_to(OrderStatus.CANCELLED)
        self.append_note(f"Cancelled: {reason}" if reason else "Cancelled by user")
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=current.value,
                reason=reason,
                cancelled_at=self.updated_at,
            )
        )

    def apply_payment_outcome(self, payment_status: str) -> bool:
        """Follow the payment's new status. Returns True if the order changed.

        Only a PENDING order follows its payment. Once the order has moved on
        (paid through another attempt, cancelled, shipped), late payment
        reports are recorded on the payment alone.
        """
        target = _PAYMENT_OUTCOMES.get(payment_status)
        if target is None:
            return False

        if self.current_status != OrderStatus.PENDING:
            logger.warning(
                "Payment outcome ignored, order no longer pending",
                order_id=str(self.id),
                order_status=self.status,
                payment_status=payment_status,
            )
            return False

        self.transition_to(target)
        if target == OrderStatus.CANCELLED:
            self.append_note("Cancelled: payment was cancelled")
        return True

    def mark_refunded(self) -> None:
        self.transition_to(OrderStatus.REFUNDED)

    # -------------------------------------------------------------------
    # Refund requests
    # -------------------------------------------------------------------
    def days_since_delivery(self, now: datetime | None = None) -> int:
        now = _as_utc(now or datetime.now(UTC))
        return (now - _as_utc(self.delivered_at)).days

    def ensure_refundable(self, window_days: int, now: datetime | None = None) -> int:
        """Check the order is DELIVERED and inside the refund window.

        Returns the number of whole days since delivery.
        """
        if self.current_status != OrderStatus.DELIVERED or self.delivered_at is None:
            raise OrderNotDelivered(self.status)

        days = self.days_since_delivery(now)
        if days > window_days:
            raise RefundWindowExpired(days, window_days, current_status=self.status)
        return days

    def amount_for_items(self, requested_items) -> Decimal:
        """Snapshot price × quantity for the requested items, in major units.

        Each requested item names a product_id, an optional variant_id and an
        optional quantity (defaults to the full ordered quantity).
        """
        total = Decimal("0")
        for requested in requested_items:
            product_id = str(requested["product_id"])
            variant_id = requested.get("variant_id")
            match = next(
                (
                    item
                    for item in self.items
                    if str(item.product_id) == product_id
                    and (str(item.variant_id) if item.variant_id else None) == (str(variant_id) if variant_id else None)
                ),
                None,
            )
            if match is None:
                raise ItemNotInOrder(product_id, variant_id)

            quantity = requested.get("quantity") or match.quantity
            if quantity < 1 or quantity > match.quantity:
                raise InvalidQuantity(product_id, quantity)
            total += Decimal(str(match.unit_price)) * quantity
        return total

    def record_refund_request(self, refund_id, amount: int, reason=None, items_json=None) -> None:
        now = datetime.now(UTC)
        self.append_note(f"Refund requested: {reason}" if reason else "Refund requested")
        self.updated_at = now
        self.raise_(
            OrderRefundRequested(
                order_id=str(self.id),
                user_id=str(self.user_id),
                refund_id=str(refund_id),
                amount=amount,
                reason=reason,
                items=items_json,
                requested_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------
    def append_note(self, note: str) -> None:
        self.notes = f"{self.notes}\n{note}" if self.notes else note
