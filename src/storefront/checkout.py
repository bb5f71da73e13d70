"""Entry points for the checkout workflows.

The HTTP routes and the CLI go through these functions rather than
processing commands directly. Every operation that mutates an order or its
payments holds that order's lock for the whole command, so the Unit of Work
commits before the next request for the same order can read.
"""

import json

import structlog
from protean.utils.globals import current_domain

from storefront.cart.cart import CartOrigin
from storefront.config import get_settings
from storefront.errors import GatewayError
from storefront.gateway import get_gateway
from storefront.gateway.status import ExternalStatus
from storefront.order.cancellation import CancelOrder
from storefront.order.fulfillment import AdvanceOrder
from storefront.order.order import Order
from storefront.order.placement import PlaceOrder
from storefront.order.queries import load_order, order_stats, orders_for_user, tracking_for
from storefront.order.returns import RequestOrderRefund
from storefront.payment.confirmation import ConfirmPayment
from storefront.payment.intent import CreatePaymentIntent
from storefront.payment.payment import Payment
from storefront.payment.queries import find_by_reference, load_payment
from storefront.payment.refund import RefundPayment
from storefront.utils.locks import order_locks

logger = structlog.get_logger(__name__)


def _locked(order_id):
    return order_locks.hold(str(order_id), timeout=get_settings().lock_timeout)


def _process(command):
    return current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
def place_order(
    user_id: str,
    cart_lines: list[dict],
    shipping_address_id: str | None,
    billing_address_id: str | None = None,
    shipping_amount: float = 0.0,
    discount: float = 0.0,
    notes: str | None = None,
    origin: CartOrigin = CartOrigin.SERVER,
) -> Order:
    order_id = _process(
        PlaceOrder(
            user_id=user_id,
            cart=json.dumps(cart_lines),
            cart_origin=origin.value,
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id,
            shipping_amount=shipping_amount,
            discount=discount,
            notes=notes,
        )
    )
    return load_order(order_id)


def get_order(user_id: str, order_id: str) -> Order:
    return load_order(order_id, user_id)


def list_orders(user_id: str, status: str | None = None) -> list[Order]:
    return orders_for_user(user_id, status)


def get_order_stats(user_id: str) -> dict:
    return order_stats(user_id)


def track_order(user_id: str, order_id: str) -> tuple[Order, dict]:
    """The order and its fulfilment timeline."""
    order = load_order(order_id, user_id)
    return order, tracking_for(order)


def cancel_order(user_id: str, order_id: str, reason: str | None = None) -> Order:
    with _locked(order_id):
        _process(CancelOrder(order_id=order_id, user_id=user_id, reason=reason))
    return load_order(order_id)


def advance_order(order_id: str, status: str) -> Order:
    with _locked(order_id):
        _process(AdvanceOrder(order_id=order_id, status=status))
    return load_order(order_id)


def request_refund(user_id: str, order_id: str, reason: str | None = None, items: list[dict] | None = None):
    """Returns the updated order and the refund request record."""
    with _locked(order_id):
        refund_request = _process(
            RequestOrderRefund(
                order_id=order_id,
                user_id=user_id,
                reason=reason,
                items=json.dumps(items) if items else None,
            )
        )
    return load_order(order_id), refund_request


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
def create_payment_intent(
    user_id: str,
    order_id: str,
    amount: float | None = None,
    currency: str | None = None,
    email: str | None = None,
    name: str | None = None,
) -> dict:
    with _locked(order_id):
        return _process(
            CreatePaymentIntent(
                order_id=order_id,
                user_id=user_id,
                amount=amount,
                currency=currency,
                email=email,
                name=name,
            )
        )


def confirm_payment(external_id: str, reported_status: str, user_id: str | None = None) -> dict:
    # Read outside the lock only to learn which order to lock; the handler re-reads
    payment = find_by_reference(external_id, user_id)
    with _locked(payment.order_id):
        return _process(ConfirmPayment(external_id=external_id, reported_status=reported_status, user_id=user_id))


def refund_payment(
    payment_id: str,
    amount: float | None = None,
    reason: str | None = None,
    user_id: str | None = None,
) -> dict:
    payment = load_payment(payment_id, user_id)
    with _locked(payment.order_id):
        return _process(RefundPayment(payment_id=payment_id, user_id=user_id, amount=amount, reason=reason))


def get_payment(user_id: str, payment_id: str) -> tuple[Payment, ExternalStatus | None]:
    """The payment, plus its live status at the gateway when the gateway answers."""
    payment = load_payment(payment_id, user_id)
    if not payment.gateway_reference:
        return payment, None
    try:
        return payment, get_gateway().retrieve(payment.gateway_reference)
    except GatewayError as exc:
        logger.warning("Live payment status unavailable", payment_id=str(payment.id), error=exc.message)
        return payment, None
