"""Refund workflow: return money on a completed payment of a delivered order.

Every check runs before the gateway is called. A gateway failure propagates
before anything is recorded, so a failed refund leaves no local trace.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import (
    AmountTooSmall,
    NotGatewayProcessed,
    OrderNotDelivered,
    PaymentNotFound,
    RefundExceedsPayment,
)
from storefront.gateway import get_gateway
from storefront.order.order import Order, OrderStatus
from storefront.order.pricing import to_minor_units
from storefront.order.queries import load_order
from storefront.payment.payment import Payment, PaymentStatus, Refund
from storefront.payment.queries import load_payment

logger = structlog.get_logger(__name__)

DEFAULT_REFUND_REASON = "Customer request"


def issue_refund(payment: Payment, order: Order, amount: int | None = None, reason: str | None = None) -> Refund:
    """Refund ``amount`` minor units (default: everything still refundable).

    Mutates the loaded aggregates only; the caller persists them.
    """
    if payment.status != PaymentStatus.COMPLETED.value:
        raise PaymentNotFound(str(payment.id))
    if not payment.gateway_reference:
        raise NotGatewayProcessed(str(payment.id), payment.status)
    if order.status != OrderStatus.DELIVERED.value:
        raise OrderNotDelivered(order.status)

    refundable = payment.refundable_amount
    amount = refundable if amount is None else amount
    if amount < 1:
        raise AmountTooSmall(amount, 1, payment.currency)
    if amount > refundable:
        raise RefundExceedsPayment(amount, refundable)

    reason = reason or DEFAULT_REFUND_REASON
    receipt = get_gateway().refund(payment.gateway_reference, amount)

    refund = payment.record_refund(
        amount=amount,
        reason=reason,
        external_refund_id=receipt.external_refund_id,
        external_status=receipt.external_status,
    )
    if payment.status == PaymentStatus.REFUNDED.value:
        order.mark_refunded()

    logger.info(
        "Refund issued",
        payment_id=str(payment.id),
        order_id=str(order.id),
        refund_id=str(refund.id),
        amount=amount,
        payment_status=payment.status,
        order_status=order.status,
    )
    return refund


def refund_summary(refund: Refund, payment: Payment) -> dict:
    return {
        "refund_id": str(refund.id),
        "payment_id": str(payment.id),
        "amount": refund.amount,
        "currency": refund.currency,
        "reason": refund.reason,
        "status": refund.status,
        "external_refund_id": refund.external_refund_id,
        "created_at": refund.created_at,
        "payment_status": payment.status,
    }


@storefront.command(part_of="Payment")
class RefundPayment:
    payment_id = Identifier(required=True)
    user_id = Identifier()  # absent for administrative refunds
    amount = Float()  # major units; defaults to the full refundable amount
    reason = Text()


@storefront.command_handler(part_of=Payment)
class RefundPaymentHandler:
    @handle(RefundPayment)
    def refund_payment(self, command):
        payment = load_payment(command.payment_id, command.user_id)
        order = load_order(payment.order_id)

        amount = to_minor_units(command.amount) if command.amount is not None else None
        refund = issue_refund(payment, order, amount=amount, reason=command.reason)

        current_domain.repository_for(Payment).add(payment)
        current_domain.repository_for(Order).add(order)
        return refund_summary(refund, payment)
