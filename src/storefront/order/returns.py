"""Shopper refund requests on delivered orders."""

import json
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.domain import storefront
from storefront.errors import PaymentNotFound
from storefront.order.order import Order
from storefront.order.pricing import to_minor_units
from storefront.order.queries import load_order
from storefront.payment.payment import Payment
from storefront.payment.queries import completed_payment_for_order
from storefront.payment.refund import issue_refund

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class RequestOrderRefund:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = Text()
    items = Text()  # JSON: list of {product_id, variant_id, quantity}; empty for the whole order


@storefront.command_handler(part_of=Order)
class RequestOrderRefundHandler:
    @handle(RequestOrderRefund)
    def request_refund(self, command):
        order = load_order(command.order_id, command.user_id)
        days = order.ensure_refundable(get_settings().refund_window_days)

        payment = completed_payment_for_order(order.id)
        if payment is None:
            raise PaymentNotFound(str(order.id))

        items = json.loads(command.items) if command.items else []
        amount = to_minor_units(order.amount_for_items(items)) if items else None

        refund = issue_refund(payment, order, amount=amount, reason=command.reason)
        order.record_refund_request(refund.id, refund.amount, reason=command.reason, items_json=command.items)

        current_domain.repository_for(Payment).add(payment)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order refund requested",
            order_id=str(order.id),
            refund_id=str(refund.id),
            days_since_delivery=days,
            amount=refund.amount,
        )
        return {
            "order_id": str(order.id),
            "reason": command.reason,
            "items": items,
            "requested_at": datetime.now(UTC),
            "status": refund.status,
            "refund_id": str(refund.id),
            "amount": refund.amount,
        }
