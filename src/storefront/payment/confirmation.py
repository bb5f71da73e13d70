"""Payment confirmation: apply a gateway-reported status to Payment and Order.

Reports arrive at least once, possibly out of order and possibly duplicated
(client confirmation, polling). Both aggregates change in the same handler and
therefore commit or roll back together.

| external                          | Payment    | Order                  |
|-----------------------------------|------------|------------------------|
| succeeded                         | COMPLETED  | CONFIRMED              |
| processing                        | PROCESSING | PENDING (unchanged)    |
| requires_payment_method / failed  | FAILED     | PENDING (retryable)    |
| canceled                          | CANCELLED  | CANCELLED              |
| anything else                     | unchanged  | unchanged              |
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.gateway.status import ExternalStatus
from storefront.order.order import Order
from storefront.order.queries import load_order
from storefront.payment.payment import Payment
from storefront.payment.queries import find_by_reference

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Payment")
class ConfirmPayment:
    external_id = String(required=True, max_length=255)
    reported_status = String(required=True, max_length=50)
    user_id = Identifier()  # absent for system callers such as the poller


def _outcome(payment: Payment, order: Order, changed: bool) -> dict:
    return {
        "payment_id": str(payment.id),
        "order_id": str(order.id),
        "payment_status": payment.status,
        "order_status": order.status,
        "changed": changed,
    }


@storefront.command_handler(part_of=Payment)
class ConfirmPaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        payment = find_by_reference(command.external_id, command.user_id)
        order = load_order(payment.order_id)

        if payment.is_terminal:
            logger.info(
                "Duplicate confirmation ignored",
                payment_id=str(payment.id),
                payment_status=payment.status,
                reported_status=command.reported_status,
            )
            return _outcome(payment, order, changed=False)

        external = ExternalStatus.parse(command.reported_status)
        if not payment.reconcile(external):
            return _outcome(payment, order, changed=False)

        current_domain.repository_for(Payment).add(payment)
        if order.apply_payment_outcome(payment.status):
            current_domain.repository_for(Order).add(order)

        logger.info(
            "Payment reconciled",
            payment_id=str(payment.id),
            order_id=str(order.id),
            external_status=external.raw,
            payment_status=payment.status,
            order_status=order.status,
        )
        return _outcome(payment, order, changed=True)
