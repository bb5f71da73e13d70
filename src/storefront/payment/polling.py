"""Reconciliation poller: asks the gateway about every payment still in flight.

An additional caller of payment confirmation for payers who never come back
to report the outcome themselves. Safe to run at any frequency since
confirmation is idempotent.
"""

import structlog

from storefront.errors import ConcurrentUpdate, GatewayError
from storefront.gateway import get_gateway
from storefront.gateway.status import ExternalStatusKind
from storefront.payment.payment import PaymentStatus
from storefront.payment.queries import open_payments

logger = structlog.get_logger(__name__)


def _awaiting_payer(payment, status) -> bool:
    # A fresh intent reports requires_payment_method until the payer acts
    return (
        payment.status == PaymentStatus.PENDING.value and status.kind == ExternalStatusKind.REQUIRES_PAYMENT_METHOD
    )


def reconcile_open_payments() -> dict:
    """Feed the live gateway status of each open payment through confirmation.

    A failure for one payment is logged and skipped. Returns counts of
    payments checked, changed and skipped.
    """
    from storefront.checkout import confirm_payment

    gateway = get_gateway()
    summary = {"checked": 0, "updated": 0, "skipped": 0}

    for payment in open_payments():
        if not payment.gateway_reference:
            continue
        summary["checked"] += 1
        try:
            status = gateway.retrieve(payment.gateway_reference)
            if _awaiting_payer(payment, status):
                continue
            outcome = confirm_payment(payment.gateway_reference, status.raw)
        except (GatewayError, ConcurrentUpdate) as exc:
            logger.warning(
                "Payment reconciliation skipped",
                payment_id=str(payment.id),
                external_id=payment.gateway_reference,
                error=exc.message,
            )
            summary["skipped"] += 1
            continue

        if outcome["changed"]:
            summary["updated"] += 1

    logger.info("Open payments reconciled", **summary)
    return summary
