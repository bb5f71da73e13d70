"""Payment aggregate: one attempt to collect an order's amount at the gateway.

The amount is fixed, in integer minor units, when the payment intent is
created and is never recomputed from the order afterwards. The gateway's own
record is referenced by ``gateway_reference`` (the external payment-intent id);
everything else the gateway tells us lives in the ``gateway_metadata`` blob.

State Machine:
    PENDING → PROCESSING → COMPLETED → REFUNDED
    PENDING | PROCESSING → FAILED | CANCELLED
    COMPLETED, FAILED, CANCELLED and REFUNDED are terminal for reconciliation.
"""

import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from storefront.domain import storefront
from storefront.gateway.status import ExternalStatus, ExternalStatusKind
from storefront.payment.events import PaymentIntentCreated, PaymentReconciled, RefundIssued

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class RefundStatus(Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATUSES = {
    PaymentStatus.COMPLETED,
    PaymentStatus.FAILED,
    PaymentStatus.CANCELLED,
    PaymentStatus.REFUNDED,
}

# External status → local payment status. UNRECOGNIZED has no entry.
_STATUS_MAP = {
    ExternalStatusKind.SUCCEEDED: PaymentStatus.COMPLETED,
    ExternalStatusKind.PROCESSING: PaymentStatus.PROCESSING,
    ExternalStatusKind.REQUIRES_PAYMENT_METHOD: PaymentStatus.FAILED,
    ExternalStatusKind.FAILED: PaymentStatus.FAILED,
    ExternalStatusKind.CANCELED: PaymentStatus.CANCELLED,
}


def target_status_for(external: ExternalStatus) -> PaymentStatus | None:
    return _STATUS_MAP.get(external.kind)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Payment")
class Refund:
    """Money returned against this payment, as confirmed by the gateway."""

    amount = Integer(required=True, min_value=1)  # minor units
    currency = String(required=True, max_length=3)
    reason = String(max_length=500)
    status = String(
        max_length=20,
        choices=RefundStatus,
        default=RefundStatus.COMPLETED.value,
    )
    external_refund_id = String(max_length=255)
    metadata = Text()  # JSON: raw gateway refund status, etc.
    created_at = DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Payment:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    amount = Integer(required=True, min_value=1)  # minor units
    currency = String(required=True, max_length=3)
    status = String(
        choices=PaymentStatus,
        default=PaymentStatus.PENDING.value,
    )
    method = String(max_length=50, default="card")
    gateway = String(max_length=50)
    gateway_reference = String(max_length=255)
    gateway_metadata = Text()  # JSON blob
    refunds = HasMany(Refund)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def refunds_cannot_exceed_amount(self):
        if self.amount is not None and self.refunded_total > self.amount:
            raise ValidationError({"refunds": ["Total refunded cannot exceed the payment amount"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_id,
        user_id,
        amount: int,
        currency: str,
        gateway: str,
        external_id: str,
        client_secret: str,
        method: str = "card",
    ):
        """Record a PENDING payment for an intent the gateway just created."""
        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            user_id=user_id,
            amount=amount,
            currency=currency.lower(),
            status=PaymentStatus.PENDING.value,
            method=method,
            gateway=gateway,
            gateway_reference=external_id,
            gateway_metadata=json.dumps(
                {
                    "external_id": external_id,
                    "client_secret": client_secret,
                    "created_at": now.isoformat(),
                }
            ),
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentIntentCreated(
                payment_id=str(payment.id),
                order_id=str(order_id),
                user_id=str(user_id),
                amount=amount,
                currency=payment.currency,
                gateway=gateway,
                external_id=external_id,
                created_at=now,
            )
        )
        return payment

    # -------------------------------------------------------------------
    # Gateway metadata
    # -------------------------------------------------------------------
    @property
    def metadata(self) -> dict:
        return json.loads(self.gateway_metadata) if self.gateway_metadata else {}

    def _merge_metadata(self, **values) -> None:
        self.gateway_metadata = json.dumps({**self.metadata, **values})

    @property
    def client_secret(self) -> str | None:
        return self.metadata.get("client_secret")

    # -------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> PaymentStatus:
        return PaymentStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.current_status in TERMINAL_STATUSES

    def reconcile(self, external: ExternalStatus) -> bool:
        """Apply a gateway-reported status. Returns True if the payment changed.

        Terminal payments never change here, whatever is reported, so
        duplicate and out-of-order reports are no-ops. Unrecognized statuses
        and reports of the status already held are no-ops as well.
        """
        if self.is_terminal:
            return False

        if not external.is_recognized:
            logger.warning(
                "Unrecognized gateway status",
                payment_id=str(self.id),
                external_status=external.raw,
            )
            return False

        target = target_status_for(external)
        if target == self.current_status:
            return False

        now = datetime.now(UTC)
        previous = self.status
        self.status = target.value
        self.updated_at = now
        self._merge_metadata(external_status=external.raw, confirmed_at=now.isoformat())

        self.raise_(
            PaymentReconciled(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                external_id=self.gateway_reference,
                external_status=external.raw,
                from_status=previous,
                to_status=self.status,
                reconciled_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    @property
    def refunded_total(self) -> int:
        return sum(refund.amount for refund in self.refunds if refund.status == RefundStatus.COMPLETED.value)

    @property
    def refundable_amount(self) -> int:
        return self.amount - self.refunded_total

    def record_refund(self, amount: int, reason, external_refund_id: str, external_status: str) -> Refund:
        """Record a refund the gateway has already accepted.

        Flips the payment to REFUNDED once the refunds cover the full amount.
        """
        now = datetime.now(UTC)
        refund = Refund(
            amount=amount,
            currency=self.currency,
            reason=reason,
            status=RefundStatus.COMPLETED.value,
            external_refund_id=external_refund_id,
            metadata=json.dumps({"external_status": external_status, "refunded_at": now.isoformat()}),
            created_at=now,
        )
        self.add_refunds(refund)

        if self.refunded_total >= self.amount:
            self.status = PaymentStatus.REFUNDED.value
        self.updated_at = now

        self.raise_(
            RefundIssued(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                refund_id=str(refund.id),
                amount=amount,
                currency=self.currency,
                external_refund_id=external_refund_id,
                fully_refunded=self.status == PaymentStatus.REFUNDED.value,
                issued_at=now,
            )
        )
        return refund
