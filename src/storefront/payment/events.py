"""Domain events for the Payment aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Payment")
class PaymentIntentCreated:
    """The gateway issued a payment intent and a PENDING payment was recorded."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    amount = Integer(required=True)  # minor units
    currency = String(required=True, max_length=3)
    gateway = String(max_length=50)
    external_id = String(required=True, max_length=255)
    created_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class PaymentReconciled:
    """A gateway-reported status moved the payment to a new status."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    external_id = String(required=True, max_length=255)
    external_status = String(max_length=50)
    from_status = String(required=True, max_length=20)
    to_status = String(required=True, max_length=20)
    reconciled_at = DateTime(required=True)


@storefront.event(part_of="Payment")
class RefundIssued:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    refund_id = Identifier(required=True)
    amount = Integer(required=True)  # minor units
    currency = String(required=True, max_length=3)
    external_refund_id = String(max_length=255)
    fully_refunded = Boolean(default=False)
    issued_at = DateTime(required=True)
