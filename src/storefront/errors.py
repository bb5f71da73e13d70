"""Error taxonomy for the storefront checkout core.

Every failure belongs to exactly one of four kinds:

- VALIDATION: malformed or unacceptable input, never retried automatically
- STATE_CONFLICT: the request is valid but the current state forbids it;
  the current state is attached so callers can poll or give up
- NOT_FOUND: the referenced order or payment does not exist for this user
- EXTERNAL: the payment provider failed; retryable

Each concrete error carries a stable ``code``, an actionable ``message`` and a
``details`` dict. The HTTP layer maps ``kind`` to a status code.
"""

from enum import Enum


class ErrorKind(Enum):
    VALIDATION = "validation"
    STATE_CONFLICT = "state_conflict"
    NOT_FOUND = "not_found"
    EXTERNAL = "external"


class StorefrontError(Exception):
    kind: ErrorKind
    code = "storefront_error"

    def __init__(self, message: str, **details) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def public_message(self) -> str:
        """Message safe to show to the end user."""
        return self.message

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "kind": self.kind.value,
            "message": self.public_message,
            **self.details,
        }


class InvalidRequest(StorefrontError):
    kind = ErrorKind.VALIDATION


class StateConflict(StorefrontError):
    kind = ErrorKind.STATE_CONFLICT


class NotFound(StorefrontError):
    kind = ErrorKind.NOT_FOUND


class ExternalFailure(StorefrontError):
    kind = ErrorKind.EXTERNAL


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
class EmptyCart(InvalidRequest):
    code = "empty_cart"

    def __init__(self) -> None:
        super().__init__("cart is empty")


class InvalidQuantity(InvalidRequest):
    code = "invalid_quantity"

    def __init__(self, product_id: str, quantity) -> None:
        super().__init__(
            f"quantity for product {product_id} must be at least 1, got {quantity}",
            product_id=product_id,
            quantity=quantity,
        )


class ProductUnavailable(InvalidRequest):
    code = "product_unavailable"

    def __init__(self, product_id: str, variant_id: str | None = None) -> None:
        target = f"variant {variant_id} of product {product_id}" if variant_id else f"product {product_id}"
        super().__init__(
            f"{target} is no longer available",
            product_id=product_id,
            variant_id=variant_id,
        )


class AddressRequired(InvalidRequest):
    code = "address_required"

    def __init__(self, address_id: str | None = None) -> None:
        if address_id:
            message = f"shipping address {address_id} could not be found"
        else:
            message = "a shipping address is required"
        super().__init__(message, address_id=address_id)


class InvalidDiscount(InvalidRequest):
    code = "invalid_discount"

    def __init__(self, discount, subtotal) -> None:
        super().__init__(
            f"discount {discount} must be between 0 and the subtotal {subtotal}",
            discount=str(discount),
            subtotal=str(subtotal),
        )


class InvalidShippingAmount(InvalidRequest):
    code = "invalid_shipping_amount"

    def __init__(self, shipping) -> None:
        super().__init__(f"shipping amount cannot be negative, got {shipping}", shipping=str(shipping))


class ItemNotInOrder(InvalidRequest):
    code = "item_not_in_order"

    def __init__(self, product_id: str, variant_id: str | None = None) -> None:
        super().__init__(
            f"product {product_id} is not part of this order",
            product_id=product_id,
            variant_id=variant_id,
        )


class AmountTooSmall(InvalidRequest):
    code = "amount_too_small"

    def __init__(self, amount: int, minimum: int, currency: str) -> None:
        super().__init__(
            f"amount too small: {amount} minor units of {currency.upper()}, minimum is {minimum}",
            amount=amount,
            minimum=minimum,
            currency=currency,
        )


class RefundExceedsPayment(InvalidRequest):
    code = "refund_exceeds_payment"

    def __init__(self, requested: int, refundable: int) -> None:
        super().__init__(
            f"refund of {requested} exceeds the remaining refundable amount {refundable}",
            requested=requested,
            refundable=refundable,
        )


# ---------------------------------------------------------------------------
# State conflicts
# ---------------------------------------------------------------------------
class IllegalTransition(StateConflict):
    code = "illegal_transition"

    def __init__(self, current_status: str, requested_status: str) -> None:
        super().__init__(
            f"order cannot move from {current_status} to {requested_status}",
            current_status=current_status,
            requested_status=requested_status,
        )


class OrderNotCancellable(StateConflict):
    code = "order_not_cancellable"

    def __init__(self, current_status: str) -> None:
        super().__init__(
            f"order cannot be cancelled in its current state: {current_status}",
            current_status=current_status,
        )


class OrderNotDelivered(StateConflict):
    code = "order_not_delivered"

    def __init__(self, current_status: str) -> None:
        super().__init__(
            f"order must be delivered to request a refund, current state: {current_status}",
            current_status=current_status,
        )


class RefundWindowExpired(StateConflict):
    code = "refund_window_expired"

    def __init__(self, days_since_delivery: int, window_days: int, current_status: str = "DELIVERED") -> None:
        super().__init__(
            f"refund requests must be made within {window_days} days of delivery "
            f"({days_since_delivery} days have passed)",
            days_since_delivery=days_since_delivery,
            window_days=window_days,
            current_status=current_status,
        )


class OrderNotPending(StateConflict):
    code = "order_not_pending"

    def __init__(self, current_status: str) -> None:
        super().__init__(
            f"order is not awaiting payment, current state: {current_status}",
            current_status=current_status,
        )


class PaymentInProgress(StateConflict):
    code = "payment_in_progress"

    def __init__(self, payment_id: str, current_status: str) -> None:
        super().__init__(
            f"payment {payment_id} for this order is still {current_status}",
            payment_id=payment_id,
            current_status=current_status,
        )


class NotGatewayProcessed(StateConflict):
    code = "not_gateway_processed"

    def __init__(self, payment_id: str, current_status: str) -> None:
        super().__init__(
            f"payment {payment_id} was not processed through the payment provider",
            payment_id=payment_id,
            current_status=current_status,
        )


class ConcurrentUpdate(StateConflict):
    code = "concurrent_update"

    def __init__(self, key: str) -> None:
        super().__init__(
            "another request is updating this order, please retry",
            order_id=key,
            current_status="LOCKED",
        )


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class OrderNotFound(NotFound):
    code = "order_not_found"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"order {order_id} not found", order_id=order_id)


class PaymentNotFound(NotFound):
    code = "payment_not_found"

    def __init__(self, reference: str) -> None:
        super().__init__(f"payment {reference} not found", reference=reference)


# ---------------------------------------------------------------------------
# External
# ---------------------------------------------------------------------------
class GatewayError(ExternalFailure):
    code = "gateway_error"

    @property
    def public_message(self) -> str:
        return "payment provider error, please retry"
