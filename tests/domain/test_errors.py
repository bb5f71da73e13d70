"""Tests for the error taxonomy."""

import pytest
from storefront.errors import (
    AddressRequired,
    AmountTooSmall,
    ConcurrentUpdate,
    EmptyCart,
    ErrorKind,
    GatewayError,
    IllegalTransition,
    InvalidQuantity,
    OrderNotCancellable,
    OrderNotDelivered,
    OrderNotFound,
    OrderNotPending,
    PaymentInProgress,
    PaymentNotFound,
    RefundExceedsPayment,
    RefundWindowExpired,
)


@pytest.mark.parametrize(
    "error,kind",
    [
        (EmptyCart(), ErrorKind.VALIDATION),
        (InvalidQuantity("P1", 0), ErrorKind.VALIDATION),
        (AddressRequired(), ErrorKind.VALIDATION),
        (AmountTooSmall(10, 50, "ngn"), ErrorKind.VALIDATION),
        (RefundExceedsPayment(200, 100), ErrorKind.VALIDATION),
        (IllegalTransition("PENDING", "SHIPPED"), ErrorKind.STATE_CONFLICT),
        (OrderNotCancellable("SHIPPED"), ErrorKind.STATE_CONFLICT),
        (OrderNotDelivered("SHIPPED"), ErrorKind.STATE_CONFLICT),
        (RefundWindowExpired(45, 30), ErrorKind.STATE_CONFLICT),
        (OrderNotPending("CONFIRMED"), ErrorKind.STATE_CONFLICT),
        (PaymentInProgress("pay-1", "PROCESSING"), ErrorKind.STATE_CONFLICT),
        (ConcurrentUpdate("ord-1"), ErrorKind.STATE_CONFLICT),
        (OrderNotFound("ord-1"), ErrorKind.NOT_FOUND),
        (PaymentNotFound("pi_1"), ErrorKind.NOT_FOUND),
        (GatewayError("card_declined"), ErrorKind.EXTERNAL),
    ],
)
def test_every_error_has_a_kind(error, kind):
    assert error.kind is kind


@pytest.mark.parametrize(
    "error",
    [
        IllegalTransition("PENDING", "SHIPPED"),
        OrderNotCancellable("SHIPPED"),
        OrderNotDelivered("SHIPPED"),
        RefundWindowExpired(45, 30),
        OrderNotPending("CONFIRMED"),
        PaymentInProgress("pay-1", "PROCESSING"),
        ConcurrentUpdate("ord-1"),
    ],
)
def test_state_conflicts_carry_current_status(error):
    assert "current_status" in error.details


def test_actionable_message():
    error = OrderNotCancellable("SHIPPED")
    assert error.message == "order cannot be cancelled in its current state: SHIPPED"


def test_to_dict():
    error = RefundWindowExpired(45, 30)
    assert error.to_dict() == {
        "error": "refund_window_expired",
        "kind": "state_conflict",
        "message": error.message,
        "days_since_delivery": 45,
        "window_days": 30,
        "current_status": "DELIVERED",
    }


def test_gateway_error_hides_provider_details():
    error = GatewayError("Your card was declined (card_declined)")
    assert error.message == "Your card was declined (card_declined)"
    assert error.to_dict()["message"] == "payment provider error, please retry"
