"""Tests for Order aggregate creation, cancellation and payment outcomes."""

import re
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from protean.exceptions import ValidationError
from storefront.errors import (
    InvalidQuantity,
    ItemNotInOrder,
    OrderNotCancellable,
    OrderNotDelivered,
    RefundWindowExpired,
)
from storefront.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from storefront.order.order import Order, OrderPricing, OrderStatus

ADDRESS = {
    "full_name": "Ada Obi",
    "phone": "+2348030000000",
    "street": "12 Admiralty Way",
    "city": "Lekki",
    "state": "Lagos",
    "postal_code": "106104",
    "country": "NG",
}


def _make_order(**overrides):
    defaults = {
        "user_id": "user-001",
        "items_data": [
            {"product_id": "P1", "variant_id": None, "title": "Ankara Tote", "quantity": 2, "unit_price": 500.0},
            {"product_id": "P2", "variant_id": "P2-M", "title": "Adire Shirt (Medium)", "quantity": 1, "unit_price": 12500.0},
        ],
        "pricing": {
            "subtotal": 13500.0,
            "tax": 0.0,
            "shipping": 1500.0,
            "discount": 500.0,
            "total": 14500.0,
            "currency": "ngn",
        },
        "shipping_address_id": "addr-001",
        "shipping_address": ADDRESS,
    }
    defaults.update(overrides)
    return Order.place(**defaults)


def _order_in(status: OrderStatus, **overrides):
    order = _make_order(**overrides)
    order.status = status.value
    if status in (OrderStatus.DELIVERED, OrderStatus.REFUNDED):
        order.delivered_at = datetime.now(UTC)
    order._events.clear()
    return order


class TestOrderPlacement:
    def test_place_sets_pending_status(self):
        order = _make_order()
        assert order.status == OrderStatus.PENDING.value

    def test_place_copies_items(self):
        order = _make_order()
        assert len(order.items) == 2
        assert order.items[0].title == "Ankara Tote"
        assert order.items[0].quantity == 2
        assert order.items[0].unit_price == 500.0

    def test_place_sets_pricing(self):
        order = _make_order()
        assert order.pricing.subtotal == 13500.0
        assert order.pricing.total == 14500.0
        assert order.pricing.currency == "ngn"

    def test_order_number_format(self):
        order = _make_order()
        assert re.fullmatch(r"ORD-\d{13}-[A-Z0-9]{6}", order.order_number)

    def test_billing_address_defaults_to_shipping(self):
        order = _make_order()
        assert str(order.billing_address_id) == "addr-001"

    def test_explicit_billing_address(self):
        order = _make_order(billing_address_id="addr-009")
        assert str(order.billing_address_id) == "addr-009"

    def test_shipping_address_snapshot(self):
        order = _make_order()
        assert order.shipping_address.city == "Lekki"
        assert order.shipping_address.country == "NG"

    def test_place_raises_order_placed_event(self):
        order = _make_order()
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.item_count == 3
        assert event.total == 14500.0

    def test_total_must_equal_components(self):
        with pytest.raises(ValidationError):
            _make_order(
                pricing={
                    "subtotal": 1000.0,
                    "tax": 0.0,
                    "shipping": 0.0,
                    "discount": 0.0,
                    "total": 900.0,
                    "currency": "ngn",
                }
            )

    def test_pricing_value_object_defaults(self):
        pricing = OrderPricing()
        assert pricing.total == 0.0
        assert pricing.currency == "ngn"


class TestOrderCancellation:
    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.CONFIRMED])
    def test_cancel_from_cancellable_states(self, status):
        order = _order_in(status)
        order.cancel(reason="Changed my mind")
        assert order.status == OrderStatus.CANCELLED.value
        assert order.notes == "Cancelled: Changed my mind"

    def test_cancel_without_reason(self):
        order = _make_order()
        order.cancel()
        assert order.notes == "Cancelled by user"

    def test_cancel_appends_to_existing_notes(self):
        order = _make_order(notes="Leave at the gate")
        order.cancel(reason="Ordered twice")
        assert order.notes == "Leave at the gate\nCancelled: Ordered twice"

    def test_cancel_raises_events(self):
        order = _order_in(OrderStatus.CONFIRMED)
        order.cancel(reason="Too slow")
        assert isinstance(order._events[0], OrderStatusChanged)
        cancelled = order._events[-1]
        assert isinstance(cancelled, OrderCancelled)
        assert cancelled.previous_status == "CONFIRMED"

    @pytest.mark.parametrize(
        "status",
        [
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
            OrderStatus.REFUNDED,
        ],
    )
    def test_cancel_rejected_and_state_untouched(self, status):
        order = _order_in(status)
        with pytest.raises(OrderNotCancellable) as exc:
            order.cancel(reason="Please")
        assert exc.value.details["current_status"] == status.value
        assert f"current state: {status.value}" in exc.value.message
        assert order.status == status.value
        assert order.notes is None
        assert order._events == []


class TestPaymentOutcome:
    def test_completed_confirms_pending_order(self):
        order = _make_order()
        assert order.apply_payment_outcome("COMPLETED") is True
        assert order.status == OrderStatus.CONFIRMED.value

    def test_cancelled_cancels_pending_order(self):
        order = _make_order()
        assert order.apply_payment_outcome("CANCELLED") is True
        assert order.status == OrderStatus.CANCELLED.value
        assert "payment was cancelled" in order.notes

    @pytest.mark.parametrize("payment_status", ["PENDING", "PROCESSING", "FAILED"])
    def test_other_outcomes_leave_order_pending(self, payment_status):
        order = _make_order()
        assert order.apply_payment_outcome(payment_status) is False
        assert order.status == OrderStatus.PENDING.value

    def test_outcome_ignored_once_order_left_pending(self):
        order = _order_in(OrderStatus.SHIPPED)
        assert order.apply_payment_outcome("CANCELLED") is False
        assert order.status == OrderStatus.SHIPPED.value


class TestRefundEligibility:
    def test_within_window(self):
        order = _order_in(OrderStatus.DELIVERED)
        order.delivered_at = datetime.now(UTC) - timedelta(days=10)
        assert order.ensure_refundable(30) == 10

    def test_on_last_day_of_window(self):
        order = _order_in(OrderStatus.DELIVERED)
        order.delivered_at = datetime.now(UTC) - timedelta(days=30, hours=1)
        assert order.ensure_refundable(30) == 30

    def test_window_expired_reports_days(self):
        order = _order_in(OrderStatus.DELIVERED)
        order.delivered_at = datetime.now(UTC) - timedelta(days=45)
        with pytest.raises(RefundWindowExpired) as exc:
            order.ensure_refundable(30)
        assert exc.value.details["days_since_delivery"] == 45
        assert exc.value.details["current_status"] == "DELIVERED"

    def test_naive_delivery_timestamp(self):
        order = _order_in(OrderStatus.DELIVERED)
        order.delivered_at = datetime.now(UTC).replace(tzinfo=None) - timedelta(days=3)
        assert order.ensure_refundable(30) == 3

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.SHIPPED, OrderStatus.CANCELLED])
    def test_not_delivered(self, status):
        order = _order_in(status)
        with pytest.raises(OrderNotDelivered) as exc:
            order.ensure_refundable(30)
        assert exc.value.details["current_status"] == status.value


class TestAmountForItems:
    def test_full_quantity_by_default(self):
        order = _make_order()
        assert order.amount_for_items([{"product_id": "P1"}]) == Decimal("1000")

    def test_partial_quantity(self):
        order = _make_order()
        assert order.amount_for_items([{"product_id": "P1", "quantity": 1}]) == Decimal("500")

    def test_variant_must_match(self):
        order = _make_order()
        amount = order.amount_for_items([{"product_id": "P2", "variant_id": "P2-M"}])
        assert amount == Decimal("12500")
        with pytest.raises(ItemNotInOrder):
            order.amount_for_items([{"product_id": "P2", "variant_id": "P2-L"}])

    def test_unknown_product(self):
        order = _make_order()
        with pytest.raises(ItemNotInOrder):
            order.amount_for_items([{"product_id": "P9"}])

    def test_quantity_above_ordered(self):
        order = _make_order()
        with pytest.raises(InvalidQuantity):
            order.amount_for_items([{"product_id": "P1", "quantity": 3}])
