"""Every (current, requested) status pair against the order state graph."""

import itertools

import pytest
from storefront.errors import IllegalTransition
from storefront.order.order import Order, OrderStatus, can_transition

LEGAL = {
    (OrderStatus.PENDING, OrderStatus.CONFIRMED),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.CONFIRMED, OrderStatus.PROCESSING),
    (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
    (OrderStatus.DELIVERED, OrderStatus.REFUNDED),
}

ALL_PAIRS = list(itertools.product(OrderStatus, OrderStatus))


def _order_in(status: OrderStatus) -> Order:
    order = Order.place(
        user_id="user-001",
        items_data=[{"product_id": "P1", "title": "Ankara Tote", "quantity": 1, "unit_price": 500.0}],
        pricing={"subtotal": 500.0, "tax": 0.0, "shipping": 0.0, "discount": 0.0, "total": 500.0, "currency": "ngn"},
        shipping_address_id="addr-001",
        shipping_address={"street": "12 Admiralty Way", "city": "Lekki", "country": "NG"},
    )
    order.status = status.value
    order._events.clear()
    return order


@pytest.mark.parametrize("current,target", [pair for pair in ALL_PAIRS if pair in LEGAL])
def test_legal_transitions_succeed(current, target):
    order = _order_in(current)
    order.transition_to(target)
    assert order.status == target.value
    assert order._events[-1].from_status == current.value
    assert order._events[-1].to_status == target.value


@pytest.mark.parametrize("current,target", [pair for pair in ALL_PAIRS if pair not in LEGAL])
def test_illegal_transitions_fail(current, target):
    order = _order_in(current)
    with pytest.raises(IllegalTransition) as exc:
        order.transition_to(target)
    assert exc.value.details == {"current_status": current.value, "requested_status": target.value}
    assert order.status == current.value
    assert order._events == []


def test_can_transition_matches_graph():
    assert {pair for pair in ALL_PAIRS if can_transition(*pair)} == LEGAL


def test_delivery_stamps_delivered_at():
    order = _order_in(OrderStatus.SHIPPED)
    assert order.delivered_at is None
    order.transition_to(OrderStatus.DELIVERED)
    assert order.delivered_at is not None
