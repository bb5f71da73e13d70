"""Read helpers for orders, always scoped to the owning user."""

from datetime import timedelta
from decimal import Decimal

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.config import get_settings
from storefront.errors import OrderNotFound
from storefront.order.order import Order, OrderStatus
from storefront.order.pricing import quantize
from storefront.utils.paging import fetch_all


def load_order(order_id, user_id=None) -> Order:
    """Load an order, raising OrderNotFound if it is missing or owned by someone else."""
    try:
        order = current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        raise OrderNotFound(str(order_id))
    if user_id is not None and str(order.user_id) != str(user_id):
        raise OrderNotFound(str(order_id))
    return order


def orders_for_user(user_id, status: str | None = None) -> list[Order]:
    """A user's orders, newest first, optionally filtered by status."""
    filters = {"user_id": str(user_id)}
    if status:
        filters["status"] = status
    query = current_domain.repository_for(Order)._dao.query.filter(**filters).order_by("-created_at")
    return fetch_all(query)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------
# Paid orders that were neither cancelled nor refunded
_SPENDING_STATES = {OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED}


def order_stats(user_id) -> dict:
    """Order counts per status and the total spent, for one user."""
    orders = orders_for_user(user_id)
    by_status = {status.value: 0 for status in OrderStatus}
    spent = Decimal("0")
    for order in orders:
        by_status[order.status] += 1
        if order.current_status in _SPENDING_STATES:
            spent += Decimal(str(order.pricing.total))
    return {
        "total_orders": len(orders),
        "by_status": by_status,
        "total_spent": float(quantize(spent)),
        "currency": get_settings().currency,
    }


# ---------------------------------------------------------------------------
# Tracking
# ---------------------------------------------------------------------------
_FULFILMENT_PATH = [
    (OrderStatus.PENDING, "Order Placed"),
    (OrderStatus.CONFIRMED, "Order Confirmed"),
    (OrderStatus.PROCESSING, "Processing"),
    (OrderStatus.SHIPPED, "Shipped"),
    (OrderStatus.DELIVERED, "Delivered"),
]

# Expected time between consecutive fulfilment steps
STEP_ESTIMATE = timedelta(hours=2)


def _step(label, completed, date=None, estimated_date=None) -> dict:
    return {"step": label, "completed": completed, "date": date, "estimated_date": estimated_date}


def tracking_for(order: Order) -> dict:
    """Timeline of the order's progress along fulfilment.

    Only the placement, the latest change and the delivery are timestamped on
    the order, so other completed steps carry no date. Steps still ahead carry
    an estimate, STEP_ESTIMATE apart, counted from the latest change.
    """
    status = order.current_status
    placed = _step("Order Placed", True, date=order.created_at)

    if status == OrderStatus.CANCELLED:
        return {"current_step": "Cancelled", "steps": [placed, _step("Cancelled", True, date=order.updated_at)]}

    reached = OrderStatus.DELIVERED if status == OrderStatus.REFUNDED else status
    reached_index = [step_status for step_status, _ in _FULFILMENT_PATH].index(reached)
    anchor = order.updated_at or order.created_at

    steps = [placed]
    for index, (step_status, label) in enumerate(_FULFILMENT_PATH[1:], start=1):
        if index > reached_index:
            steps.append(_step(label, False, estimated_date=anchor + STEP_ESTIMATE * (index - reached_index)))
        elif step_status == OrderStatus.DELIVERED:
            steps.append(_step(label, True, date=order.delivered_at))
        elif index == reached_index:
            steps.append(_step(label, True, date=order.updated_at))
        else:
            steps.append(_step(label, True))

    current_step = _FULFILMENT_PATH[reached_index][1]
    if status == OrderStatus.REFUNDED:
        steps.append(_step("Refunded", True, date=order.updated_at))
        current_step = "Refunded"
    return {"current_step": current_step, "steps": steps}
