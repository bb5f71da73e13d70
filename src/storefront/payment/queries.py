"""Payment lookups."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.errors import PaymentNotFound
from storefront.payment.payment import TERMINAL_STATUSES, Payment, PaymentStatus
from storefront.utils.paging import fetch_all


def _payments(**filters) -> list[Payment]:
    """Every matching payment, oldest first."""
    return fetch_all(current_domain.repository_for(Payment)._dao.query.filter(**filters).order_by("created_at"))


def load_payment(payment_id, user_id=None) -> Payment:
    """Load a payment, raising PaymentNotFound if it is missing or owned by someone else."""
    try:
        payment = current_domain.repository_for(Payment).get(str(payment_id))
    except ObjectNotFoundError:
        raise PaymentNotFound(str(payment_id))
    if user_id is not None and str(payment.user_id) != str(user_id):
        raise PaymentNotFound(str(payment_id))
    return payment


def find_by_reference(external_id: str, user_id=None) -> Payment:
    """The payment whose gateway reference is ``external_id``.

    Unknown references and references belonging to another user are both
    reported as PaymentNotFound.
    """
    matches = _payments(gateway_reference=str(external_id))
    if not matches:
        raise PaymentNotFound(str(external_id))
    payment = matches[0]
    if user_id is not None and str(payment.user_id) != str(user_id):
        raise PaymentNotFound(str(external_id))
    return payment


def payments_for_order(order_id) -> list[Payment]:
    """All payment attempts for an order, oldest first."""
    return _payments(order_id=str(order_id))


def open_payments_for_order(order_id) -> list[Payment]:
    return [payment for payment in payments_for_order(order_id) if not payment.is_terminal]


def completed_payment_for_order(order_id) -> Payment | None:
    """The most recent COMPLETED payment of an order, if any."""
    completed = [
        payment for payment in payments_for_order(order_id) if payment.status == PaymentStatus.COMPLETED.value
    ]
    return completed[-1] if completed else None


def open_payments() -> list[Payment]:
    """Every payment still awaiting a final outcome from the gateway."""
    open_statuses = [status for status in PaymentStatus if status not in TERMINAL_STATUSES]
    payments = []
    for status in open_statuses:
        payments.extend(_payments(status=status.value))
    return sorted(payments, key=lambda payment: payment.created_at)
