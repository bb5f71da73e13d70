"""Payment intent creation: command and handler.

Runs under the order's lock (see storefront.checkout), so the check for an
existing in-flight payment and the creation of a new one cannot interleave
with a second request for the same order.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import OrderNotPending, PaymentInProgress
from storefront.gateway import get_gateway
from storefront.order.order import OrderStatus
from storefront.order.pricing import to_minor_units
from storefront.order.queries import load_order
from storefront.payment.payment import Payment, PaymentStatus
from storefront.payment.queries import open_payments_for_order
from storefront.shopper.shopper import ensure_gateway_customer

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Payment")
class CreatePaymentIntent:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    amount = Float()  # major units; defaults to the order total
    currency = String(max_length=3)
    email = String(max_length=254)
    name = String(max_length=150)


def _intent_result(payment: Payment, reused: bool = False) -> dict:
    return {
        "payment_id": str(payment.id),
        "external_id": payment.gateway_reference,
        "client_secret": payment.client_secret,
        "amount": payment.amount,
        "currency": payment.currency,
        "reused": reused,
    }


@storefront.command_handler(part_of=Payment)
class CreatePaymentIntentHandler:
    @handle(CreatePaymentIntent)
    def create_payment_intent(self, command):
        order = load_order(command.order_id, command.user_id)
        if order.status != OrderStatus.PENDING.value:
            raise OrderNotPending(order.status)

        amount = to_minor_units(command.amount if command.amount is not None else order.pricing.total)
        currency = (command.currency or order.pricing.currency).lower()

        # A double-clicked "pay" gets the intent that is already waiting for it
        for existing in open_payments_for_order(order.id):
            if (
                existing.status == PaymentStatus.PENDING.value
                and existing.amount == amount
                and existing.currency == currency
            ):
                logger.info("Reusing pending payment intent", payment_id=str(existing.id), order_id=str(order.id))
                return _intent_result(existing, reused=True)
            raise PaymentInProgress(str(existing.id), existing.status)

        gateway = get_gateway()
        gateway.ensure_chargeable(amount, currency)
        customer_ref = ensure_gateway_customer(
            gateway,
            str(command.user_id),
            email=command.email,
            name=command.name,
        )

        intent = gateway.create_intent(
            amount,
            currency,
            metadata={
                "order_id": str(order.id),
                "order_number": order.order_number or "",
                "user_id": str(command.user_id),
            },
            description=f"Payment for order {order.order_number}",
            customer_ref=customer_ref,
        )

        payment = Payment.create(
            order_id=str(order.id),
            user_id=str(command.user_id),
            amount=amount,
            currency=currency,
            gateway=gateway.name,
            external_id=intent.external_id,
            client_secret=intent.client_secret,
        )
        current_domain.repository_for(Payment).add(payment)

        logger.info(
            "Payment intent created",
            payment_id=str(payment.id),
            order_id=str(order.id),
            external_id=intent.external_id,
            amount=amount,
            currency=currency,
        )
        return _intent_result(payment)
