"""Stripe payment gateway adapter.

Wraps the stripe-python SDK: PaymentIntents for collection, Refunds, and
Customers. Every Stripe failure (card errors, API errors, network errors and
timeouts) is converted into a single GatewayError so callers can treat the
processor as one retryable dependency.
"""

import stripe
import structlog

from storefront.errors import GatewayError
from storefront.gateway.port import IntentHandle, PaymentGateway, RefundReceipt
from storefront.gateway.status import ExternalStatus

logger = structlog.get_logger(__name__)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    name = "STRIPE"

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        min_charge: dict[str, int] | None = None,
        default_min_charge: int = 50,
    ) -> None:
        super().__init__(min_charge=min_charge, default_min_charge=default_min_charge)
        if not api_key:
            raise ValueError("STRIPE_SECRET_KEY is not set")
        self.api_key = api_key
        self.timeout = timeout
        # Bounded per-call timeout; a timeout surfaces as APIConnectionError
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    def _call(self, operation: str, func, *args, **kwargs):
        try:
            return func(*args, api_key=self.api_key, **kwargs)
        except stripe.StripeError as exc:
            logger.warning(
                "Stripe call failed",
                operation=operation,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise GatewayError(str(exc) or f"Stripe {operation} failed", operation=operation) from exc

    def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        description: str | None = None,
        customer_ref: str | None = None,
    ) -> IntentHandle:
        self.ensure_chargeable(amount, currency)

        params = {
            "amount": amount,
            "currency": currency,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
            "setup_future_usage": "off_session",
        }
        if description:
            params["description"] = description
        if customer_ref:
            params["customer"] = customer_ref

        intent = self._call("create_intent", stripe.PaymentIntent.create, **params)
        return IntentHandle(external_id=intent.id, client_secret=intent.client_secret)

    def retrieve(self, external_id: str) -> ExternalStatus:
        intent = self._call("retrieve", stripe.PaymentIntent.retrieve, external_id)
        return ExternalStatus.parse(intent.status)

    def confirm(self, external_id: str) -> ExternalStatus:
        intent = self._call("confirm", stripe.PaymentIntent.confirm, external_id)
        return ExternalStatus.parse(intent.status)

    def refund(self, external_id: str, amount: int | None = None) -> RefundReceipt:
        params = {"payment_intent": external_id}
        if amount:
            params["amount"] = amount
        refund = self._call("refund", stripe.Refund.create, **params)
        return RefundReceipt(external_refund_id=refund.id, external_status=refund.status or "")

    def create_customer(
        self,
        email: str,
        name: str | None = None,
        phone: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        params = {}
        if email:
            params["email"] = email
        if name:
            params["name"] = name
        if phone:
            params["phone"] = phone
        if metadata:
            params["metadata"] = metadata
        customer = self._call("create_customer", stripe.Customer.create, **params)
        return customer.id
