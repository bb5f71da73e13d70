"""Configurable fake payment gateway for development and testing.

Simulates a PaymentIntent-style processor in memory. It can be configured at
runtime to fail, and tests can move an intent to any status to mimic what the
payer does out-of-band. Every call is recorded in ``calls``.
"""

from uuid import uuid4

from storefront.errors import GatewayError
from storefront.gateway.port import IntentHandle, PaymentGateway, RefundReceipt
from storefront.gateway.status import ExternalStatus


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    name = "FAKE"

    def __init__(self, min_charge: dict[str, int] | None = None, default_min_charge: int = 50) -> None:
        super().__init__(min_charge=min_charge, default_min_charge=default_min_charge)
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []
        self.intents: dict[str, dict] = {}
        self.customers: dict[str, dict] = {}

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def set_intent_status(self, external_id: str, status: str) -> None:
        """Move an intent to ``status`` as if the payer had acted on it."""
        self._intent(external_id)["status"] = status

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})

    def _check_available(self) -> None:
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

    def _intent(self, external_id: str) -> dict:
        intent = self.intents.get(external_id)
        if intent is None:
            raise GatewayError(f"No such payment intent: {external_id}")
        return intent

    def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        description: str | None = None,
        customer_ref: str | None = None,
    ) -> IntentHandle:
        self._record(
            "create_intent",
            amount=amount,
            currency=currency,
            metadata=dict(metadata),
            description=description,
            customer_ref=customer_ref,
        )
        self.ensure_chargeable(amount, currency)
        self._check_available()

        external_id = f"fake_pi_{uuid4().hex[:16]}"
        client_secret = f"{external_id}_secret_{uuid4().hex[:12]}"
        self.intents[external_id] = {
            "amount": amount,
            "currency": currency,
            "status": "requires_payment_method",
            "refunded": 0,
            "metadata": dict(metadata),
            "customer": customer_ref,
        }
        return IntentHandle(external_id=external_id, client_secret=client_secret)

    def retrieve(self, external_id: str) -> ExternalStatus:
        self._record("retrieve", external_id=external_id)
        self._check_available()
        return ExternalStatus.parse(self._intent(external_id)["status"])

    def confirm(self, external_id: str) -> ExternalStatus:
        self._record("confirm", external_id=external_id)
        self._check_available()
        intent = self._intent(external_id)
        if intent["status"] in ("requires_payment_method", "requires_confirmation", "processing"):
            intent["status"] = "succeeded"
        return ExternalStatus.parse(intent["status"])

    def refund(self, external_id: str, amount: int | None = None) -> RefundReceipt:
        self._record("refund", external_id=external_id, amount=amount)
        self._check_available()
        intent = self._intent(external_id)
        if intent["status"] != "succeeded":
            raise GatewayError(f"Payment intent {external_id} has not been captured")

        remaining = intent["amount"] - intent["refunded"]
        to_refund = remaining if amount is None else amount
        if to_refund <= 0 or to_refund > remaining:
            raise GatewayError(f"Refund amount {to_refund} is greater than the unrefunded amount {remaining}")

        intent["refunded"] += to_refund
        return RefundReceipt(external_refund_id=f"fake_re_{uuid4().hex[:16]}", external_status="succeeded")

    def create_customer(
        self,
        email: str,
        name: str | None = None,
        phone: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        self._record("create_customer", email=email, name=name, phone=phone)
        self._check_available()
        customer_ref = f"fake_cus_{uuid4().hex[:14]}"
        self.customers[customer_ref] = {"email": email, "name": name, "phone": phone, "metadata": metadata or {}}
        return customer_ref
