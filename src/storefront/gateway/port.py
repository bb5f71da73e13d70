"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement. This
enables swapping between FakeGateway (dev/test) and StripeGateway (production)
without changing any domain or application code.

Every method either returns a complete result or raises GatewayError; callers
never see partial success. Amounts are integers in the currency's minor unit
(kobo, cents).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from storefront.errors import AmountTooSmall
from storefront.gateway.status import ExternalStatus


@dataclass(frozen=True)
class IntentHandle:
    """A gateway-side payment intent: its id and the secret the payer-facing flow needs."""

    external_id: str
    client_secret: str


@dataclass(frozen=True)
class RefundReceipt:
    external_refund_id: str
    external_status: str


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name = "gateway"

    def __init__(self, min_charge: dict[str, int] | None = None, default_min_charge: int = 50) -> None:
        self.min_charge = {currency.lower(): amount for currency, amount in (min_charge or {}).items()}
        self.default_min_charge = default_min_charge

    def minimum_for(self, currency: str) -> int:
        return self.min_charge.get(currency.lower(), self.default_min_charge)

    def ensure_chargeable(self, amount: int, currency: str) -> None:
        """Reject amounts below the smallest unit the processor accepts for the currency."""
        minimum = self.minimum_for(currency)
        if amount < minimum:
            raise AmountTooSmall(amount, minimum, currency)

    @abstractmethod
    def create_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        description: str | None = None,
        customer_ref: str | None = None,
    ) -> IntentHandle:
        """Create a payment intent for a fixed amount."""
        ...

    @abstractmethod
    def retrieve(self, external_id: str) -> ExternalStatus:
        """Read the current status of an intent. Safe to repeat."""
        ...

    @abstractmethod
    def confirm(self, external_id: str) -> ExternalStatus:
        """Ask the gateway to confirm an intent and return its resulting status."""
        ...

    @abstractmethod
    def refund(self, external_id: str, amount: int | None = None) -> RefundReceipt:
        """Refund a captured intent, fully when ``amount`` is None."""
        ...

    @abstractmethod
    def create_customer(
        self,
        email: str,
        name: str | None = None,
        phone: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Create a gateway-side customer and return its reference."""
        ...
