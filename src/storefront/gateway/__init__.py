"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (STOREFRONT_GATEWAY=fake, default)
- StripeGateway for production (STOREFRONT_GATEWAY=stripe)
"""

from storefront.config import DEFAULT_MIN_CHARGE, get_settings
from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def build_gateway() -> PaymentGateway:
    """Instantiate the gateway named in the settings."""
    settings = get_settings()
    if settings.gateway == "stripe":
        from storefront.gateway.stripe_adapter import StripeGateway

        return StripeGateway(
            api_key=settings.stripe_secret_key,
            timeout=settings.gateway_timeout,
            min_charge=settings.min_charge,
            default_min_charge=DEFAULT_MIN_CHARGE,
        )
    if settings.gateway == "fake":
        return FakeGateway(min_charge=settings.min_charge, default_min_charge=DEFAULT_MIN_CHARGE)
    raise ValueError(f"Unknown payment gateway: {settings.gateway}")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
