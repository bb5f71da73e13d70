"""Runtime settings for the storefront, read from the environment.

Provides get_settings() / override_settings() / reset_settings() so tests and
scripts can swap values without touching os.environ.
"""

import os
from dataclasses import dataclass, field, replace
from decimal import Decimal

_MIN_CHARGE_PREFIX = "STOREFRONT_MIN_CHARGE_"
DEFAULT_MIN_CHARGE = 50  # minor units; 50 kobo is the gateway floor for NGN


def _min_charges_from_env() -> dict[str, int]:
    return {
        key[len(_MIN_CHARGE_PREFIX) :].lower(): int(value)
        for key, value in os.environ.items()
        if key.startswith(_MIN_CHARGE_PREFIX)
    }


@dataclass(frozen=True)
class Settings:
    currency: str = "ngn"
    tax_rate: Decimal = Decimal("0")
    refund_window_days: int = 30
    min_charge: dict[str, int] = field(default_factory=dict)
    gateway: str = "fake"
    stripe_secret_key: str = ""
    gateway_timeout: float = 10.0
    lock_timeout: float = 30.0
    admin_token: str = ""  # empty disables the administrative endpoints

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            currency=os.getenv("STOREFRONT_CURRENCY", "ngn").lower(),
            tax_rate=Decimal(os.getenv("STOREFRONT_TAX_RATE", "0")),
            refund_window_days=int(os.getenv("STOREFRONT_REFUND_WINDOW_DAYS", "30")),
            min_charge=_min_charges_from_env(),
            gateway=os.getenv("STOREFRONT_GATEWAY", "fake").lower(),
            stripe_secret_key=os.getenv("STRIPE_SECRET_KEY", ""),
            gateway_timeout=float(os.getenv("STOREFRONT_GATEWAY_TIMEOUT", "10")),
            lock_timeout=float(os.getenv("STOREFRONT_LOCK_TIMEOUT", "30")),
            admin_token=os.getenv("STOREFRONT_ADMIN_TOKEN", ""),
        )


_current_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the active settings, loading them from the environment on first use."""
    global _current_settings
    if _current_settings is None:
        _current_settings = Settings.from_env()
    return _current_settings


def override_settings(**changes) -> Settings:
    """Replace selected settings values (useful for tests)."""
    global _current_settings
    _current_settings = replace(get_settings(), **changes)
    return _current_settings


def reset_settings() -> None:
    """Drop overrides; the next get_settings() re-reads the environment."""
    global _current_settings
    _current_settings = None
