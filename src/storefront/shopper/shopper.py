"""Shopper: the local user record that caches the gateway customer reference.

Repeat checkouts by the same user reuse one gateway customer. The cache is a
plain check-then-set: two racing first checkouts may each create a customer
at the gateway, and the last write wins.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.gateway.port import PaymentGateway

logger = structlog.get_logger(__name__)


@storefront.aggregate
class Shopper:
    user_id = Identifier(identifier=True)
    email = String(max_length=254)
    name = String(max_length=150)
    phone = String(max_length=30)
    gateway_customer_id = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    def link_gateway_customer(self, customer_ref: str) -> None:
        self.gateway_customer_id = customer_ref
        self.updated_at = datetime.now(UTC)


def ensure_gateway_customer(
    gateway: PaymentGateway,
    user_id: str,
    email: str | None = None,
    name: str | None = None,
    phone: str | None = None,
) -> str:
    """Return the user's gateway customer reference, creating it on first use."""
    repo = current_domain.repository_for(Shopper)
    try:
        shopper = repo.get(str(user_id))
    except ObjectNotFoundError:
        now = datetime.now(UTC)
        shopper = Shopper(user_id=str(user_id), email=email, name=name, phone=phone, created_at=now, updated_at=now)

    if shopper.gateway_customer_id:
        return shopper.gateway_customer_id

    customer_ref = gateway.create_customer(
        email=shopper.email or email or "",
        name=shopper.name or name,
        phone=shopper.phone or phone,
        metadata={"user_id": str(user_id)},
    )
    if email and not shopper.email:
        shopper.email = email
    shopper.link_gateway_customer(customer_ref)
    repo.add(shopper)

    logger.info("Gateway customer created", user_id=str(user_id), customer_ref=customer_ref)
    return customer_ref
