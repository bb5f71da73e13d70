"""Order pricing: derived once from the cart snapshot at checkout.

All arithmetic happens in Decimal and is rounded half-up to two places before
being stored, so the persisted total always equals
subtotal + tax + shipping - discount exactly.
"""

from decimal import ROUND_HALF_UP, Decimal

from storefront.errors import InvalidDiscount, InvalidShippingAmount

TWO_PLACES = Decimal("0.01")


def quantize(value) -> Decimal:
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def compute_pricing(
    subtotal: Decimal,
    currency: str,
    tax_rate: Decimal = Decimal("0"),
    shipping: Decimal | float = Decimal("0"),
    discount: Decimal | float = Decimal("0"),
) -> dict:
    """Compute the pricing breakdown for an order.

    Returns a dict ready to build an ``OrderPricing`` value object. Raises
    InvalidDiscount when the discount is negative or larger than the subtotal.
    """
    subtotal = quantize(subtotal)
    shipping = quantize(shipping or 0)
    discount = quantize(discount or 0)

    if discount < 0 or discount > subtotal:
        raise InvalidDiscount(discount, subtotal)
    if shipping < 0:
        raise InvalidShippingAmount(shipping)

    tax = quantize(subtotal * Decimal(str(tax_rate)))
    total = subtotal + tax + shipping - discount

    return {
        "subtotal": float(subtotal),
        "tax": float(tax),
        "shipping": float(shipping),
        "discount": float(discount),
        "total": float(total),
        "currency": currency.lower(),
    }


def to_minor_units(amount) -> int:
    """Convert a major-unit amount (naira, dollars) to integer minor units (kobo, cents)."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
