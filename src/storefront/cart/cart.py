"""Cart value objects handed to checkout.

Two explicit representations exist: the client-local draft cart (kept by the
browser between reloads, possibly stale) and the server-confirmed cart. Both
are plain values passed into the snapshot resolver; checkout never reaches
into ambient cart state.
"""

from dataclasses import dataclass, field
from enum import Enum


class CartOrigin(Enum):
    DRAFT = "draft"
    SERVER = "server"


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    variant_id: str | None = None


@dataclass(frozen=True)
class Cart:
    user_id: str
    lines: tuple[CartLine, ...] = field(default_factory=tuple)
    origin: CartOrigin = CartOrigin.SERVER

    @classmethod
    def from_lines(cls, user_id: str, lines: list[dict], origin: CartOrigin = CartOrigin.SERVER) -> "Cart":
        """Build a cart from dicts with product_id, quantity and an optional variant_id."""
        return cls(
            user_id=user_id,
            lines=tuple(
                CartLine(
                    product_id=line["product_id"],
                    quantity=line["quantity"],
                    variant_id=line.get("variant_id"),
                )
                for line in lines
            ),
            origin=origin,
        )

    @property
    def is_empty(self) -> bool:
        return not self.lines
