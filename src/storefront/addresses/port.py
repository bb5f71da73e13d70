"""Address book port (abstract interface).

Checkout receives address ids; the address collaborator resolves them to full
records owned by the requesting user.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AddressRecord:
    id: str
    user_id: str
    full_name: str
    phone: str
    street: str
    city: str
    state: str
    postal_code: str
    country: str = "NG"

    def as_dict(self) -> dict:
        return {
            "full_name": self.full_name,
            "phone": self.phone,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }


class AddressBook(ABC):
    @abstractmethod
    def resolve(self, user_id: str, address_id: str) -> AddressRecord | None:
        """Return the user's address, or None if it does not exist or belongs to someone else."""
        ...
