"""Address book factory: get_address_book() / set_address_book() / reset_address_book()."""

from storefront.addresses.memory_adapter import InMemoryAddressBook
from storefront.addresses.port import AddressBook

_current_book: AddressBook | None = None


def get_address_book() -> AddressBook:
    global _current_book
    if _current_book is None:
        _current_book = InMemoryAddressBook()
    return _current_book


def set_address_book(book: AddressBook) -> None:
    global _current_book
    _current_book = book


def reset_address_book() -> None:
    global _current_book
    _current_book = None
