"""In-memory address book for development and testing."""

from storefront.addresses.port import AddressBook, AddressRecord


class InMemoryAddressBook(AddressBook):
    def __init__(self) -> None:
        self._addresses: dict[str, AddressRecord] = {}

    def add(self, record: AddressRecord) -> AddressRecord:
        self._addresses[record.id] = record
        return record

    def resolve(self, user_id: str, address_id: str) -> AddressRecord | None:
        record = self._addresses.get(address_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    def clear(self) -> None:
        self._addresses.clear()
