import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Reset collaborators and clear all data after every test"""
    from storefront.addresses import reset_address_book
    from storefront.catalog import reset_catalog
    from storefront.config import reset_settings
    from storefront.gateway import reset_gateway

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_catalog()
    reset_address_book()
    reset_settings()


@pytest.fixture()
def catalog():
    from storefront.catalog import set_catalog
    from storefront.catalog.memory_adapter import InMemoryCatalog

    catalog = InMemoryCatalog()
    catalog.add_product("P1", "Ankara Tote", 500)
    catalog.add_product(
        "P2",
        "Adire Shirt",
        12000,
        variants=[
            {"id": "P2-M", "name": "Medium", "price": 12500},
            {"id": "P2-L", "name": "Large"},
            {"id": "P2-XL", "name": "Extra Large", "price": 13000, "is_active": False},
        ],
    )
    catalog.add_product("P3", "Discontinued Mug", 2000, is_active=False)
    set_catalog(catalog)
    return catalog


@pytest.fixture()
def address_book():
    from storefront.addresses import set_address_book
    from storefront.addresses.memory_adapter import InMemoryAddressBook
    from storefront.addresses.port import AddressRecord

    book = InMemoryAddressBook()
    book.add(
        AddressRecord(
            id="addr-001",
            user_id="user-001",
            full_name="Ada Obi",
            phone="+2348030000000",
            street="12 Admiralty Way",
            city="Lekki",
            state="Lagos",
            postal_code="106104",
        )
    )
    book.add(
        AddressRecord(
            id="addr-002",
            user_id="user-002",
            full_name="Tunde Bello",
            phone="+2348031111111",
            street="4 Aminu Kano Crescent",
            city="Wuse II",
            state="Abuja",
            postal_code="904101",
        )
    )
    set_address_book(book)
    return book


@pytest.fixture()
def gateway():
    from storefront.gateway import set_gateway
    from storefront.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def storefront_setup(catalog, address_book, gateway):
    """Catalog, address book and fake gateway wired together."""
    return {"catalog": catalog, "address_book": address_book, "gateway": gateway}


@pytest.fixture()
def place_order(storefront_setup):
    """Place an order for user-001 (or user-002) through the checkout entry point."""
    from storefront import checkout

    def _place(user_id="user-001", cart=None, **kwargs):
        kwargs.setdefault("shipping_address_id", "addr-001" if user_id == "user-001" else "addr-002")
        return checkout.place_order(user_id, cart or [{"product_id": "P1", "quantity": 2}], **kwargs)

    return _place


@pytest.fixture()
def paid_order(place_order, gateway):
    """A CONFIRMED order with a COMPLETED payment. Returns (order, intent)."""
    from storefront import checkout

    def _paid(user_id="user-001", cart=None, **kwargs):
        order = place_order(user_id=user_id, cart=cart, **kwargs)
        intent = checkout.create_payment_intent(user_id, str(order.id))
        gateway.set_intent_status(intent["external_id"], "succeeded")
        checkout.confirm_payment(intent["external_id"], "succeeded", user_id=user_id)
        return checkout.get_order(user_id, str(order.id)), intent

    return _paid


@pytest.fixture()
def delivered_order(paid_order):
    """A DELIVERED order with a COMPLETED payment. Returns (order, intent)."""
    from storefront import checkout

    def _delivered(user_id="user-001", cart=None, **kwargs):
        order, intent = paid_order(user_id=user_id, cart=cart, **kwargs)
        for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
            order = checkout.advance_order(str(order.id), status)
        return order, intent

    return _delivered
