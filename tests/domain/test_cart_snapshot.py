"""Tests for cart values and the snapshot resolver."""

from decimal import Decimal

import pytest
from storefront.cart.cart import Cart, CartOrigin
from storefront.cart.snapshot import resolve_snapshot
from storefront.catalog.memory_adapter import InMemoryCatalog
from storefront.errors import EmptyCart, InvalidQuantity, ProductUnavailable


@pytest.fixture()
def products():
    catalog = InMemoryCatalog()
    catalog.add_product("P1", "Ankara Tote", 500)
    catalog.add_product(
        "P2",
        "Adire Shirt",
        "12000.00",
        variants=[
            {"id": "P2-M", "name": "Medium", "price": "12500.00"},
            {"id": "P2-L", "name": "Large"},
            {"id": "P2-XL", "name": "Extra Large", "is_active": False},
        ],
    )
    catalog.add_product("P3", "Discontinued Mug", 2000, is_active=False)
    return catalog


def _cart(*lines, origin=CartOrigin.SERVER):
    return Cart.from_lines("user-001", list(lines), origin=origin)


class TestCart:
    def test_from_lines(self):
        cart = _cart({"product_id": "P1", "quantity": 2}, {"product_id": "P2", "variant_id": "P2-M", "quantity": 1})
        assert len(cart.lines) == 2
        assert cart.lines[1].variant_id == "P2-M"
        assert cart.origin == CartOrigin.SERVER

    def test_empty(self):
        assert _cart().is_empty


class TestResolveSnapshot:
    def test_scenario_two_units_at_500(self, products):
        snapshot = resolve_snapshot(_cart({"product_id": "P1", "quantity": 2}), products, "ngn")
        assert snapshot.subtotal == Decimal("1000")
        assert snapshot.item_count == 2
        assert snapshot.lines[0].unit_price == Decimal("500")
        assert snapshot.currency == "ngn"

    def test_variant_price_wins(self, products):
        snapshot = resolve_snapshot(_cart({"product_id": "P2", "variant_id": "P2-M", "quantity": 1}), products, "ngn")
        line = snapshot.lines[0]
        assert line.unit_price == Decimal("12500.00")
        assert line.title == "Adire Shirt (Medium)"

    def test_variant_without_price_uses_base_price(self, products):
        snapshot = resolve_snapshot(_cart({"product_id": "P2", "variant_id": "P2-L", "quantity": 1}), products, "ngn")
        assert snapshot.lines[0].unit_price == Decimal("12000.00")

    def test_line_order_preserved(self, products):
        snapshot = resolve_snapshot(
            _cart({"product_id": "P2", "quantity": 1}, {"product_id": "P1", "quantity": 3}),
            products,
            "ngn",
        )
        assert [line.product_id for line in snapshot.lines] == ["P2", "P1"]
        assert snapshot.subtotal == Decimal("13500.00")

    def test_empty_cart(self, products):
        with pytest.raises(EmptyCart):
            resolve_snapshot(_cart(), products, "ngn")

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_invalid_quantity(self, products, quantity):
        with pytest.raises(InvalidQuantity) as exc:
            resolve_snapshot(_cart({"product_id": "P1", "quantity": quantity}), products, "ngn")
        assert exc.value.details["quantity"] == quantity

    def test_inactive_product(self, products):
        with pytest.raises(ProductUnavailable) as exc:
            resolve_snapshot(_cart({"product_id": "P3", "quantity": 1}), products, "ngn")
        assert exc.value.details["product_id"] == "P3"

    def test_unknown_product(self, products):
        with pytest.raises(ProductUnavailable):
            resolve_snapshot(_cart({"product_id": "P404", "quantity": 1}), products, "ngn")

    @pytest.mark.parametrize("variant_id", ["P2-XL", "P2-XXL"])
    def test_unavailable_variant(self, products, variant_id):
        with pytest.raises(ProductUnavailable) as exc:
            resolve_snapshot(_cart({"product_id": "P2", "variant_id": variant_id, "quantity": 1}), products, "ngn")
        assert exc.value.details["variant_id"] == variant_id

    def test_stale_draft_is_revalidated(self, products):
        draft = _cart({"product_id": "P1", "quantity": 1}, origin=CartOrigin.DRAFT)
        products.add_product("P1", "Ankara Tote", 500, is_active=False)
        with pytest.raises(ProductUnavailable):
            resolve_snapshot(draft, products, "ngn")

    def test_snapshot_does_not_follow_later_price_changes(self, products):
        snapshot = resolve_snapshot(_cart({"product_id": "P1", "quantity": 2}), products, "ngn")
        products.add_product("P1", "Ankara Tote", 900)
        assert snapshot.subtotal == Decimal("1000")

    def test_as_item_data(self, products):
        snapshot = resolve_snapshot(_cart({"product_id": "P1", "quantity": 2}), products, "ngn")
        assert snapshot.lines[0].as_item_data() == {
            "product_id": "P1",
            "variant_id": None,
            "title": "Ankara Tote",
            "quantity": 2,
            "unit_price": 500.0,
        }
