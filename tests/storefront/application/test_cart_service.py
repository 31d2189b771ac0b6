"""Application tests for the CartService — stock-checked mutations, totals and validation."""

import pytest
from protean import current_domain

from storefront.cart.service import CartService
from storefront.catalogue.combo import Combo
from storefront.catalogue.product import Product
from storefront.inventory.service import InventoryService
from storefront.shared.results import ErrorCode

SESSION = "sess-001"


def _variant_id(product, name="Red"):
    return next(str(v.id) for v in product.variants if v.name == name)


def _save(product):
    current_domain.repository_for(Product).add(product)


class TestAddItem:
    def test_add_captures_price_with_modifier(self, make_product):
        product = make_product(price=100_000, variants=(("Gold", 5, 20_000),))

        result = CartService().add_item(SESSION, product.id, _variant_id(product, "Gold"), quantity=2)

        assert result.ok
        line = result.value.items[0]
        assert line.price == 120_000
        assert line.quantity == 2
        assert line.variant_name == "Gold"
        assert CartService().get_subtotal(SESSION) == 240_000

    def test_unknown_product(self):
        result = CartService().add_item(SESSION, "missing", None, 1)
        assert result.code == ErrorCode.NOT_FOUND

    def test_more_than_stock(self, make_product):
        product = make_product()

        result = CartService().add_item(SESSION, product.id, _variant_id(product), quantity=6)

        assert result.code == ErrorCode.INSUFFICIENT_STOCK
        assert result.error.details["available"] == 5
        assert CartService().is_empty(SESSION)

    def test_merge_that_exceeds_stock_is_rejected(self, make_product):
        product = make_product()
        service = CartService()

        assert service.add_item(SESSION, product.id, _variant_id(product), 3).ok
        result = service.add_item(SESSION, product.id, _variant_id(product), 3)

        assert result.code == ErrorCode.INSUFFICIENT_STOCK
        assert service.get_items(SESSION)[0].quantity == 3

    def test_merge_within_stock(self, make_product):
        product = make_product()
        service = CartService()

        service.add_item(SESSION, product.id, _variant_id(product), 2)
        service.add_item(SESSION, product.id, _variant_id(product), 3)

        items = service.get_items(SESSION)
        assert len(items) == 1
        assert items[0].quantity == 5

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_non_positive_quantity(self, make_product, quantity):
        product = make_product()
        result = CartService().add_item(SESSION, product.id, _variant_id(product), quantity)
        assert result.code == ErrorCode.VALIDATION_FAILED

    def test_price_is_not_recomputed_after_catalogue_change(self, make_product):
        product = make_product(price=100_000)
        service = CartService()
        service.add_item(SESSION, product.id, _variant_id(product), 1)

        product = current_domain.repository_for(Product).get(product.id)
        product.update_details(price=150_000)
        _save(product)

        assert service.get_subtotal(SESSION) == 100_000

    def test_sessions_are_isolated(self, make_product):
        product = make_product()
        service = CartService()
        service.add_item("sess-a", product.id, _variant_id(product), 2)

        assert service.get_item_count("sess-a") == 2
        assert service.is_empty("sess-b")


class TestUpdateAndRemove:
    def test_update_quantity(self, make_product):
        product = make_product()
        service = CartService()
        service.add_item(SESSION, product.id, _variant_id(product), 1)

        result = service.update_quantity(SESSION, product.id, _variant_id(product), 4)

        assert result.ok
        assert service.get_item_count(SESSION) == 4

    def test_update_beyond_stock(self, make_product):
        product = make_product()
        service = CartService()
        service.add_item(SESSION, product.id, _variant_id(product), 1)

        result = service.update_quantity(SESSION, product.id, _variant_id(product), 9)

        assert result.code == ErrorCode.INSUFFICIENT_STOCK
        assert service.get_item_count(SESSION) == 1

    def test_update_to_zero_removes(self, make_product):
        product = make_product()
        service = CartService()
        service.add_item(SESSION, product.id, _variant_id(product), 1)

        assert service.update_quantity(SESSION, product.id, _variant_id(product), 0).ok
        assert service.is_empty(SESSION)

    def test_remove_item(self, make_product):
        product = make_product()
        service = CartService()
        service.add_item(SESSION, product.id, _variant_id(product), 1)

        cart = service.remove_item(SESSION, product.id, _variant_id(product))

        assert cart.is_empty

    def test_remove_absent_item_is_noop(self):
        cart = CartService().remove_item(SESSION, "missing")
        assert cart.is_empty

    def test_clear_cart_leaves_stock_alone(self, make_product):
        product = make_product()
        service = CartService()
        service.add_item(SESSION, product.id, _variant_id(product), 3)

        service.clear_cart(SESSION)

        assert service.is_empty(SESSION)
        assert InventoryService().stock_of(product.id, _variant_id(product)) == 5


class TestTotals:
    def test_shipping_fee_below_threshold(self, make_product):
        product = make_product(price=100_000)
        service = CartService()
        service.add_item(SESSION, product.id, _variant_id(product), 2)

        assert service.get_shipping_fee(SESSION) == 30_000
        assert service.get_total(SESSION) == 230_000

    def test_free_shipping_at_threshold(self, make_product):
        product = make_product(price=250_000)
        service = CartService()
        service.add_item(SESSION, product.id, _variant_id(product), 2)

        assert service.get_shipping_fee(SESSION) == 0
        assert service.get_total(SESSION) == 500_000

    def test_empty_cart(self):
        service = CartService()
        assert service.get_subtotal(SESSION) == 0
        assert service.get_item_count(SESSION) == 0
        assert service.is_empty(SESSION)


class TestValidate:
    def test_valid_cart(self, make_product):
        product = make_product()
        service = CartService()
        service.add_item(SESSION, product.id, _variant_id(product), 2)

        validation = service.validate(SESSION)

        assert validation.valid
        assert validation.errors == []

    def test_collects_every_stale_line(self, make_product):
        removed = make_product(name="Glass Bauble")
        inactive = make_product(name="Pine Wreath")
        short = make_product(name="Star Topper")
        service = CartService()
        for product in (removed, inactive, short):
            service.add_item(SESSION, product.id, _variant_id(product), 2)

        repo = current_domain.repository_for(Product)
        repo._dao.delete(repo.get(removed.id))
        inactive = repo.get(inactive.id)
        inactive.deactivate()
        repo.add(inactive)
        InventoryService().adjust_stock(short.id, _variant_id(short), -4)

        validation = service.validate(SESSION)

        assert not validation.valid
        assert len(validation.errors) == 3
        messages = " | ".join(validation.errors)
        assert "Glass Bauble\" no longer exists" in messages
        assert "Pine Wreath\" is no longer for sale" in messages
        assert "Star Topper\" has only 1 left" in messages


class TestAddCombo:
    def _combo(self, *products, active=True, discount_price=180_000):
        combo = Combo.create(
            name="Tree Kit",
            slug="tree-kit",
            items_data=[
                {"product_id": str(p.id), "variant_id": _variant_id(p), "quantity": q} for p, q in products
            ],
            discount_price=discount_price,
            original_price=200_000,
            active=active,
        )
        current_domain.repository_for(Combo).add(combo)
        return combo

    def test_adds_every_item_at_per_unit_price(self, make_product):
        bauble = make_product(name="Glass Bauble")
        wreath = make_product(name="Pine Wreath")
        combo = self._combo((bauble, 2), (wreath, 1))

        result = CartService().add_combo(SESSION, combo.id)

        assert result.ok
        items = CartService().get_items(SESSION)
        assert len(items) == 2
        assert {str(i.combo_id) for i in items} == {str(combo.id)}
        assert all(i.price == 60_000 for i in items)
        assert CartService().get_subtotal(SESSION) == 180_000

    def test_short_item_adds_nothing(self, make_product):
        bauble = make_product(name="Glass Bauble")
        wreath = make_product(name="Pine Wreath", variants=(("Red", 0, 0),))
        combo = self._combo((bauble, 2), (wreath, 1))

        result = CartService().add_combo(SESSION, combo.id)

        assert result.code == ErrorCode.INSUFFICIENT_STOCK
        assert CartService().is_empty(SESSION)

    def test_inactive_or_unknown_combo(self, make_product):
        combo = self._combo((make_product(), 1), active=False)
        assert CartService().add_combo(SESSION, combo.id).code == ErrorCode.NOT_FOUND
        assert CartService().add_combo(SESSION, "missing").code == ErrorCode.NOT_FOUND
