"""Application tests for the InventoryService — prices, stock reads and stock movements."""

import threading

from storefront.catalogue.combo import Combo
from storefront.domain import storefront
from storefront.inventory.service import InventoryService, StockLine
from storefront.shared.results import ErrorCode


def _variant_id(product, name="Red"):
    return next(str(v.id) for v in product.variants if v.name == name)


def _stock_of(product, name="Red"):
    return InventoryService().stock_of(product.id, _variant_id(product, name))


def _line(product, quantity, name="Red"):
    return StockLine(product_id=str(product.id), variant_id=_variant_id(product, name), quantity=quantity)


class TestPriceOf:
    def test_base_price_plus_modifier(self, make_product):
        product = make_product(price=100_000, variants=(("Red", 5, 0), ("Gold", 5, 25_000)))
        assert InventoryService.price_of(product, _variant_id(product, "Gold")) == 125_000
        assert InventoryService.price_of(product, _variant_id(product, "Red")) == 100_000

    def test_unresolved_variant_falls_back_to_base(self, make_product):
        product = make_product(price=100_000)
        assert InventoryService.price_of(product) == 100_000
        assert InventoryService.price_of(product, "unknown") == 100_000


class TestStockOf:
    def test_variant_stock(self, make_product):
        product = make_product(variants=(("Red", 5, 0), ("Gold", 3, 0)))
        assert _stock_of(product, "Gold") == 3

    def test_without_variant_sums_all_variants(self, make_product):
        product = make_product(variants=(("Red", 5, 0), ("Gold", 3, 0)))
        assert InventoryService().stock_of(product.id) == 8

    def test_missing_product_or_variant_is_zero(self, make_product):
        product = make_product()
        inventory = InventoryService()
        assert inventory.stock_of("missing") == 0
        assert inventory.stock_of("missing", "v1") == 0
        assert inventory.stock_of(product.id, "missing") == 0

    def test_variantless_product_is_zero(self, make_product):
        product = make_product(variants=())
        assert InventoryService().stock_of(product.id) == 0
        assert not InventoryService().is_available(product.id)

    def test_is_available(self, make_product):
        product = make_product(variants=(("Red", 1, 0), ("Gold", 0, 0)))
        inventory = InventoryService()
        assert inventory.is_available(product.id, _variant_id(product, "Red"))
        assert not inventory.is_available(product.id, _variant_id(product, "Gold"))


class TestAdjustStock:
    def test_adjust_down_and_up(self, make_product):
        product = make_product()
        inventory = InventoryService()

        assert inventory.adjust_stock(product.id, _variant_id(product), -2).value == 3
        assert inventory.adjust_stock(product.id, _variant_id(product), 4).value == 7
        assert _stock_of(product) == 7

    def test_missing_product_or_variant_is_not_found(self, make_product):
        product = make_product()
        inventory = InventoryService()
        assert inventory.adjust_stock("missing", "v1", 1).code == ErrorCode.NOT_FOUND
        assert inventory.adjust_stock(product.id, "missing", 1).code == ErrorCode.NOT_FOUND

    def test_refuses_to_go_negative(self, make_product):
        product = make_product()
        result = InventoryService().adjust_stock(product.id, _variant_id(product), -6)

        assert result.code == ErrorCode.INSUFFICIENT_STOCK
        assert result.error.details["available"] == 5
        assert result.error.details["requested"] == 6
        assert _stock_of(product) == 5

    def test_concurrent_deductions_never_oversell(self, make_product):
        product = make_product()
        variant_id = _variant_id(product)
        outcomes = []

        def deduct():
            with storefront.domain_context():
                outcomes.append(InventoryService().adjust_stock(product.id, variant_id, -1).ok)

        threads = [threading.Thread(target=deduct) for _ in range(12)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count(True) == 5
        assert _stock_of(product) == 0


class TestDeductAll:
    def test_deducts_every_line(self, make_product):
        bauble = make_product(name="Glass Bauble", variants=(("Red", 5, 0),))
        wreath = make_product(name="Pine Wreath", variants=(("Green", 4, 0),))

        result = InventoryService().deduct_all([_line(bauble, 2), _line(wreath, 4, "Green")])

        assert result.ok
        assert _stock_of(bauble) == 3
        assert _stock_of(wreath, "Green") == 0

    def test_one_short_line_deducts_nothing(self, make_product):
        bauble = make_product(name="Glass Bauble", variants=(("Red", 5, 0),))
        wreath = make_product(name="Pine Wreath", variants=(("Green", 1, 0),))

        result = InventoryService().deduct_all([_line(bauble, 2), _line(wreath, 3, "Green")])

        assert result.code == ErrorCode.INSUFFICIENT_STOCK
        assert result.error.details["product_id"] == str(wreath.id)
        assert result.error.details["available"] == 1
        assert _stock_of(bauble) == 5
        assert _stock_of(wreath, "Green") == 1

    def test_lines_for_the_same_variant_are_summed(self, make_product):
        product = make_product()

        result = InventoryService().deduct_all([_line(product, 3), _line(product, 3)])

        assert result.code == ErrorCode.INSUFFICIENT_STOCK
        assert result.error.details["requested"] == 6
        assert _stock_of(product) == 5

    def test_several_variants_of_one_product(self, make_product):
        product = make_product(variants=(("Red", 5, 0), ("Gold", 5, 0)))

        assert InventoryService().deduct_all([_line(product, 2), _line(product, 4, "Gold")]).ok
        assert _stock_of(product) == 3
        assert _stock_of(product, "Gold") == 1

    def test_line_without_variant_is_checked_but_not_deducted(self, make_product):
        product = make_product(variants=(("Red", 2, 0), ("Gold", 2, 0)))
        inventory = InventoryService()

        short = inventory.deduct_all([StockLine(product_id=str(product.id), variant_id=None, quantity=5)])
        assert short.code == ErrorCode.INSUFFICIENT_STOCK

        assert inventory.deduct_all([StockLine(product_id=str(product.id), variant_id=None, quantity=3)]).ok
        assert inventory.stock_of(product.id) == 4


class TestRestoreAll:
    def test_restores_every_line(self, make_product):
        product = make_product(variants=(("Red", 0, 0), ("Gold", 1, 0)))

        InventoryService().restore_all([_line(product, 2), _line(product, 3, "Gold")])

        assert _stock_of(product) == 2
        assert _stock_of(product, "Gold") == 4

    def test_deduct_then_restore_is_symmetric(self, make_product):
        product = make_product()
        lines = [_line(product, 4)]
        inventory = InventoryService()

        inventory.deduct_all(lines)
        inventory.restore_all(lines)

        assert _stock_of(product) == 5

    def test_missing_product_is_skipped(self, make_product):
        product = make_product()
        InventoryService().restore_all(
            [StockLine(product_id="missing", variant_id="v1", quantity=1), _line(product, 1)]
        )
        assert _stock_of(product) == 6


class TestComboInStock:
    def test_combo_in_stock(self, make_product):
        product = make_product()
        combo = Combo.create(
            name="Kit",
            slug="kit",
            items_data=[{"product_id": str(product.id), "variant_id": _variant_id(product), "quantity": 5}],
            discount_price=400_000,
        )
        assert InventoryService().combo_in_stock(combo)

        InventoryService().adjust_stock(product.id, _variant_id(product), -1)
        assert not InventoryService().combo_in_stock(combo)
