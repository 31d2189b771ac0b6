"""Inventory service — single source of truth for prices and stock.

Answers "can this quantity be fulfilled" and performs every stock mutation.
Variants are persisted as part of their Product aggregate, so stock is
serialized per product: every read-then-write of a product's variant stock runs
under that product's lock.

Callers that stage stock changes inside a UnitOfWork must take the product
locks *before* opening the unit of work (see ``OrderService``) so the locks are
still held when the changes commit. The locks are re-entrant.
"""

from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.shared.locks import stock_locks
from storefront.shared.results import ErrorCode, Result, not_found

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockLine:
    """A quantity of one product (and optionally one variant) to check or move."""

    product_id: str
    variant_id: str | None
    quantity: int
    name: str = ""

    @classmethod
    def of(cls, item) -> "StockLine":
        """Build from any cart/order/combo line exposing product_id, variant_id and quantity."""
        return cls(
            product_id=str(item.product_id),
            variant_id=str(item.variant_id) if item.variant_id else None,
            quantity=item.quantity,
            name=getattr(item, "name", "") or "",
        )


def product_lock_keys(lines: Iterable[StockLine]) -> list[str]:
    return sorted({line.product_id for line in lines})


class InventoryService:
    def __init__(self):
        self.products = current_domain.repository_for(Product)

    def get_product(self, product_id) -> Product | None:
        """The product, or None when it does not exist."""
        if not product_id:
            return None
        try:
            return self.products.get(str(product_id))
        except ObjectNotFoundError:
            return None

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @staticmethod
    def price_of(product: Product, variant_id=None) -> int:
        """Base price plus the variant's modifier when the variant resolves."""
        variant = product.find_variant(variant_id)
        if variant is None:
            return product.price
        return product.price + variant.price_modifier

    def stock_of(self, product_id, variant_id=None) -> int:
        product = self.get_product(product_id)
        if product is None:
            return 0
        if variant_id:
            variant = product.find_variant(variant_id)
            return variant.stock if variant else 0
        return product.total_stock

    def is_available(self, product_id, variant_id=None) -> bool:
        return self.stock_of(product_id, variant_id) > 0

    def combo_in_stock(self, combo) -> bool:
        """Whether every item of a combo can be supplied in the combo's quantities."""
        return self.find_shortage([StockLine.of(item) for item in (combo.items or [])]) is None

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def adjust_stock(self, product_id, variant_id, delta: int) -> Result:
        """Add ``delta`` to one variant's stock as a single locked read-modify-write.

        A missing product or variant is a ``NOT_FOUND`` outcome. A deduction that
        would take stock below zero is refused with ``INSUFFICIENT_STOCK`` and
        nothing is written.
        """
        with stock_locks.hold(str(product_id)):
            product = self.get_product(product_id)
            if product is None:
                return not_found("Product", product_id)
            variant = product.find_variant(variant_id)
            if variant is None:
                return not_found("Variant", variant_id)
            if variant.stock + delta < 0:
                return Result.failure(
                    ErrorCode.INSUFFICIENT_STOCK,
                    f'"{product.name}" has only {variant.stock} left',
                    product_id=str(product_id),
                    variant_id=str(variant_id),
                    name=product.name,
                    requested=-delta,
                    available=variant.stock,
                )

            new_stock = product.adjust_variant_stock(variant_id, delta)
            self.products.add(product)

        logger.info(
            "stock_adjusted",
            product_id=str(product_id),
            variant_id=str(variant_id),
            delta=delta,
            new_stock=new_stock,
        )
        return Result.success(new_stock)

    def find_shortage(self, lines: list[StockLine]) -> Result | None:
        """Check every line against current stock; the first shortfall as a failure, else None.

        Lines naming the same product/variant are summed before comparing, so two
        lines that each fit but together exceed stock are caught here.
        """
        requested: OrderedDict[tuple[str, str | None], int] = OrderedDict()
        names: dict[tuple[str, str | None], str] = {}
        for line in lines:
            key = (line.product_id, line.variant_id)
            requested[key] = requested.get(key, 0) + line.quantity
            names.setdefault(key, line.name)

        for (product_id, variant_id), quantity in requested.items():
            available = self.stock_of(product_id, variant_id)
            if available < quantity:
                name = names[(product_id, variant_id)] or product_id
                return Result.failure(
                    ErrorCode.INSUFFICIENT_STOCK,
                    f'"{name}" does not have enough stock ({available} left)',
                    product_id=product_id,
                    variant_id=variant_id,
                    name=name,
                    requested=quantity,
                    available=available,
                )
        return None

    def deduct_all(self, lines: list[StockLine]) -> Result:
        """Two-phase deduction: verify every line, then deduct every line.

        Nothing is deducted unless every line passes. Lines without a variant
        are checked against the product's total stock but have no variant to
        deduct from, so they are skipped in the commit phase.
        """
        with stock_locks.hold_all(product_lock_keys(lines)):
            shortage = self.find_shortage(lines)
            if shortage is not None:
                logger.warning("stock_deduction_rejected", **shortage.error.details)
                return shortage

            self._apply(lines, sign=-1)
        return Result.success()

    def restore_all(self, lines: list[StockLine]) -> None:
        """Return every line's quantity to stock. Only increases, so no pre-check."""
        with stock_locks.hold_all(product_lock_keys(lines)):
            self._apply(lines, sign=1)

    def _apply(self, lines: list[StockLine], sign: int) -> None:
        # One load and one save per product
        by_product: OrderedDict[str, list[StockLine]] = OrderedDict()
        for line in lines:
            if line.variant_id:
                by_product.setdefault(line.product_id, []).append(line)

        for product_id, product_lines in by_product.items():
            product = self.get_product(product_id)
            if product is None:
                logger.warning("stock_adjustment_skipped", product_id=product_id, reason="product not found")
                continue
            for line in product_lines:
                if product.find_variant(line.variant_id) is None:
                    logger.warning(
                        "stock_adjustment_skipped",
                        product_id=product_id,
                        variant_id=line.variant_id,
                        reason="variant not found",
                    )
                    continue
                product.adjust_variant_stock(line.variant_id, sign * line.quantity)
            self.products.add(product)
            logger.info(
                "stock_adjusted",
                product_id=product_id,
                changes=[(line.variant_id, sign * line.quantity) for line in product_lines],
            )
