"""Cart service — keeps one shopper session's cart consistent with stock.

Every mutation re-checks current stock through the InventoryService, and
``validate`` re-walks the whole cart right before checkout so a cart that went
stale (product removed or deactivated, stock taken by another session) is
caught before an order is created.

Each call names the cart explicitly by ``session_id``; mutations of one session's
cart are serialized.
"""

from dataclasses import dataclass, field

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.catalogue.combo import Combo
from storefront.config import settings
from storefront.inventory.service import InventoryService, StockLine
from storefront.shared.locks import cart_locks
from storefront.shared.results import ErrorCode, Result, not_found

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)


def shipping_fee_for(subtotal: int) -> int:
    """Flat fee below the free-shipping threshold, free at or above it."""
    if subtotal >= settings.FREE_SHIPPING_THRESHOLD:
        return 0
    return settings.SHIPPING_FEE


class CartService:
    def __init__(self, inventory: InventoryService | None = None):
        self.carts = current_domain.repository_for(Cart)
        self.inventory = inventory or InventoryService()

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------
    def get_cart(self, session_id) -> Cart:
        """The session's cart; an unsaved empty cart when the session has none yet."""
        try:
            return self.carts.get(session_id)
        except ObjectNotFoundError:
            return Cart.create(session_id=session_id)

    def get_items(self, session_id):
        return list(self.get_cart(session_id).items or [])

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_item(self, session_id, product_id, variant_id=None, quantity=1) -> Result:
        """Add ``quantity`` of a product (variant) at today's price, or merge into the matching line."""
        if quantity < 1:
            return Result.failure(ErrorCode.VALIDATION_FAILED, "Quantity must be at least 1", quantity=quantity)

        with cart_locks.hold(session_id):
            product = self.inventory.get_product(product_id)
            if product is None:
                return not_found("Product", product_id)

            cart = self.get_cart(session_id)
            existing = cart.find_line(product_id, variant_id)
            wanted = quantity + (existing.quantity if existing else 0)
            available = self.inventory.stock_of(product_id, variant_id)
            if available < wanted:
                return Result.failure(
                    ErrorCode.INSUFFICIENT_STOCK,
                    "Requested quantity exceeds available stock",
                    product_id=str(product_id),
                    variant_id=variant_id,
                    name=product.name,
                    requested=wanted,
                    available=available,
                )

            variant = product.find_variant(variant_id)
            cart.add_line(
                product_id=product_id,
                variant_id=variant_id,
                quantity=quantity,
                price=self.inventory.price_of(product, variant_id),
                name=product.name,
                image=product.primary_image,
                variant_name=variant.name if variant else None,
            )
            self.carts.add(cart)

        logger.info("cart_item_added", session_id=session_id, product_id=str(product_id), quantity=quantity)
        return Result.success(cart)

    def add_combo(self, session_id, combo_id) -> Result:
        """Add every item of a combo, priced at the combo's per-unit discount price.

        All items are checked first; nothing is added unless the whole combo fits.
        """
        try:
            combo = current_domain.repository_for(Combo).get(combo_id)
        except ObjectNotFoundError:
            return not_found("Combo", combo_id)
        if not combo.active:
            return not_found("Combo", combo_id)

        with cart_locks.hold(session_id):
            cart = self.get_cart(session_id)
            products = {}
            lines = []
            for item in combo.items or []:
                product = products.get(item.product_id) or self.inventory.get_product(item.product_id)
                if product is None:
                    return not_found("Product", item.product_id)
                products[item.product_id] = product
                existing = cart.find_line(item.product_id, item.variant_id, combo.id)
                lines.append(
                    StockLine(
                        product_id=str(item.product_id),
                        variant_id=str(item.variant_id) if item.variant_id else None,
                        quantity=item.quantity + (existing.quantity if existing else 0),
                        name=product.name,
                    )
                )

            shortage = self.inventory.find_shortage(lines)
            if shortage is not None:
                return shortage

            unit_price = combo.price_per_unit
            for item in combo.items or []:
                product = products[item.product_id]
                variant = product.find_variant(item.variant_id)
                cart.add_line(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    combo_id=combo.id,
                    quantity=item.quantity,
                    price=unit_price,
                    name=product.name,
                    image=product.primary_image,
                    variant_name=variant.name if variant else None,
                )
            self.carts.add(cart)

        logger.info("cart_combo_added", session_id=session_id, combo_id=str(combo_id))
        return Result.success(cart)

    def update_quantity(self, session_id, product_id, variant_id, new_quantity, combo_id=None) -> Result:
        """Set a line's quantity against current stock; zero or less removes the line."""
        with cart_locks.hold(session_id):
            cart = self.get_cart(session_id)
            if new_quantity <= 0:
                cart.remove_line(product_id, variant_id, combo_id)
                self.carts.add(cart)
                return Result.success(cart)

            available = self.inventory.stock_of(product_id, variant_id)
            if available < new_quantity:
                line = cart.find_line(product_id, variant_id, combo_id)
                return Result.failure(
                    ErrorCode.INSUFFICIENT_STOCK,
                    "Requested quantity exceeds available stock",
                    product_id=str(product_id),
                    variant_id=variant_id,
                    name=line.name if line else str(product_id),
                    requested=new_quantity,
                    available=available,
                )

            cart.set_quantity(product_id, variant_id, new_quantity, combo_id)
            self.carts.add(cart)
        return Result.success(cart)

    def remove_item(self, session_id, product_id, variant_id=None, combo_id=None) -> Cart:
        with cart_locks.hold(session_id):
            cart = self.get_cart(session_id)
            cart.remove_line(product_id, variant_id, combo_id)
            self.carts.add(cart)
        return cart

    def clear_cart(self, session_id) -> None:
        """Empty the cart. Stock is untouched: items in a cart were never deducted."""
        with cart_locks.hold(session_id):
            cart = self.get_cart(session_id)
            cart.clear()
            self.carts.add(cart)

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def get_subtotal(self, session_id) -> int:
        """Sum of captured price x quantity over all lines."""
        return self.get_cart(session_id).subtotal

    def get_shipping_fee(self, session_id) -> int:
        return shipping_fee_for(self.get_subtotal(session_id))

    def get_total(self, session_id) -> int:
        subtotal = self.get_subtotal(session_id)
        return subtotal + shipping_fee_for(subtotal)

    def get_item_count(self, session_id) -> int:
        return self.get_cart(session_id).item_count

    def is_empty(self, session_id) -> bool:
        return self.get_item_count(session_id) == 0

    # -------------------------------------------------------------------
    # Pre-checkout validation
    # -------------------------------------------------------------------
    def validate(self, session_id) -> CartValidation:
        """Re-check every line against the live catalogue, collecting one error per stale line."""
        errors = []
        for line in self.get_items(session_id):
            product = self.inventory.get_product(line.product_id)
            if product is None:
                errors.append(f'Product "{line.name}" no longer exists')
                continue
            if not product.active:
                errors.append(f'Product "{line.name}" is no longer for sale')
                continue
            available = self.inventory.stock_of(line.product_id, line.variant_id)
            if available < line.quantity:
                errors.append(f'Product "{line.name}" has only {available} left')

        if errors:
            logger.info("cart_validation_failed", session_id=session_id, errors=errors)
        return CartValidation(valid=not errors, errors=errors)
