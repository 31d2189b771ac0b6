"""Order service — checkout and the order status state machine.

Stock is untouched while an order is pending. It is deducted exactly once, on
PENDING → PROCESSING, through the inventory's two-phase check-then-deduct, and
given back exactly once, on PROCESSING → CANCELLED. No other transition moves
stock.

Lock order, outermost first: cart (checkout) or order (transitions), then the
order-code year or the stock of every product the order names, then the unit of
work. Locks are released only after the unit of work has committed.
"""

import structlog
from protean.core.unit_of_work import UnitOfWork
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.cart.service import CartService, shipping_fee_for
from storefront.config import settings
from storefront.inventory.service import InventoryService, StockLine, product_lock_keys
from storefront.order.codes import current_year, next_order_code
from storefront.order.order import CustomerInfo, Order, OrderStatus
from storefront.order.repository import OrderStats
from storefront.shared.actor import Actor
from storefront.shared.locks import cart_locks, order_locks, sequence_locks, stock_locks
from storefront.shared.pagination import Page
from storefront.shared.results import ErrorCode, Result, not_found

logger = structlog.get_logger(__name__)

# Transitions that move stock, and in which direction
_DEDUCTS = (OrderStatus.PENDING, OrderStatus.PROCESSING)
_RESTORES = (OrderStatus.PROCESSING, OrderStatus.CANCELLED)


def _coerce_status(value) -> OrderStatus | None:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).lower())
    except ValueError:
        return None


class OrderService:
    def __init__(self, cart_service: CartService | None = None, inventory: InventoryService | None = None):
        self.inventory = inventory or InventoryService()
        self.carts = cart_service or CartService(inventory=self.inventory)
        self.orders = current_domain.repository_for(Order)

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def create_order(self, session_id, customer, actor: Actor | None = None) -> Result:
        """Turn the session's cart into a pending order and empty the cart.

        The order, its code and the emptied cart are committed together; if
        storing the order fails nothing is committed and the cart keeps its
        items.
        """
        with cart_locks.hold(session_id):
            validation = self.carts.validate(session_id)
            if not validation.valid:
                return Result.failure(
                    ErrorCode.VALIDATION_FAILED,
                    validation.errors[0],
                    errors=list(validation.errors),
                )

            cart = self.carts.get_cart(session_id)
            if cart.is_empty:
                return Result.failure(ErrorCode.EMPTY_CART, "Cart is empty")

            if isinstance(customer, dict):
                customer = CustomerInfo(**customer)

            subtotal = cart.subtotal
            items_data = [
                {
                    "product_id": line.product_id,
                    "variant_id": line.variant_id,
                    "combo_id": line.combo_id,
                    "name": line.name,
                    "variant_name": line.variant_name,
                    "image": line.image,
                    "quantity": line.quantity,
                    "price": line.price,
                }
                for line in cart.items
            ]

            year = current_year()
            with sequence_locks.hold(year):
                with UnitOfWork():
                    order = Order.create(
                        order_code=next_order_code(year),
                        customer=customer,
                        items_data=items_data,
                        subtotal=subtotal,
                        shipping_fee=shipping_fee_for(subtotal),
                        user_id=actor.id if actor else None,
                    )
                    self.orders.add(order)
                    self.carts.clear_cart(session_id)

        logger.info(
            "order_created",
            order_id=str(order.id),
            order_code=order.order_code,
            session_id=session_id,
            total=order.total,
        )
        return Result.success(order)

    # -------------------------------------------------------------------
    # Status changes
    # -------------------------------------------------------------------
    def cancel_order(self, order_id, actor: Actor | None) -> Result:
        """Cancel on behalf of ``actor``.

        Customers may cancel their own orders while pending; admins may cancel
        any order while pending or processing.
        """
        with order_locks.hold(str(order_id)):
            order = self._load(order_id)
            if order is None:
                return not_found("Order", order_id)

            is_admin = actor is not None and actor.is_admin
            if not is_admin and (actor is None or not order.belongs_to(actor.id)):
                logger.warning("order_cancel_forbidden", order_id=str(order_id), actor=actor.id if actor else None)
                return Result.failure(ErrorCode.FORBIDDEN, "You cannot cancel this order", order_id=str(order_id))

            if not is_admin and order.current_status != OrderStatus.PENDING:
                return self._invalid_transition(order, OrderStatus.CANCELLED, "Only pending orders can be cancelled")

            result = self._transition(order, OrderStatus.CANCELLED, note="Order cancelled")

        if result.ok:
            logger.info("order_cancelled", order_id=str(order_id), by=actor.id, admin=is_admin)
        return result

    def update_status(self, order_id, target, note=None, actor: Actor | None = None) -> Result:
        """Back-office status change along the transition table."""
        if actor is None or not actor.is_admin:
            return Result.failure(ErrorCode.FORBIDDEN, "Only admins can change order status", order_id=str(order_id))

        target_status = _coerce_status(target)
        if target_status is None:
            return Result.failure(ErrorCode.VALIDATION_FAILED, f"Unknown order status {target!r}", status=str(target))

        with order_locks.hold(str(order_id)):
            order = self._load(order_id)
            if order is None:
                return not_found("Order", order_id)
            return self._transition(order, target_status, note=note)

    def _transition(self, order: Order, target: OrderStatus, note=None) -> Result:
        # Caller holds the order lock
        source = order.current_status
        if not order.can_transition_to(target):
            return self._invalid_transition(order, target)

        lines = [StockLine.of(item) for item in order.items]
        moves_stock = (source, target) in (_DEDUCTS, _RESTORES)
        with stock_locks.hold_all(product_lock_keys(lines) if moves_stock else []):
            with UnitOfWork():
                if (source, target) == _DEDUCTS:
                    deducted = self.inventory.deduct_all(lines)
                    if not deducted.ok:
                        logger.warning(
                            "order_transition_rejected",
                            order_id=str(order.id),
                            target=target.value,
                            reason=deducted.code.value,
                        )
                        return deducted
                elif (source, target) == _RESTORES:
                    self.inventory.restore_all(lines)

                order.transition_to(target, note=note)
                self.orders.add(order)

        logger.info(
            "order_status_changed",
            order_id=str(order.id),
            previous_status=source.value,
            new_status=target.value,
        )
        return Result.success(order)

    @staticmethod
    def _invalid_transition(order: Order, target: OrderStatus, message=None) -> Result:
        source = order.current_status
        logger.warning("order_transition_rejected", order_id=str(order.id), source=source.value, target=target.value)
        return Result.failure(
            ErrorCode.INVALID_TRANSITION,
            message or f"Cannot move order from {source.value} to {target.value}",
            order_id=str(order.id),
            source=source.value,
            target=target.value,
        )

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def _load(self, order_id) -> Order | None:
        try:
            return self.orders.get(str(order_id))
        except ObjectNotFoundError:
            return None

    def get_by_id(self, order_id) -> Result:
        order = self._load(order_id)
        return Result.success(order) if order else not_found("Order", order_id)

    def get_by_code(self, order_code) -> Result:
        order = self.orders.get_by_code(order_code)
        return Result.success(order) if order else not_found("Order", order_code)

    def get_my_orders(self, actor: Actor | None) -> list[Order]:
        """The actor's own orders, newest first; nothing for anonymous shoppers."""
        if actor is None:
            return []
        return self.orders.by_user(actor.id)

    def filter(
        self,
        status=None,
        user_id=None,
        date_from=None,
        date_to=None,
        search=None,
        page=1,
        limit=None,
    ) -> Page:
        return self.orders.filter(
            status=_coerce_status(status) if status else None,
            user_id=user_id,
            date_from=date_from,
            date_to=date_to,
            search=search,
            page=page,
            limit=limit or settings.DEFAULT_PAGE_SIZE,
        )

    def get_stats(self, date_from=None, date_to=None) -> OrderStats:
        return self.orders.stats(date_from=date_from, date_to=date_to)
