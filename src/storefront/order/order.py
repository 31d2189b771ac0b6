"""Order aggregate — the immutable record a checked-out cart becomes.

An order freezes everything the shopper saw at checkout: the line items (with
their captured unit prices), the subtotal, the shipping fee and the total. None
of it is recomputed from the catalogue afterwards, so an order outlives price
changes and even the deletion of the products it names.

Only the status moves, along a fixed state machine:

    PENDING → PROCESSING → SHIPPED → DELIVERED
    PENDING → CANCELLED
    PROCESSING → CANCELLED

DELIVERED and CANCELLED are terminal. Every status change appends one entry to
the status history; the history is never rewritten.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.order.events import OrderPlaced, OrderStatusChanged


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def allowed_transitions(status: OrderStatus) -> set[OrderStatus]:
    return set(_VALID_TRANSITIONS[status])


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class CustomerInfo:
    """Who receives the order and where it is delivered, as typed at checkout."""

    full_name = String(required=True, max_length=255)
    phone = String(required=True, max_length=20)
    email = String(max_length=254)
    address = String(required=True, max_length=500)
    province = String(max_length=100)
    district = String(max_length=100)
    ward = String(max_length=100)
    note = Text()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A snapshot of one cart line at checkout."""

    product_id = Identifier(required=True)
    variant_id = Identifier()
    combo_id = Identifier()
    name = String(required=True, max_length=255)
    variant_name = String(max_length=100)
    image = String(max_length=500)
    quantity = Integer(required=True, min_value=1)
    price = Integer(required=True, min_value=0)

    @property
    def line_total(self):
        return self.price * self.quantity


@storefront.entity(part_of="Order")
class StatusChange:
    sequence = Integer(required=True, min_value=1)
    status = String(required=True, choices=OrderStatus)
    note = String(max_length=500)
    changed_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_code = String(required=True, max_length=30, unique=True)
    user_id = Identifier()  # Empty for guest checkouts
    customer = ValueObject(CustomerInfo, required=True)
    items = HasMany(OrderItem)
    subtotal = Integer(required=True, min_value=0)
    shipping_fee = Integer(default=0, min_value=0)
    total = Integer(required=True, min_value=0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    status_changes = HasMany(StatusChange)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_be_subtotal_plus_shipping(self):
        if self.total != self.subtotal + self.shipping_fee:
            raise ValidationError({"total": ["Total must equal subtotal plus shipping fee"]})

    @invariant.post
    def last_history_entry_must_match_status(self):
        history = self.status_history
        if history and history[-1].status != self.status:
            raise ValidationError({"status": ["Status history is out of step with the order status"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, order_code, customer, items_data, subtotal, shipping_fee, user_id=None, note=None):
        """Open a pending order from checkout data.

        Args:
            order_code: The human-facing code issued for this order.
            customer: A ``CustomerInfo`` or a dict of its fields.
            items_data: List of dicts with product_id, variant_id, combo_id,
                        name, variant_name, image, quantity, price.
            subtotal: Sum of the lines at their captured prices.
            shipping_fee: Fee charged on top of the subtotal.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        if isinstance(customer, dict):
            customer = CustomerInfo(**customer)

        order = cls(
            order_code=order_code,
            user_id=user_id,
            customer=customer,
            items=[OrderItem(**item) for item in items_data],
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            total=subtotal + shipping_fee,
            status=OrderStatus.PENDING.value,
            status_changes=[
                StatusChange(
                    sequence=1,
                    status=OrderStatus.PENDING.value,
                    note=note or "Order placed",
                    changed_at=now,
                )
            ],
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_code=order_code,
                user_id=str(user_id) if user_id else None,
                item_count=sum(item.quantity for item in order.items),
                subtotal=order.subtotal,
                shipping_fee=order.shipping_fee,
                total=order.total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def status_history(self):
        """History entries oldest first."""
        return sorted(self.status_changes or [], key=lambda change: change.sequence)

    @property
    def is_terminal(self):
        return not _VALID_TRANSITIONS[self.current_status]

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in _VALID_TRANSITIONS[self.current_status]

    def belongs_to(self, user_id) -> bool:
        return bool(self.user_id) and str(self.user_id) == str(user_id)

    # -------------------------------------------------------------------
    # State transition
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus):
        """Validate that the current state allows transition to target."""
        current = self.current_status
        if not self.can_transition_to(target):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def transition_to(self, target: OrderStatus, note=None):
        """Move to ``target`` and append the matching history entry."""
        self._assert_can_transition(target)

        previous = self.status
        now = datetime.now(UTC)
        next_sequence = len(self.status_changes or []) + 1
        with atomic_change(self):
            self.status = target.value
            self.add_status_changes(
                StatusChange(
                    sequence=next_sequence,
                    status=target.value,
                    note=note,
                    changed_at=now,
                )
            )
            self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_code=self.order_code,
                previous_status=previous,
                new_status=target.value,
                note=note,
                changed_at=now,
            )
        )
