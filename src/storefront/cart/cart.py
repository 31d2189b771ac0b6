"""Cart aggregate — one shopper session's in-progress item list.

Lines are denormalized snapshots: the price, name and image are captured when a
line is first added and never recomputed from the catalogue on read. A line is
identified by the triple (product_id, variant_id, combo_id); adding a matching
triple increases the existing line's quantity instead of adding a new line.

The cart never touches stock. Stock is only deducted when an order moves to
processing.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from storefront.domain import storefront


def line_key(product_id, variant_id=None, combo_id=None):
    return (
        str(product_id),
        str(variant_id) if variant_id else None,
        str(combo_id) if combo_id else None,
    )


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    combo_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    price = Integer(required=True, min_value=0)  # Unit price captured at add time
    name = String(required=True, max_length=255)
    image = String(max_length=500)
    variant_name = String(max_length=100)
    added_at = DateTime()

    @property
    def key(self):
        return line_key(self.product_id, self.variant_id, self.combo_id)

    @property
    def line_total(self):
        return self.price * self.quantity


@storefront.aggregate
class Cart:
    session_id = String(identifier=True, required=True, max_length=255)
    customer_id = Identifier()  # Empty for guest sessions
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, session_id, customer_id=None):
        now = datetime.now(UTC)
        return cls(session_id=session_id, customer_id=customer_id, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def find_line(self, product_id, variant_id=None, combo_id=None):
        key = line_key(product_id, variant_id, combo_id)
        return next((i for i in (self.items or []) if i.key == key), None)

    @property
    def subtotal(self):
        return sum(i.line_total for i in (self.items or []))

    @property
    def item_count(self):
        return sum(i.quantity for i in (self.items or []))

    @property
    def is_empty(self):
        return not self.items

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_line(
        self,
        product_id,
        quantity,
        price,
        name,
        variant_id=None,
        combo_id=None,
        image=None,
        variant_name=None,
    ):
        """Append a line, or add ``quantity`` to the line with the same identity triple."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self.find_line(product_id, variant_id, combo_id)
        if existing:
            existing.quantity += quantity
            line = existing
        else:
            line = CartItem(
                product_id=product_id,
                variant_id=variant_id,
                combo_id=combo_id,
                quantity=quantity,
                price=price,
                name=name,
                image=image or "",
                variant_name=variant_name,
                added_at=now,
            )
            self.add_items(line)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                session_id=self.session_id,
                product_id=str(product_id),
                variant_id=str(variant_id) if variant_id else None,
                combo_id=str(combo_id) if combo_id else None,
                quantity=quantity,
                line_quantity=line.quantity,
                price=line.price,
            )
        )
        return line

    def set_quantity(self, product_id, variant_id, new_quantity, combo_id=None):
        """Set a line's quantity; zero or less removes the line. Missing lines are ignored."""
        if new_quantity <= 0:
            self.remove_line(product_id, variant_id, combo_id)
            return

        line = self.find_line(product_id, variant_id, combo_id)
        if line is None:
            return

        previous = line.quantity
        line.quantity = new_quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartQuantityUpdated(
                session_id=self.session_id,
                product_id=str(product_id),
                variant_id=str(variant_id) if variant_id else None,
                previous_quantity=previous,
                new_quantity=new_quantity,
            )
        )

    def remove_line(self, product_id, variant_id=None, combo_id=None):
        line = self.find_line(product_id, variant_id, combo_id)
        if line is None:
            return

        self.remove_items(line)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartItemRemoved(
                session_id=self.session_id,
                product_id=str(product_id),
                variant_id=str(variant_id) if variant_id else None,
                combo_id=str(combo_id) if combo_id else None,
            )
        )

    def clear(self):
        for line in list(self.items or []):
            self.remove_items(line)

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(CartCleared(session_id=self.session_id, cleared_at=now))
