"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a pending order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_code = String(required=True)
    user_id = Identifier()
    item_count = Integer(required=True)
    subtotal = Integer(required=True)
    shipping_fee = Integer(required=True)
    total = Integer(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    order_code = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    note = String()
    changed_at = DateTime(required=True)
