"""Domain events for the Cart aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A product (or a combo's product) was added to a cart, or merged into an existing line."""

    __version__ = 1

    session_id = String(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    combo_id = Identifier()
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)
    price = Integer(required=True)


@storefront.event(part_of="Cart")
class CartQuantityUpdated:
    __version__ = 1

    session_id = String(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    session_id = String(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    combo_id = Identifier()


@storefront.event(part_of="Cart")
class CartCleared:
    """Every line was removed, either by the shopper or by checkout."""

    __version__ = 1

    session_id = String(required=True)
    cleared_at = DateTime(required=True)
