"""Domain events for the Product aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    """A new product was added to the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    slug = String(required=True)
    price = Integer(required=True)
    category_id = Identifier()
    created_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductDetailsUpdated:
    __version__ = 1

    product_id = Identifier(required=True)
    name = String()
    price = Integer()


@storefront.event(part_of="Product")
class VariantAdded:
    """A sellable color/size configuration was added to a product."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    name = String(required=True)
    variant_type = String(required=True)
    stock = Integer(required=True)
    price_modifier = Integer(required=True)


@storefront.event(part_of="Product")
class VariantStockAdjusted:
    """Stock of one variant moved by ``delta`` (negative for deductions)."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    delta = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    adjusted_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductAvailabilityChanged:
    """A product was activated or deactivated for sale."""

    __version__ = 1

    product_id = Identifier(required=True)
    active = Boolean(required=True)
    changed_at = DateTime(required=True)
