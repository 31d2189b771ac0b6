"""Product aggregate root with its Variant entity.

A product is sold through its variants: each variant carries its own stock
count and a signed price modifier on top of the product's base price. A product
without variants has no sellable stock.
"""

import json
import re
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text

from storefront.catalogue.events import (
    ProductAvailabilityChanged,
    ProductCreated,
    ProductDetailsUpdated,
    VariantAdded,
    VariantStockAdjusted,
)
from storefront.domain import storefront
from storefront.shared.pagination import SCAN_LIMIT, Page, paginate

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


class VariantType(Enum):
    COLOR = "color"
    SIZE = "size"


@storefront.entity(part_of="Product")
class Variant:
    """A color or size configuration of a product with its own stock."""

    name = String(required=True, max_length=100)
    variant_type = String(required=True, choices=VariantType)
    value = String(max_length=100)
    stock = Integer(default=0, min_value=0)
    price_modifier = Integer(default=0)


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    slug = String(required=True, max_length=200, unique=True)
    description = Text()
    price = Integer(required=True, min_value=0)
    images = Text()  # JSON array of image references, display order
    category_id = Identifier()
    variants = HasMany(Variant)
    featured = Boolean(default=False)
    active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def slug_must_be_url_safe(self):
        if self.slug and not _SLUG_PATTERN.match(self.slug):
            raise ValidationError({"slug": ["Slug must be lowercase alphanumerics separated by single hyphens"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        name,
        slug,
        price,
        description=None,
        images=None,
        category_id=None,
        featured=False,
        active=True,
    ):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            slug=slug,
            price=price,
            description=description,
            images=json.dumps(list(images or [])),
            category_id=category_id,
            featured=featured,
            active=active,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                name=name,
                slug=slug,
                price=price,
                category_id=category_id,
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def image_list(self):
        return json.loads(self.images) if self.images else []

    @property
    def primary_image(self):
        images = self.image_list
        return images[0] if images else ""

    def find_variant(self, variant_id):
        if variant_id is None:
            return None
        return next((v for v in (self.variants or []) if str(v.id) == str(variant_id)), None)

    @property
    def total_stock(self):
        return sum(v.stock for v in (self.variants or []))

    # -------------------------------------------------------------------
    # Admin mutations
    # -------------------------------------------------------------------
    def update_details(self, name=None, description=None, price=None, images=None, category_id=None):
        if name is not None:
            self.name = name
        if description is not None:
            self.description = description
        if price is not None:
            self.price = price
        if images is not None:
            self.images = json.dumps(list(images))
        if category_id is not None:
            self.category_id = category_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductDetailsUpdated(
                product_id=str(self.id),
                name=self.name,
                price=self.price,
            )
        )

    def add_variant(self, name, variant_type, value=None, stock=0, price_modifier=0):
        variant = Variant(
            name=name,
            variant_type=variant_type,
            value=value,
            stock=stock,
            price_modifier=price_modifier,
        )
        self.add_variants(variant)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantAdded(
                product_id=str(self.id),
                variant_id=str(variant.id),
                name=name,
                variant_type=variant_type,
                stock=stock,
                price_modifier=price_modifier,
            )
        )
        return variant

    def adjust_variant_stock(self, variant_id, delta):
        """Move a variant's stock by ``delta``; never below zero."""
        variant = self.find_variant(variant_id)
        if variant is None:
            raise ValidationError({"variants": [f"Variant {variant_id} not found"]})

        previous = variant.stock
        new_stock = previous + delta
        if new_stock < 0:
            raise ValidationError({"stock": [f"Stock of variant {variant_id} cannot drop below zero ({previous} + {delta})"]})

        now = datetime.now(UTC)
        variant.stock = new_stock
        self.updated_at = now

        self.raise_(
            VariantStockAdjusted(
                product_id=str(self.id),
                variant_id=str(variant_id),
                delta=delta,
                previous_stock=previous,
                new_stock=new_stock,
                adjusted_at=now,
            )
        )
        return new_stock

    def set_featured(self, featured):
        self.featured = bool(featured)
        self.updated_at = datetime.now(UTC)

    def activate(self):
        self._set_active(True)

    def deactivate(self):
        self._set_active(False)

    def _set_active(self, active):
        if self.active == active:
            return
        now = datetime.now(UTC)
        self.active = active
        self.updated_at = now
        self.raise_(
            ProductAvailabilityChanged(
                product_id=str(self.id),
                active=active,
                changed_at=now,
            )
        )


@storefront.repository(part_of=Product)
class ProductRepository:
    """Catalogue queries over products."""

    def _scan(self, **criteria):
        return self._dao.query.filter(**criteria).limit(SCAN_LIMIT).all().items

    def get_by_slug(self, slug):
        return next(iter(self._scan(slug=slug)), None)

    def by_category(self, category_id):
        return [p for p in self._scan(category_id=category_id) if p.active]

    def featured(self, limit=None):
        products = [p for p in self._scan(featured=True) if p.active]
        return products[:limit] if limit else products

    def filter(
        self,
        category_id=None,
        min_price=None,
        max_price=None,
        search=None,
        featured=None,
        active=True,
        page=1,
        limit=12,
    ) -> Page:
        """Filter the catalogue and return one page; only active products unless ``active`` says otherwise."""
        products = self._scan()
        if active is not None:
            products = [p for p in products if p.active == active]
        if category_id:
            products = [p for p in products if p.category_id == category_id]
        if min_price is not None:
            products = [p for p in products if p.price >= min_price]
        if max_price is not None:
            products = [p for p in products if p.price <= max_price]
        if search:
            needle = search.lower()
            products = [
                p for p in products if needle in p.name.lower() or needle in (p.description or "").lower()
            ]
        if featured is not None:
            products = [p for p in products if p.featured == featured]

        products.sort(key=lambda p: p.created_at, reverse=True)
        return paginate(products, page, limit)
