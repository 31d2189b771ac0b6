"""Combo aggregate — a discounted bundle of product variants."""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.shared.pagination import SCAN_LIMIT, Page, paginate


@storefront.entity(part_of="Combo")
class ComboItem:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True, min_value=1)


@storefront.aggregate
class Combo:
    name = String(required=True, max_length=255)
    slug = String(required=True, max_length=200, unique=True)
    description = Text()
    images = Text()  # JSON array
    items = HasMany(ComboItem)
    original_price = Integer(default=0, min_value=0)
    discount_price = Integer(required=True, min_value=0)
    discount_percent = Integer(default=0, min_value=0, max_value=100)
    featured = Boolean(default=False)
    active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        name,
        slug,
        items_data,
        discount_price,
        original_price=0,
        description=None,
        images=None,
        featured=False,
        active=True,
    ):
        """Create a combo from a list of ``{product_id, variant_id, quantity}`` dicts."""
        if not items_data:
            raise ValidationError({"items": ["A combo needs at least one item"]})

        now = datetime.now(UTC)
        discount_percent = 0
        if original_price:
            discount_percent = max(0, round((original_price - discount_price) * 100 / original_price))

        combo = cls(
            name=name,
            slug=slug,
            description=description,
            images=json.dumps(list(images or [])),
            original_price=original_price,
            discount_price=discount_price,
            discount_percent=discount_percent,
            featured=featured,
            active=active,
            created_at=now,
            updated_at=now,
        )
        for item in items_data:
            combo.add_items(
                ComboItem(
                    product_id=item["product_id"],
                    variant_id=item.get("variant_id"),
                    quantity=item.get("quantity", 1),
                )
            )
        return combo

    @property
    def unit_count(self):
        return sum(i.quantity for i in (self.items or []))

    @property
    def price_per_unit(self):
        """The discount price spread evenly over every unit in the bundle."""
        units = self.unit_count
        return self.discount_price // units if units else 0


@storefront.repository(part_of=Combo)
class ComboRepository:
    def get_by_slug(self, slug):
        return next(iter(self._dao.query.filter(slug=slug).all().items), None)

    def featured(self, limit=None):
        combos = self._dao.query.filter(featured=True, active=True).limit(SCAN_LIMIT).all().items
        return combos[:limit] if limit else combos

    def active(self, page=1, limit=12) -> Page:
        combos = self._dao.query.filter(active=True).limit(SCAN_LIMIT).all().items
        return paginate(combos, page, limit)
