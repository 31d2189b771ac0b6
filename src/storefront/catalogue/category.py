"""Category aggregate — groups products for browsing."""

from protean.fields import Integer, String, Text

from storefront.domain import storefront
from storefront.shared.pagination import SCAN_LIMIT


@storefront.aggregate
class Category:
    name = String(required=True, max_length=100)
    slug = String(required=True, max_length=200, unique=True)
    description = Text()
    image = String(max_length=500)
    display_order = Integer(default=0)


@storefront.repository(part_of=Category)
class CategoryRepository:
    def get_by_slug(self, slug):
        return next(iter(self._dao.query.filter(slug=slug).all().items), None)

    def ordered(self):
        categories = self._dao.query.limit(SCAN_LIMIT).all().items
        return sorted(categories, key=lambda c: c.display_order or 0)
