"""Banner aggregate — home page promotions."""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Integer, String

from storefront.domain import storefront
from storefront.shared.pagination import SCAN_LIMIT


@storefront.aggregate
class Banner:
    title = String(required=True, max_length=255)
    subtitle = String(max_length=255)
    image = String(required=True, max_length=500)
    link = String(max_length=500)
    display_order = Integer(default=0)
    active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, title, image, subtitle=None, link=None, display_order=0, active=True):
        now = datetime.now(UTC)
        return cls(
            title=title,
            subtitle=subtitle,
            image=image,
            link=link,
            display_order=display_order,
            active=active,
            created_at=now,
            updated_at=now,
        )

    def toggle(self, active):
        self.active = bool(active)
        self.updated_at = datetime.now(UTC)


@storefront.repository(part_of=Banner)
class BannerRepository:
    def active_ordered(self):
        banners = self._dao.query.filter(active=True).limit(SCAN_LIMIT).all().items
        return sorted(banners, key=lambda b: b.display_order or 0)
