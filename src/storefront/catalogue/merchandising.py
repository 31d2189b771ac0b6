"""Categories, combos and banners — commands and handlers."""

import json

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.banner import Banner
from storefront.catalogue.category import Category
from storefront.catalogue.combo import Combo
from storefront.domain import storefront


@storefront.command(part_of="Category")
class CreateCategory:
    name: String(required=True, max_length=100)
    slug: String(required=True, max_length=200)
    description: Text()
    image: String(max_length=500)
    display_order: Integer(default=0)


@storefront.command(part_of="Combo")
class CreateCombo:
    name: String(required=True, max_length=255)
    slug: String(required=True, max_length=200)
    items: Text(required=True)  # JSON array of {product_id, variant_id, quantity}
    discount_price: Integer(required=True, min_value=0)
    original_price: Integer(default=0, min_value=0)
    description: Text()
    images: Text()  # JSON array
    featured: Boolean(default=False)


@storefront.command(part_of="Banner")
class CreateBanner:
    title: String(required=True, max_length=255)
    image: String(required=True, max_length=500)
    subtitle: String(max_length=255)
    link: String(max_length=500)
    display_order: Integer(default=0)
    active: Boolean(default=True)


@storefront.command(part_of="Banner")
class ToggleBanner:
    banner_id: Identifier(required=True)
    active: Boolean(required=True)


@storefront.command_handler(part_of=Category)
class CategoryManagementHandler:
    @handle(CreateCategory)
    def create_category(self, command):
        category = Category(
            name=command.name,
            slug=command.slug,
            description=command.description,
            image=command.image,
            display_order=command.display_order,
        )
        current_domain.repository_for(Category).add(category)
        return str(category.id)


@storefront.command_handler(part_of=Combo)
class ComboManagementHandler:
    @handle(CreateCombo)
    def create_combo(self, command):
        combo = Combo.create(
            name=command.name,
            slug=command.slug,
            items_data=json.loads(command.items),
            discount_price=command.discount_price,
            original_price=command.original_price,
            description=command.description,
            images=json.loads(command.images) if command.images else None,
            featured=command.featured,
        )
        current_domain.repository_for(Combo).add(combo)
        return str(combo.id)


@storefront.command_handler(part_of=Banner)
class BannerManagementHandler:
    @handle(CreateBanner)
    def create_banner(self, command):
        banner = Banner.create(
            title=command.title,
            image=command.image,
            subtitle=command.subtitle,
            link=command.link,
            display_order=command.display_order,
            active=command.active,
        )
        current_domain.repository_for(Banner).add(banner)
        return str(banner.id)

    @handle(ToggleBanner)
    def toggle_banner(self, command):
        repo = current_domain.repository_for(Banner)
        banner = repo.get(command.banner_id)
        banner.toggle(command.active)
        repo.add(banner)
