"""Product administration — commands and handlers.

Stock is not set through these commands once a variant exists; restocking goes
through ``InventoryService.adjust_stock`` so it serializes with order
processing. Callers that dispatch a product command hold
``stock_locks`` for the product until ``process`` returns.
"""

import json

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront


@storefront.command(part_of="Product")
class CreateProduct:
    name: String(required=True, max_length=255)
    slug: String(required=True, max_length=200)
    price: Integer(required=True, min_value=0)
    description: Text()
    images: Text()  # JSON array
    category_id: Identifier()
    featured: Boolean(default=False)
    active: Boolean(default=True)


@storefront.command(part_of="Product")
class UpdateProductDetails:
    product_id: Identifier(required=True)
    name: String(max_length=255)
    description: Text()
    price: Integer(min_value=0)
    images: Text()  # JSON array
    category_id: Identifier()


@storefront.command(part_of="Product")
class AddVariant:
    product_id: Identifier(required=True)
    name: String(required=True, max_length=100)
    variant_type: String(required=True, max_length=10)
    value: String(max_length=100)
    stock: Integer(default=0, min_value=0)
    price_modifier: Integer(default=0)


@storefront.command(part_of="Product")
class ActivateProduct:
    product_id: Identifier(required=True)


@storefront.command(part_of="Product")
class DeactivateProduct:
    product_id: Identifier(required=True)


@storefront.command(part_of="Product")
class SetProductFeatured:
    product_id: Identifier(required=True)
    featured: Boolean(default=True)


@storefront.command(part_of="Product")
class DeleteProduct:
    product_id: Identifier(required=True)


def _images(raw):
    return json.loads(raw) if raw else None


@storefront.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        product = Product.create(
            name=command.name,
            slug=command.slug,
            price=command.price,
            description=command.description,
            images=_images(command.images),
            category_id=command.category_id,
            featured=command.featured,
            active=command.active,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(UpdateProductDetails)
    def update_product_details(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.update_details(
            name=command.name,
            description=command.description,
            price=command.price,
            images=_images(command.images),
            category_id=command.category_id,
        )
        repo.add(product)

    @handle(AddVariant)
    def add_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        variant = product.add_variant(
            name=command.name,
            variant_type=command.variant_type,
            value=command.value,
            stock=command.stock,
            price_modifier=command.price_modifier,
        )
        repo.add(product)
        return str(variant.id)

    @handle(ActivateProduct)
    def activate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.activate()
        repo.add(product)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate()
        repo.add(product)

    @handle(SetProductFeatured)
    def set_featured(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.set_featured(command.featured)
        repo.add(product)

    @handle(DeleteProduct)
    def delete_product(self, command):
        # Orders keep their own snapshot of every line, so they outlive the product
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        repo._dao.delete(product)
