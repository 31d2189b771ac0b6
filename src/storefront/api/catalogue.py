"""FastAPI endpoints for the catalogue — products, categories, combos and banners."""

import json

from fastapi import APIRouter, Depends, HTTPException
from protean.utils.globals import current_domain

from storefront.api.deps import require_admin, unwrap
from storefront.api.schemas import (
    AddVariantRequest,
    BannerResponse,
    CategoryResponse,
    ComboPageResponse,
    ComboResponse,
    CreateBannerRequest,
    CreateCategoryRequest,
    CreateComboRequest,
    CreateProductRequest,
    IdResponse,
    ProductPageResponse,
    ProductResponse,
    RestockRequest,
    SetFeaturedRequest,
    StatusResponse,
    ToggleBannerRequest,
    UpdateProductDetailsRequest,
    VariantStockResponse,
)
from storefront.catalogue.banner import Banner
from storefront.catalogue.category import Category
from storefront.catalogue.combo import Combo
from storefront.catalogue.management import (
    ActivateProduct,
    AddVariant,
    CreateProduct,
    DeactivateProduct,
    DeleteProduct,
    SetProductFeatured,
    UpdateProductDetails,
)
from storefront.catalogue.merchandising import CreateBanner, CreateCategory, CreateCombo, ToggleBanner
from storefront.catalogue.product import Product
from storefront.config import settings
from storefront.inventory.service import InventoryService
from storefront.shared.locks import stock_locks

product_router = APIRouter(prefix="/products", tags=["products"])
category_router = APIRouter(prefix="/categories", tags=["categories"])
combo_router = APIRouter(prefix="/combos", tags=["combos"])
banner_router = APIRouter(prefix="/banners", tags=["banners"])


def _process_for_product(product_id, command):
    # Product writes serialize with stock movements of the same product
    with stock_locks.hold(str(product_id)):
        return current_domain.process(command, asynchronous=False)


def _product_or_404(product_id) -> Product:
    product = InventoryService().get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return product


# --- Product endpoints ---


@product_router.get("", response_model=ProductPageResponse)
async def list_products(
    category_id: str | None = None,
    min_price: int | None = None,
    max_price: int | None = None,
    search: str | None = None,
    featured: bool | None = None,
    page: int = 1,
    limit: int = 12,
) -> ProductPageResponse:
    result = current_domain.repository_for(Product).filter(
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        search=search,
        featured=featured,
        page=page,
        limit=limit,
    )
    return ProductPageResponse(
        data=[ProductResponse.of(p) for p in result.data],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@product_router.get("/featured", response_model=list[ProductResponse])
async def featured_products(limit: int | None = None) -> list[ProductResponse]:
    return [ProductResponse.of(p) for p in current_domain.repository_for(Product).featured(limit)]


@product_router.get("/slug/{slug}", response_model=ProductResponse)
async def get_product_by_slug(slug: str) -> ProductResponse:
    product = current_domain.repository_for(Product).get_by_slug(slug)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {slug} not found")
    return ProductResponse.of(product)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    return ProductResponse.of(_product_or_404(product_id))


@product_router.post("", status_code=201, response_model=IdResponse, dependencies=[Depends(require_admin)])
async def create_product(body: CreateProductRequest) -> IdResponse:
    command = CreateProduct(
        name=body.name,
        slug=body.slug,
        price=body.price,
        description=body.description,
        images=json.dumps(body.images),
        category_id=body.category_id,
        featured=body.featured,
        active=body.active,
    )
    result = current_domain.process(command, asynchronous=False)
    return IdResponse(id=result)


@product_router.put("/{product_id}/details", response_model=StatusResponse, dependencies=[Depends(require_admin)])
async def update_product_details(product_id: str, body: UpdateProductDetailsRequest) -> StatusResponse:
    command = UpdateProductDetails(
        product_id=product_id,
        name=body.name,
        description=body.description,
        price=body.price,
        images=json.dumps(body.images) if body.images is not None else None,
        category_id=body.category_id,
    )
    _process_for_product(product_id, command)
    return StatusResponse()


@product_router.post(
    "/{product_id}/variants", status_code=201, response_model=IdResponse, dependencies=[Depends(require_admin)]
)
async def add_variant(product_id: str, body: AddVariantRequest) -> IdResponse:
    command = AddVariant(
        product_id=product_id,
        name=body.name,
        variant_type=body.variant_type,
        value=body.value,
        stock=body.stock,
        price_modifier=body.price_modifier,
    )
    return IdResponse(id=_process_for_product(product_id, command))


@product_router.post(
    "/{product_id}/variants/{variant_id}/restock",
    response_model=VariantStockResponse,
    dependencies=[Depends(require_admin)],
)
async def restock_variant(product_id: str, variant_id: str, body: RestockRequest) -> VariantStockResponse:
    new_stock = unwrap(InventoryService().adjust_stock(product_id, variant_id, body.quantity))
    return VariantStockResponse(product_id=product_id, variant_id=variant_id, stock=new_stock)


@product_router.put("/{product_id}/activate", response_model=StatusResponse, dependencies=[Depends(require_admin)])
async def activate_product(product_id: str) -> StatusResponse:
    _process_for_product(product_id, ActivateProduct(product_id=product_id))
    return StatusResponse()


@product_router.put("/{product_id}/deactivate", response_model=StatusResponse, dependencies=[Depends(require_admin)])
async def deactivate_product(product_id: str) -> StatusResponse:
    _process_for_product(product_id, DeactivateProduct(product_id=product_id))
    return StatusResponse()


@product_router.put("/{product_id}/featured", response_model=StatusResponse, dependencies=[Depends(require_admin)])
async def set_product_featured(product_id: str, body: SetFeaturedRequest) -> StatusResponse:
    _process_for_product(product_id, SetProductFeatured(product_id=product_id, featured=body.featured))
    return StatusResponse()


@product_router.delete("/{product_id}", response_model=StatusResponse, dependencies=[Depends(require_admin)])
async def delete_product(product_id: str) -> StatusResponse:
    _process_for_product(product_id, DeleteProduct(product_id=product_id))
    return StatusResponse()


# --- Category endpoints ---


@category_router.get("", response_model=list[CategoryResponse])
async def list_categories() -> list[CategoryResponse]:
    return [CategoryResponse.of(c) for c in current_domain.repository_for(Category).ordered()]


@category_router.get("/{slug}/products", response_model=list[ProductResponse])
async def category_products(slug: str) -> list[ProductResponse]:
    category = current_domain.repository_for(Category).get_by_slug(slug)
    if category is None:
        raise HTTPException(status_code=404, detail=f"Category {slug} not found")
    products = current_domain.repository_for(Product).by_category(str(category.id))
    return [ProductResponse.of(p) for p in products]


@category_router.post("", status_code=201, response_model=IdResponse, dependencies=[Depends(require_admin)])
async def create_category(body: CreateCategoryRequest) -> IdResponse:
    command = CreateCategory(
        name=body.name,
        slug=body.slug,
        description=body.description,
        image=body.image,
        display_order=body.display_order,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


# --- Combo endpoints ---


@combo_router.get("", response_model=ComboPageResponse)
async def list_combos(page: int = 1, limit: int | None = None) -> ComboPageResponse:
    result = current_domain.repository_for(Combo).active(page=page, limit=limit or settings.DEFAULT_PAGE_SIZE)
    return ComboPageResponse(
        data=[ComboResponse.of(c) for c in result.data],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@combo_router.get("/featured", response_model=list[ComboResponse])
async def featured_combos(limit: int | None = None) -> list[ComboResponse]:
    return [ComboResponse.of(c) for c in current_domain.repository_for(Combo).featured(limit)]


@combo_router.get("/slug/{slug}", response_model=ComboResponse)
async def get_combo_by_slug(slug: str) -> ComboResponse:
    combo = current_domain.repository_for(Combo).get_by_slug(slug)
    if combo is None:
        raise HTTPException(status_code=404, detail=f"Combo {slug} not found")
    return ComboResponse.of(combo, in_stock=InventoryService().combo_in_stock(combo))


@combo_router.post("", status_code=201, response_model=IdResponse, dependencies=[Depends(require_admin)])
async def create_combo(body: CreateComboRequest) -> IdResponse:
    command = CreateCombo(
        name=body.name,
        slug=body.slug,
        items=json.dumps([item.model_dump() for item in body.items]),
        discount_price=body.discount_price,
        original_price=body.original_price,
        description=body.description,
        images=json.dumps(body.images),
        featured=body.featured,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


# --- Banner endpoints ---


@banner_router.get("", response_model=list[BannerResponse])
async def list_banners() -> list[BannerResponse]:
    return [BannerResponse.of(b) for b in current_domain.repository_for(Banner).active_ordered()]


@banner_router.post("", status_code=201, response_model=IdResponse, dependencies=[Depends(require_admin)])
async def create_banner(body: CreateBannerRequest) -> IdResponse:
    command = CreateBanner(
        title=body.title,
        image=body.image,
        subtitle=body.subtitle,
        link=body.link,
        display_order=body.display_order,
        active=body.active,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@banner_router.put("/{banner_id}/active", response_model=StatusResponse, dependencies=[Depends(require_admin)])
async def toggle_banner(banner_id: str, body: ToggleBannerRequest) -> StatusResponse:
    current_domain.process(ToggleBanner(banner_id=banner_id, active=body.active), asynchronous=False)
    return StatusResponse()
