"""Pydantic request/response schemas for the storefront API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Common
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class IdResponse(BaseModel):
    id: str


# ---------------------------------------------------------------------------
# Catalogue Request Schemas
# ---------------------------------------------------------------------------
class CreateProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Glass Bauble Set",
                    "slug": "glass-bauble-set",
                    "price": 150000,
                    "description": "Twelve hand-painted glass baubles.",
                    "images": ["/images/baubles-1.jpg"],
                    "category_id": "cat-ornaments",
                    "featured": True,
                }
            ]
        }
    }

    name: str = Field(..., max_length=255)
    slug: str = Field(..., max_length=200)
    price: int = Field(..., ge=0)
    description: str | None = None
    images: list[str] = Field(default_factory=list)
    category_id: str | None = None
    featured: bool = False
    active: bool = True


class UpdateProductDetailsRequest(BaseModel):
    name: str | None = Field(None, max_length=255)
    description: str | None = None
    price: int | None = Field(None, ge=0)
    images: list[str] | None = None
    category_id: str | None = None


class AddVariantRequest(BaseModel):
    name: str = Field(..., max_length=100)
    variant_type: str = Field(..., pattern="^(color|size)$")
    value: str | None = None
    stock: int = Field(0, ge=0)
    price_modifier: int = 0


class RestockRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class SetFeaturedRequest(BaseModel):
    featured: bool = True


class CreateCategoryRequest(BaseModel):
    name: str = Field(..., max_length=100)
    slug: str = Field(..., max_length=200)
    description: str | None = None
    image: str | None = None
    display_order: int = 0


class ComboItemSchema(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(1, ge=1)


class CreateComboRequest(BaseModel):
    name: str = Field(..., max_length=255)
    slug: str = Field(..., max_length=200)
    items: list[ComboItemSchema] = Field(..., min_length=1)
    discount_price: int = Field(..., ge=0)
    original_price: int = Field(0, ge=0)
    description: str | None = None
    images: list[str] = Field(default_factory=list)
    featured: bool = False


class CreateBannerRequest(BaseModel):
    title: str = Field(..., max_length=255)
    image: str = Field(..., max_length=500)
    subtitle: str | None = None
    link: str | None = None
    display_order: int = 0
    active: bool = True


class ToggleBannerRequest(BaseModel):
    active: bool


# ---------------------------------------------------------------------------
# Catalogue Response Schemas
# ---------------------------------------------------------------------------
class VariantResponse(BaseModel):
    id: str
    name: str
    variant_type: str
    value: str | None = None
    stock: int
    price_modifier: int

    @classmethod
    def of(cls, variant) -> VariantResponse:
        return cls(
            id=str(variant.id),
            name=variant.name,
            variant_type=variant.variant_type,
            value=variant.value,
            stock=variant.stock,
            price_modifier=variant.price_modifier or 0,
        )


class ProductResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    price: int
    images: list[str]
    category_id: str | None = None
    variants: list[VariantResponse]
    total_stock: int
    featured: bool
    active: bool

    @classmethod
    def of(cls, product) -> ProductResponse:
        return cls(
            id=str(product.id),
            name=product.name,
            slug=product.slug,
            description=product.description,
            price=product.price,
            images=product.image_list,
            category_id=str(product.category_id) if product.category_id else None,
            variants=[VariantResponse.of(v) for v in (product.variants or [])],
            total_stock=product.total_stock,
            featured=bool(product.featured),
            active=bool(product.active),
        )


class VariantStockResponse(BaseModel):
    product_id: str
    variant_id: str
    stock: int


class ProductPageResponse(BaseModel):
    data: list[ProductResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    image: str | None = None
    display_order: int

    @classmethod
    def of(cls, category) -> CategoryResponse:
        return cls(
            id=str(category.id),
            name=category.name,
            slug=category.slug,
            description=category.description,
            image=category.image,
            display_order=category.display_order or 0,
        )


class ComboResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    items: list[ComboItemSchema]
    original_price: int
    discount_price: int
    discount_percent: int
    featured: bool
    active: bool
    in_stock: bool | None = None

    @classmethod
    def of(cls, combo, in_stock=None) -> ComboResponse:
        return cls(
            id=str(combo.id),
            name=combo.name,
            slug=combo.slug,
            description=combo.description,
            items=[
                ComboItemSchema(
                    product_id=str(i.product_id),
                    variant_id=str(i.variant_id) if i.variant_id else None,
                    quantity=i.quantity,
                )
                for i in (combo.items or [])
            ],
            original_price=combo.original_price or 0,
            discount_price=combo.discount_price,
            discount_percent=combo.discount_percent or 0,
            featured=bool(combo.featured),
            active=bool(combo.active),
            in_stock=in_stock,
        )


class ComboPageResponse(BaseModel):
    data: list[ComboResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class BannerResponse(BaseModel):
    id: str
    title: str
    subtitle: str | None = None
    image: str
    link: str | None = None
    display_order: int
    active: bool

    @classmethod
    def of(cls, banner) -> BannerResponse:
        return cls(
            id=str(banner.id),
            title=banner.title,
            subtitle=banner.subtitle,
            image=banner.image,
            link=banner.link,
            display_order=banner.display_order or 0,
            active=bool(banner.active),
        )


# ---------------------------------------------------------------------------
# Cart Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    product_id: str
    variant_id: str | None = None
    combo_id: str | None = None
    quantity: int


class AddComboToCartRequest(BaseModel):
    combo_id: str


class LineResponse(BaseModel):
    product_id: str
    variant_id: str | None = None
    combo_id: str | None = None
    name: str
    variant_name: str | None = None
    image: str | None = None
    quantity: int
    price: int
    line_total: int

    @classmethod
    def of(cls, line) -> LineResponse:
        return cls(
            product_id=str(line.product_id),
            variant_id=str(line.variant_id) if line.variant_id else None,
            combo_id=str(line.combo_id) if line.combo_id else None,
            name=line.name,
            variant_name=line.variant_name,
            image=line.image,
            quantity=line.quantity,
            price=line.price,
            line_total=line.line_total,
        )


class CartResponse(BaseModel):
    session_id: str
    items: list[LineResponse]
    item_count: int
    subtotal: int
    shipping_fee: int
    total: int


class CartValidationResponse(BaseModel):
    valid: bool
    errors: list[str]


# ---------------------------------------------------------------------------
# Order Schemas
# ---------------------------------------------------------------------------
class CustomerInfoSchema(BaseModel):
    full_name: str = Field(..., max_length=255)
    phone: str = Field(..., max_length=20)
    email: str | None = None
    address: str = Field(..., max_length=500)
    province: str | None = None
    district: str | None = None
    ward: str | None = None
    note: str | None = None


class CheckoutRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "session_id": "sess-2f9c",
                    "customer": {
                        "full_name": "Nguyen Van An",
                        "phone": "0901234567",
                        "email": "an@example.com",
                        "address": "12 Le Loi",
                        "province": "Ho Chi Minh",
                        "district": "District 1",
                        "ward": "Ben Nghe",
                    },
                }
            ]
        }
    }

    session_id: str
    customer: CustomerInfoSchema


class UpdateOrderStatusRequest(BaseModel):
    status: str
    note: str | None = None


class StatusChangeResponse(BaseModel):
    status: str
    note: str | None = None
    changed_at: datetime


class OrderResponse(BaseModel):
    id: str
    order_code: str
    user_id: str | None = None
    customer: CustomerInfoSchema
    items: list[LineResponse]
    subtotal: int
    shipping_fee: int
    total: int
    status: str
    status_history: list[StatusChangeResponse]
    created_at: datetime | None = None

    @classmethod
    def of(cls, order) -> OrderResponse:
        customer = order.customer
        return cls(
            id=str(order.id),
            order_code=order.order_code,
            user_id=str(order.user_id) if order.user_id else None,
            customer=CustomerInfoSchema(
                full_name=customer.full_name,
                phone=customer.phone,
                email=customer.email,
                address=customer.address,
                province=customer.province,
                district=customer.district,
                ward=customer.ward,
                note=customer.note,
            ),
            items=[LineResponse.of(i) for i in (order.items or [])],
            subtotal=order.subtotal,
            shipping_fee=order.shipping_fee,
            total=order.total,
            status=order.status,
            status_history=[
                StatusChangeResponse(status=c.status, note=c.note, changed_at=c.changed_at)
                for c in order.status_history
            ],
            created_at=order.created_at,
        )


class OrderPageResponse(BaseModel):
    data: list[OrderResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class OrderStatsResponse(BaseModel):
    total_orders: int
    total_revenue: int
    pending_orders: int
    processing_orders: int
    shipped_orders: int
    delivered_orders: int
    cancelled_orders: int
    average_order_value: int
