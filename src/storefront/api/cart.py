"""FastAPI endpoints for shopper carts, addressed by session id."""

from fastapi import APIRouter

from storefront.api.deps import unwrap
from storefront.api.schemas import (
    AddComboToCartRequest,
    AddToCartRequest,
    CartResponse,
    CartValidationResponse,
    LineResponse,
    StatusResponse,
    UpdateCartQuantityRequest,
)
from storefront.cart.service import CartService, shipping_fee_for

cart_router = APIRouter(prefix="/carts", tags=["carts"])


def _cart_response(cart) -> CartResponse:
    subtotal = cart.subtotal
    return CartResponse(
        session_id=cart.session_id,
        items=[LineResponse.of(line) for line in (cart.items or [])],
        item_count=cart.item_count,
        subtotal=subtotal,
        shipping_fee=shipping_fee_for(subtotal),
        total=subtotal + shipping_fee_for(subtotal),
    )


@cart_router.get("/{session_id}", response_model=CartResponse)
async def get_cart(session_id: str) -> CartResponse:
    return _cart_response(CartService().get_cart(session_id))


@cart_router.post("/{session_id}/items", response_model=CartResponse)
async def add_to_cart(session_id: str, body: AddToCartRequest) -> CartResponse:
    result = CartService().add_item(
        session_id,
        product_id=body.product_id,
        variant_id=body.variant_id,
        quantity=body.quantity,
    )
    return _cart_response(unwrap(result))


@cart_router.put("/{session_id}/items", response_model=CartResponse)
async def update_cart_quantity(session_id: str, body: UpdateCartQuantityRequest) -> CartResponse:
    result = CartService().update_quantity(
        session_id,
        product_id=body.product_id,
        variant_id=body.variant_id,
        new_quantity=body.quantity,
        combo_id=body.combo_id,
    )
    return _cart_response(unwrap(result))


@cart_router.delete("/{session_id}/items", response_model=CartResponse)
async def remove_from_cart(
    session_id: str,
    product_id: str,
    variant_id: str | None = None,
    combo_id: str | None = None,
) -> CartResponse:
    cart = CartService().remove_item(session_id, product_id, variant_id=variant_id, combo_id=combo_id)
    return _cart_response(cart)


@cart_router.post("/{session_id}/combos", response_model=CartResponse)
async def add_combo_to_cart(session_id: str, body: AddComboToCartRequest) -> CartResponse:
    return _cart_response(unwrap(CartService().add_combo(session_id, body.combo_id)))


@cart_router.delete("/{session_id}", response_model=StatusResponse)
async def clear_cart(session_id: str) -> StatusResponse:
    CartService().clear_cart(session_id)
    return StatusResponse()


@cart_router.get("/{session_id}/validation", response_model=CartValidationResponse)
async def validate_cart(session_id: str) -> CartValidationResponse:
    validation = CartService().validate(session_id)
    return CartValidationResponse(valid=validation.valid, errors=validation.errors)
