"""FastAPI endpoints for checkout, order tracking and the order back-office."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import current_actor, require_admin, unwrap
from storefront.api.schemas import (
    CheckoutRequest,
    OrderPageResponse,
    OrderResponse,
    OrderStatsResponse,
    UpdateOrderStatusRequest,
)
from storefront.order.service import OrderService
from storefront.shared.actor import Actor

order_router = APIRouter(prefix="/orders", tags=["orders"])


def _visible_to(order, actor: Actor | None):
    # Guest orders are tracked by id or code alone
    if order.user_id and not (actor and (actor.is_admin or order.belongs_to(actor.id))):
        raise HTTPException(status_code=403, detail="This order belongs to another customer")
    return order


@order_router.post("", status_code=201, response_model=OrderResponse)
async def checkout(body: CheckoutRequest, actor: Actor | None = Depends(current_actor)) -> OrderResponse:
    result = OrderService().create_order(body.session_id, body.customer.model_dump(), actor=actor)
    return OrderResponse.of(unwrap(result))


@order_router.get("", response_model=OrderPageResponse, dependencies=[Depends(require_admin)])
async def list_orders(
    status: str | None = None,
    user_id: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int | None = None,
) -> OrderPageResponse:
    result = OrderService().filter(
        status=status,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
        page=page,
        limit=limit,
    )
    return OrderPageResponse(
        data=[OrderResponse.of(o) for o in result.data],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@order_router.get("/mine", response_model=list[OrderResponse])
async def my_orders(actor: Actor | None = Depends(current_actor)) -> list[OrderResponse]:
    return [OrderResponse.of(o) for o in OrderService().get_my_orders(actor)]


@order_router.get("/stats", response_model=OrderStatsResponse, dependencies=[Depends(require_admin)])
async def order_stats(date_from: date | None = None, date_to: date | None = None) -> OrderStatsResponse:
    stats = OrderService().get_stats(date_from=date_from, date_to=date_to)
    return OrderStatsResponse(**stats.__dict__)


@order_router.get("/code/{order_code}", response_model=OrderResponse)
async def get_order_by_code(order_code: str, actor: Actor | None = Depends(current_actor)) -> OrderResponse:
    order = unwrap(OrderService().get_by_code(order_code))
    return OrderResponse.of(_visible_to(order, actor))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, actor: Actor | None = Depends(current_actor)) -> OrderResponse:
    order = unwrap(OrderService().get_by_id(order_id))
    return OrderResponse.of(_visible_to(order, actor))


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, actor: Actor | None = Depends(current_actor)) -> OrderResponse:
    return OrderResponse.of(unwrap(OrderService().cancel_order(order_id, actor)))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    actor: Actor = Depends(require_admin),
) -> OrderResponse:
    result = OrderService().update_status(order_id, body.status, note=body.note, actor=actor)
    return OrderResponse.of(unwrap(result))
