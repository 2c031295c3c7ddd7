"""Order routes: creation, food lines, status and live totals."""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from gamespace.core.rate_limit import limiter
from gamespace.db.session import DbSession
from gamespace.models import OrderStatus
from gamespace.schemas.order import (
    FoodItemsPayload,
    FoodOrderCreate,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
    OrderTotalResponse,
)
from gamespace.services.order_service import OrderService, format_food_items

router = APIRouter()


@router.post("/orders/", response_model=OrderResponse, status_code=201)
@limiter.limit("30/minute")
def create_order(request: Request, db: DbSession, data: OrderCreate):
    return OrderService(db).create_order(
        token_id=data.token_id,
        notes=data.notes,
        food_items=[item.to_item() for item in data.food_items],
    )


@router.post("/orders/food", response_model=OrderResponse, status_code=201)
@limiter.limit("30/minute")
def create_food_order(request: Request, db: DbSession, data: FoodOrderCreate):
    """Food-only order on a freshly issued token."""
    return OrderService(db).create_food_order(
        [item.to_item() for item in data.food_items], notes=data.notes
    )


@router.get("/orders/", response_model=List[OrderResponse])
@limiter.limit("60/minute")
def list_orders(
    request: Request,
    db: DbSession,
    status: Optional[OrderStatus] = None,
    limit: int = Query(100, ge=1, le=500),
):
    return OrderService(db).list_orders(status=status, limit=limit)


@router.get("/orders/active", response_model=List[OrderResponse])
@limiter.limit("60/minute")
def list_active_orders(request: Request, db: DbSession):
    return OrderService(db).list_active_orders()


@router.get("/orders/{order_id}", response_model=OrderResponse)
@limiter.limit("60/minute")
def get_order(request: Request, db: DbSession, order_id: int):
    return OrderService(db).get_order(order_id)


@router.get("/orders/{order_id}/total", response_model=OrderTotalResponse)
@limiter.limit("60/minute")
def get_order_total(request: Request, db: DbSession, order_id: int):
    service = OrderService(db)
    order = service.get_order(order_id)
    total = service.compute_order_total(order)
    food_total = order.food_subtotal
    return OrderTotalResponse(
        order_id=order.id,
        order_number=order.order_number,
        sessions_total=total - food_total,
        food_total=food_total,
        total=total,
        food_items_text=format_food_items(order.food_items),
    )


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
@limiter.limit("30/minute")
def update_order_status(request: Request, db: DbSession, order_id: int, data: OrderStatusUpdate):
    return OrderService(db).update_order_status(order_id, data.status, notes=data.notes)


@router.post("/orders/{order_id}/food-items", response_model=OrderResponse)
@limiter.limit("30/minute")
def add_food_items(request: Request, db: DbSession, order_id: int, data: FoodItemsPayload):
    return OrderService(db).add_food_items(order_id, [item.to_item() for item in data.items])


@router.put("/orders/{order_id}/food-items", response_model=OrderResponse)
@limiter.limit("30/minute")
def replace_food_items(request: Request, db: DbSession, order_id: int, data: FoodItemsPayload):
    return OrderService(db).replace_food_items(order_id, [item.to_item() for item in data.items])
