"""Admin order management: listing and lifecycle updates."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from services.store_service.dependencies import get_order_service
from services.store_service.models import OrderStatus
from services.store_service.schemas import (
    OrderListResponse,
    OrderResponse,
    Pagination,
    UpdateOrderStatusRequest,
)
from services.store_service.services.order_service import OrderService

router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])


@router.get("")
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    _admin: AuthUser = Depends(require_admin),
    orders: OrderService = Depends(get_order_service),
):
    """List all orders, newest first."""
    result = await orders.list_orders(page=page, limit=limit, status=status)
    data = OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in result.orders],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )
    return {"success": True, "data": data.model_dump(mode="json", by_alias=True)}


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    _admin: AuthUser = Depends(require_admin),
    orders: OrderService = Depends(get_order_service),
):
    order = await orders.get_order(order_id)
    return {
        "success": True,
        "data": OrderResponse.model_validate(order).model_dump(
            mode="json", by_alias=True
        ),
    }


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    admin: AuthUser = Depends(require_admin),
    orders: OrderService = Depends(get_order_service),
):
    """Advance an order's status; shipping sends the tracking email."""
    order = await orders.update_order_status(
        order_id,
        body.status,
        tracking_number=body.tracking_number,
        tracking_url=body.tracking_url,
    )
    return {
        "success": True,
        "message": f"Order status updated to {order.status.value}",
        "data": OrderResponse.model_validate(order).model_dump(
            mode="json", by_alias=True
        ),
    }
