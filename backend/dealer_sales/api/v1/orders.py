"""
Order API endpoints.

Thin handlers: the acting user comes from the bearer token and every rule is
enforced by ``OrderService``. Service errors are mapped to HTTP statuses by
the application's exception handler.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from dealer_sales.api.deps import ActorId, OrderServiceDep
from dealer_sales.schemas.common import Page
from dealer_sales.schemas.orders import (
    AssignStaffRequest,
    OrderCancelRequest,
    OrderCreatedResponse,
    OrderCreateRequest,
    OrderFilter,
    OrderResponse,
    OrderStatusUpdate,
)
from dealer_sales.services.orders.enums import OrderStatus
from dealer_sales.services.pagination import DEFAULT_PAGE_SIZE

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
)
async def create_order(
    request: OrderCreateRequest,
    actor_id: ActorId,
    service: OrderServiceDep,
) -> OrderCreatedResponse:
    """Place a pending order for one vehicle and reserve its stock."""
    order_id = await service.create_order(
        actor_id=actor_id,
        vehicle_id=request.vehicle_id,
        notes=request.notes,
        shipping_address=request.shipping_address,
    )
    return OrderCreatedResponse(order_id=order_id)


@router.get(
    "/mine",
    response_model=Page[OrderResponse],
    summary="List my orders",
)
async def list_my_orders(
    actor_id: ActorId,
    service: OrderServiceDep,
    page: int = Query(1, description="Page number"),
    size: int = Query(DEFAULT_PAGE_SIZE, description="Page size"),
) -> Page[OrderResponse]:
    return await service.list_my_orders(actor_id, page, size)


@router.get(
    "",
    response_model=Page[OrderResponse],
    summary="List all orders (staff)",
)
async def list_orders(
    actor_id: ActorId,
    service: OrderServiceDep,
    customer_id: Optional[UUID] = Query(None),
    staff_id: Optional[UUID] = Query(None),
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    page: int = Query(1),
    size: int = Query(DEFAULT_PAGE_SIZE),
) -> Page[OrderResponse]:
    filters = OrderFilter(
        customer_id=customer_id,
        staff_id=staff_id,
        status=order_status,
        from_date=from_date,
        to_date=to_date,
        search=search,
    )
    return await service.list_orders(actor_id, filters, page, size)


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
)
async def get_order(
    order_id: UUID,
    actor_id: ActorId,
    service: OrderServiceDep,
) -> OrderResponse:
    return await service.get_order(order_id, actor_id)


@router.post(
    "/{order_id}/cancel",
    response_model=OrderResponse,
    summary="Cancel order",
)
async def cancel_order(
    order_id: UUID,
    actor_id: ActorId,
    service: OrderServiceDep,
    request: Optional[OrderCancelRequest] = None,
) -> OrderResponse:
    """Cancel an unpaid order; its stock is returned. The body is optional."""
    reason = request.reason if request else None
    await service.cancel_order(order_id, actor_id, reason)
    return await service.get_order(order_id, actor_id)


@router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    summary="Update order status (staff)",
)
async def update_order_status(
    order_id: UUID,
    request: OrderStatusUpdate,
    actor_id: ActorId,
    service: OrderServiceDep,
) -> OrderResponse:
    return await service.update_order_status(
        order_id, actor_id, request.status, request.notes
    )


@router.put(
    "/{order_id}/staff",
    response_model=OrderResponse,
    summary="Assign staff (staff)",
)
async def assign_staff(
    order_id: UUID,
    request: AssignStaffRequest,
    actor_id: ActorId,
    service: OrderServiceDep,
) -> OrderResponse:
    return await service.assign_staff(order_id, actor_id, request.staff_id)
