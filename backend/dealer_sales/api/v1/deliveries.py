"""
Delivery API endpoints.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from dealer_sales.api.deps import ActorId, DeliveryServiceDep
from dealer_sales.schemas.common import Page
from dealer_sales.schemas.deliveries import (
    DeliveryCreateRequest,
    DeliveryFilter,
    DeliveryResponse,
    DeliveryStatusUpdate,
)
from dealer_sales.services.orders.enums import DeliveryStatus
from dealer_sales.services.pagination import DEFAULT_PAGE_SIZE

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@router.post(
    "",
    response_model=DeliveryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule delivery (staff)",
)
async def create_delivery(
    request: DeliveryCreateRequest,
    actor_id: ActorId,
    service: DeliveryServiceDep,
) -> DeliveryResponse:
    return await service.create_delivery(
        order_id=request.order_id,
        actor_id=actor_id,
        planned_date=request.planned_date,
        notes=request.notes,
        shipping_address=request.shipping_address,
    )


@router.get(
    "",
    response_model=Page[DeliveryResponse],
    summary="List deliveries (staff)",
)
async def list_deliveries(
    actor_id: ActorId,
    service: DeliveryServiceDep,
    delivery_status: Optional[DeliveryStatus] = Query(None, alias="status"),
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    page: int = Query(1),
    size: int = Query(DEFAULT_PAGE_SIZE),
) -> Page[DeliveryResponse]:
    filters = DeliveryFilter(
        status=delivery_status,
        from_date=from_date,
        to_date=to_date,
        search=search,
    )
    return await service.list_deliveries(actor_id, filters, page, size)


@router.get(
    "/by-order/{order_id}",
    response_model=DeliveryResponse,
    summary="Get delivery of an order",
)
async def get_delivery_by_order(
    order_id: UUID,
    actor_id: ActorId,
    service: DeliveryServiceDep,
) -> DeliveryResponse:
    return await service.get_delivery_by_order(order_id, actor_id)


@router.get(
    "/{delivery_id}",
    response_model=DeliveryResponse,
    summary="Get delivery",
)
async def get_delivery(
    delivery_id: UUID,
    actor_id: ActorId,
    service: DeliveryServiceDep,
) -> DeliveryResponse:
    return await service.get_delivery(delivery_id, actor_id)


@router.patch(
    "/{delivery_id}/status",
    response_model=DeliveryResponse,
    summary="Update delivery status (staff)",
)
async def update_delivery_status(
    delivery_id: UUID,
    request: DeliveryStatusUpdate,
    actor_id: ActorId,
    service: DeliveryServiceDep,
) -> DeliveryResponse:
    """Move a delivery forward; completing it marks the order delivered."""
    return await service.update_delivery_status(
        delivery_id,
        actor_id,
        request.status,
        planned_date=request.planned_date,
        actual_date=request.actual_date,
        notes=request.notes,
    )
