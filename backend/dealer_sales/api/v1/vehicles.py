"""
Vehicle catalog API endpoints.

Any signed-in user can browse; adding, editing and delisting vehicles is
reserved for dealer staff and enforced by ``VehicleService``.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from dealer_sales.api.deps import ActorId, VehicleServiceDep
from dealer_sales.schemas.common import Page
from dealer_sales.schemas.vehicles import (
    VehicleCreateRequest,
    VehicleFilter,
    VehicleResponse,
    VehicleSortField,
    VehicleUpdateRequest,
)
from dealer_sales.services.pagination import DEFAULT_PAGE_SIZE

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get(
    "",
    response_model=Page[VehicleResponse],
    summary="List vehicles",
)
async def list_vehicles(
    actor_id: ActorId,
    service: VehicleServiceDep,
    search: Optional[str] = Query(None, max_length=200),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    min_range_km: Optional[int] = Query(None, ge=0),
    max_range_km: Optional[int] = Query(None, ge=0),
    model_year: Optional[int] = Query(None, ge=1900, le=2100),
    in_stock_only: bool = Query(False),
    sort_by: VehicleSortField = Query(VehicleSortField.MODEL_NAME),
    sort_desc: bool = Query(False),
    include_inactive: bool = Query(False, description="Staff only"),
    page: int = Query(1, description="Page number"),
    size: int = Query(DEFAULT_PAGE_SIZE, description="Page size"),
) -> Page[VehicleResponse]:
    """List active catalog vehicles; deleted vehicles are never listed."""
    filters = VehicleFilter(
        search=search,
        min_price=min_price,
        max_price=max_price,
        min_range_km=min_range_km,
        max_range_km=max_range_km,
        model_year=model_year,
        in_stock_only=in_stock_only,
        sort_by=sort_by,
        sort_desc=sort_desc,
    )
    return await service.list_vehicles(actor_id, filters, page, size, include_inactive)


@router.get(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    summary="Get vehicle",
)
async def get_vehicle(
    vehicle_id: UUID,
    actor_id: ActorId,
    service: VehicleServiceDep,
) -> VehicleResponse:
    return await service.get_vehicle(vehicle_id, actor_id)


@router.post(
    "",
    response_model=VehicleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create vehicle (staff)",
)
async def create_vehicle(
    request: VehicleCreateRequest,
    actor_id: ActorId,
    service: VehicleServiceDep,
) -> VehicleResponse:
    return await service.create_vehicle(actor_id, request)


@router.patch(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    summary="Update vehicle (staff)",
)
async def update_vehicle(
    vehicle_id: UUID,
    request: VehicleUpdateRequest,
    actor_id: ActorId,
    service: VehicleServiceDep,
) -> VehicleResponse:
    """Change only the fields present in the body."""
    return await service.update_vehicle(vehicle_id, actor_id, request)


@router.delete(
    "/{vehicle_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete vehicle (staff)",
)
async def delete_vehicle(
    vehicle_id: UUID,
    actor_id: ActorId,
    service: VehicleServiceDep,
) -> None:
    """Soft-delete a vehicle; existing orders keep referencing it."""
    await service.delete_vehicle(vehicle_id, actor_id)
