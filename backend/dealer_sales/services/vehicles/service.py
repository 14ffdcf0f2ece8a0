"""
Vehicle catalog service.

This module implements the VehicleService class: any signed-in user can browse
the active part of the catalog, while dealer staff add, edit and delist
vehicles. Delisting is a soft delete; orders keep pointing at the vehicle and
cancelled orders still return their stock to it.
"""

import uuid
from typing import Optional

from dealer_sales.core.clock import Clock
from dealer_sales.core.exceptions import NotFoundError
from dealer_sales.core.logging import get_logger, log_performance
from dealer_sales.database.models.user import User
from dealer_sales.database.models.vehicle import Vehicle
from dealer_sales.database.unit_of_work import UnitOfWork
from dealer_sales.schemas.common import Page
from dealer_sales.schemas.vehicles import (
    VehicleCreateRequest,
    VehicleFilter,
    VehicleResponse,
    VehicleUpdateRequest,
)
from dealer_sales.services.pagination import DEFAULT_PAGE_SIZE, paginate_query
from dealer_sales.services.users.service import require_staff, resolve_actor

logger = get_logger(__name__)


class VehicleService:
    """
    Catalog browsing and maintenance.

    Attributes:
        uow: Unit of work for persistence
        clock: Clock used to stamp changes
    """

    def __init__(self, uow: UnitOfWork, clock: Clock):
        self.uow = uow
        self.clock = clock

    async def list_vehicles(
        self,
        actor_id: Optional[uuid.UUID],
        filters: Optional[VehicleFilter] = None,
        page_number: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        include_inactive: bool = False,
    ) -> Page[VehicleResponse]:
        """
        List catalog vehicles.

        Args:
            actor_id: Acting user
            filters: Search, price, range, year, stock and sort options
            page_number: Requested 1-based page
            page_size: Requested page size
            include_inactive: List deactivated vehicles too (staff only)

        Raises:
            UnauthenticatedError: If actor is missing
            ForbiddenError: If a customer asks for inactive vehicles
        """
        actor = await resolve_actor(self.uow.users, actor_id)
        if include_inactive:
            require_staff(actor, "list_inactive_vehicles")

        async with log_performance(logger, "list_vehicles"):
            return await paginate_query(
                self.uow.vehicles,
                self.uow.vehicles.catalog_stmt(filters, include_inactive),
                page_number,
                page_size,
                VehicleResponse.model_validate,
            )

    async def get_vehicle(
        self,
        vehicle_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
    ) -> VehicleResponse:
        """
        Get one catalog vehicle.

        Inactive vehicles are only visible to staff.

        Raises:
            NotFoundError: If the vehicle is missing, deleted or hidden
        """
        actor = await resolve_actor(self.uow.users, actor_id)
        vehicle = await self.uow.vehicles.get_by_id(vehicle_id)
        if vehicle is None or not self._is_visible(vehicle, actor):
            raise NotFoundError("Vehicle not found", vehicle_id=vehicle_id)
        return VehicleResponse.model_validate(vehicle)

    async def create_vehicle(
        self,
        actor_id: Optional[uuid.UUID],
        request: VehicleCreateRequest,
    ) -> VehicleResponse:
        """
        Add a vehicle to the catalog.

        Raises:
            UnauthenticatedError: If actor is missing
            ForbiddenError: If actor is not staff
        """
        async with self.uow:
            actor = await resolve_actor(self.uow.users, actor_id)
            require_staff(actor, "create_vehicle")

            vehicle = Vehicle(
                id=uuid.uuid4(),
                **request.model_dump(),
                created_at=self.clock.now(),
                updated_at=None,
                deleted_at=None,
            )
            self.uow.vehicles.add(vehicle)
            await self.uow.commit()

            logger.info(
                "Vehicle created",
                vehicle_id=str(vehicle.id),
                model_name=vehicle.model_name,
                stock=vehicle.stock,
                actor_id=str(actor.id),
            )
            return VehicleResponse.model_validate(vehicle)

    async def update_vehicle(
        self,
        vehicle_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
        request: VehicleUpdateRequest,
    ) -> VehicleResponse:
        """
        Change catalog fields of a vehicle.

        The row is locked so a stock edit cannot interleave with an order
        reserving or returning units.

        Raises:
            ForbiddenError: If actor is not staff
            NotFoundError: If the vehicle is missing or deleted
        """
        async with self.uow:
            actor = await resolve_actor(self.uow.users, actor_id)
            require_staff(actor, "update_vehicle")

            vehicle = await self.uow.vehicles.get_for_update(vehicle_id)
            if vehicle is None:
                raise NotFoundError("Vehicle not found", vehicle_id=vehicle_id)

            changes = request.model_dump(exclude_unset=True)
            for field, value in changes.items():
                setattr(vehicle, field, value)
            vehicle.updated_at = self.clock.now()
            await self.uow.commit()

            logger.info(
                "Vehicle updated",
                vehicle_id=str(vehicle.id),
                fields=sorted(changes),
                actor_id=str(actor.id),
            )
            return VehicleResponse.model_validate(vehicle)

    async def delete_vehicle(
        self,
        vehicle_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
    ) -> bool:
        """
        Delist a vehicle.

        Existing orders are left alone; cancelling one of them still returns
        its units to the delisted vehicle.

        Raises:
            ForbiddenError: If actor is not staff
            NotFoundError: If the vehicle is missing or already deleted
        """
        async with self.uow:
            actor = await resolve_actor(self.uow.users, actor_id)
            require_staff(actor, "delete_vehicle")

            vehicle = await self.uow.vehicles.get_for_update(vehicle_id)
            if vehicle is None:
                raise NotFoundError("Vehicle not found", vehicle_id=vehicle_id)

            now = self.clock.now()
            vehicle.soft_delete(now)
            vehicle.updated_at = now
            await self.uow.commit()

            logger.info(
                "Vehicle deleted",
                vehicle_id=str(vehicle.id),
                actor_id=str(actor.id),
            )
            return True

    @staticmethod
    def _is_visible(vehicle: Vehicle, actor: User) -> bool:
        return vehicle.is_active or actor.is_staff
