"""
Inventory service: stock reservation and restoration.

Stock is decremented by one when an order is created against a vehicle and
incremented by one per item when a stock-holding order is cancelled. Both
paths read the vehicle rows under ``SELECT ... FOR UPDATE`` within the
caller's unit of work; nothing is committed here.
"""

import uuid
from typing import Iterable

from dealer_sales.core.exceptions import ConflictError, FatalError, NotFoundError
from dealer_sales.core.logging import get_logger
from dealer_sales.database.models.order import OrderItem
from dealer_sales.database.models.vehicle import Vehicle
from dealer_sales.services.vehicles.repository import VehicleRepository

logger = get_logger(__name__)


class InventoryService:
    """Stock counter mutations under row locks."""

    def __init__(self, vehicles: VehicleRepository):
        self.vehicles = vehicles

    async def reserve(self, vehicle_id: uuid.UUID) -> Vehicle:
        """
        Lock a vehicle and take one unit of stock.

        Args:
            vehicle_id: Vehicle to reserve

        Returns:
            The locked vehicle with stock already decremented

        Raises:
            NotFoundError: If vehicle is missing or soft-deleted
            ConflictError: If vehicle is inactive or out of stock
        """
        vehicle = await self.vehicles.get_for_update(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Vehicle not found", vehicle_id=vehicle_id)

        if not vehicle.is_active:
            raise ConflictError("Vehicle is not available", vehicle_id=vehicle_id)

        if vehicle.stock <= 0:
            logger.warning(
                "Vehicle out of stock",
                vehicle_id=str(vehicle_id),
                stock=vehicle.stock,
            )
            raise ConflictError(
                "Vehicle is out of stock",
                vehicle_id=vehicle_id,
                stock=vehicle.stock,
            )

        old_stock = vehicle.stock
        vehicle.stock = old_stock - 1

        logger.info(
            "Vehicle stock reserved",
            vehicle_id=str(vehicle_id),
            old_stock=old_stock,
            new_stock=vehicle.stock,
        )
        return vehicle

    async def restore(self, items: Iterable[OrderItem]) -> int:
        """
        Return one unit of stock per item to its vehicle.

        Vehicles are locked in ascending ID order. Soft-deleted vehicles still
        receive their stock back.

        Returns:
            Number of units restored

        Raises:
            FatalError: If an item's vehicle no longer exists
        """
        items = list(items)
        locked = await self.vehicles.get_many_for_update(
            [item.vehicle_id for item in items]
        )

        restored = 0
        for item in items:
            vehicle = locked.get(item.vehicle_id)
            if vehicle is None:
                logger.error(
                    "Vehicle missing during stock restoration",
                    order_id=str(item.order_id),
                    vehicle_id=str(item.vehicle_id),
                )
                raise FatalError(
                    "Vehicle missing during stock restoration",
                    order_id=item.order_id,
                    vehicle_id=item.vehicle_id,
                )

            old_stock = vehicle.stock
            vehicle.stock = old_stock + 1
            restored += 1

            logger.info(
                "Vehicle stock restored",
                vehicle_id=str(vehicle.id),
                order_id=str(item.order_id),
                old_stock=old_stock,
                new_stock=vehicle.stock,
            )

        return restored
