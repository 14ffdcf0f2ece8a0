"""
Vehicle data access: catalog listing and row-locked reads.

Stock changes always read the vehicle row with ``SELECT ... FOR UPDATE`` so
concurrent reservations, restorations and catalog edits serialize on the row.
"""

import uuid
from typing import Optional, Sequence

from sqlalchemy import Select, asc, desc, func, or_, select

from dealer_sales.core.logging import get_logger
from dealer_sales.database.models.vehicle import Vehicle
from dealer_sales.database.repository import (
    LIKE_ESCAPE,
    BaseRepository,
    contains_pattern,
)
from dealer_sales.schemas.vehicles import VehicleFilter

logger = get_logger(__name__)


class VehicleRepository(BaseRepository):
    """Repository for vehicle reads, locked reads and catalog listings."""

    async def get_by_id(
        self,
        vehicle_id: uuid.UUID,
        include_deleted: bool = False,
    ) -> Optional[Vehicle]:
        """
        Get vehicle by ID.

        Args:
            vehicle_id: Vehicle identifier
            include_deleted: Whether soft-deleted vehicles are returned
        """
        stmt = select(Vehicle).where(Vehicle.id == vehicle_id)
        if not include_deleted:
            stmt = stmt.where(Vehicle.deleted_at.is_(None))
        return await self.scalar_one_or_none(
            stmt, "fetch vehicle", vehicle_id=vehicle_id
        )

    async def get_for_update(
        self,
        vehicle_id: uuid.UUID,
        include_deleted: bool = False,
    ) -> Optional[Vehicle]:
        """
        Get vehicle by ID holding a row lock until the transaction ends.

        The row is re-read even if already present in the session so the
        stock value reflects the locked snapshot.
        """
        stmt = (
            select(Vehicle)
            .where(Vehicle.id == vehicle_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if not include_deleted:
            stmt = stmt.where(Vehicle.deleted_at.is_(None))

        logger.debug("Locking vehicle row", vehicle_id=str(vehicle_id))
        return await self.scalar_one_or_none(
            stmt, "lock vehicle", vehicle_id=vehicle_id
        )

    async def get_many_for_update(
        self,
        vehicle_ids: Sequence[uuid.UUID],
    ) -> dict[uuid.UUID, Vehicle]:
        """
        Lock several vehicle rows in ascending ID order.

        Soft-deleted vehicles are included; stock owed to a delisted vehicle
        is still returned to it.
        """
        if not vehicle_ids:
            return {}

        stmt = (
            select(Vehicle)
            .where(Vehicle.id.in_(sorted(set(vehicle_ids))))
            .order_by(Vehicle.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        vehicles = await self.scalars(
            stmt, "lock vehicles", vehicle_count=len(vehicle_ids)
        )
        return {vehicle.id: vehicle for vehicle in vehicles}

    def add(self, vehicle: Vehicle) -> None:
        self.session.add(vehicle)

    def catalog_stmt(
        self,
        filters: Optional[VehicleFilter] = None,
        include_inactive: bool = False,
    ) -> Select:
        """
        Build the catalog listing statement.

        Soft-deleted vehicles are never listed. Rows are ordered by the
        requested column with the ID as tie-breaker so pages stay stable.

        Args:
            filters: Optional search, price, range, year and stock filters
            include_inactive: Whether deactivated vehicles are listed
        """
        filters = filters or VehicleFilter()
        stmt = select(Vehicle).where(Vehicle.deleted_at.is_(None))

        if not include_inactive:
            stmt = stmt.where(Vehicle.is_active.is_(True))
        if filters.search:
            pattern = contains_pattern(filters.search)
            stmt = stmt.where(
                or_(
                    func.lower(Vehicle.model_name).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(Vehicle.trim_name).like(pattern, escape=LIKE_ESCAPE),
                )
            )
        if filters.min_price is not None:
            stmt = stmt.where(Vehicle.base_price >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(Vehicle.base_price <= filters.max_price)
        if filters.min_range_km is not None:
            stmt = stmt.where(Vehicle.range_km >= filters.min_range_km)
        if filters.max_range_km is not None:
            stmt = stmt.where(Vehicle.range_km <= filters.max_range_km)
        if filters.model_year is not None:
            stmt = stmt.where(Vehicle.model_year == filters.model_year)
        if filters.in_stock_only:
            stmt = stmt.where(Vehicle.stock > 0)

        sort_column = getattr(Vehicle, filters.sort_by.value)
        order_func = desc if filters.sort_desc else asc
        return stmt.order_by(order_func(sort_column), Vehicle.id)
