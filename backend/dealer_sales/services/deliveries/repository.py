"""
Delivery data access repository.

Deliveries are always loaded together with their order, the order's customer
and the order's items with vehicles, which the delivery responses display.
"""

import uuid
from typing import Optional

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import selectinload

from dealer_sales.core.logging import get_logger
from dealer_sales.database.models.delivery import Delivery
from dealer_sales.database.models.order import Order, OrderItem
from dealer_sales.database.models.user import User
from dealer_sales.database.repository import (
    LIKE_ESCAPE,
    BaseRepository,
    contains_pattern,
)
from dealer_sales.schemas.deliveries import DeliveryFilter

logger = get_logger(__name__)


def delivery_options() -> tuple:
    order = selectinload(Delivery.order)
    return (
        order.selectinload(Order.customer),
        order.selectinload(Order.items).selectinload(OrderItem.vehicle),
    )


class DeliveryRepository(BaseRepository):
    """Repository for delivery data access."""

    def _delivery_stmt(self) -> Select:
        return (
            select(Delivery)
            .options(*delivery_options())
            .execution_options(populate_existing=True)
        )

    async def get_by_id(self, delivery_id: uuid.UUID) -> Optional[Delivery]:
        """Get a non-deleted delivery with its order loaded."""
        stmt = self._delivery_stmt().where(
            Delivery.id == delivery_id,
            Delivery.deleted_at.is_(None),
        )
        return await self.scalar_one_or_none(
            stmt, "fetch delivery", delivery_id=delivery_id
        )

    async def get_for_update(self, delivery_id: uuid.UUID) -> Optional[Delivery]:
        """Get a non-deleted delivery holding its row lock."""
        stmt = (
            self._delivery_stmt()
            .where(Delivery.id == delivery_id, Delivery.deleted_at.is_(None))
            .with_for_update(of=Delivery)
        )
        return await self.scalar_one_or_none(
            stmt, "lock delivery", delivery_id=delivery_id
        )

    async def get_active_for_order(self, order_id: uuid.UUID) -> Optional[Delivery]:
        """The order's non-deleted delivery, if any."""
        stmt = self._delivery_stmt().where(
            Delivery.order_id == order_id,
            Delivery.deleted_at.is_(None),
        )
        return await self.scalar_one_or_none(
            stmt, "fetch delivery by order", order_id=order_id
        )

    def add(self, delivery: Delivery) -> None:
        self.session.add(delivery)

    def filtered_stmt(self, filters: Optional[DeliveryFilter] = None) -> Select:
        """
        Build the staff listing statement.

        A date bound matches when either the planned or the actual date
        satisfies it.

        Returns:
            Statement over non-deleted deliveries, newest first
        """
        stmt = (
            self._delivery_stmt()
            .join(Order, Delivery.order_id == Order.id)
            .join(User, Order.customer_id == User.id)
            .where(Delivery.deleted_at.is_(None))
        )

        if filters:
            if filters.status:
                stmt = stmt.where(Delivery.status == filters.status)
            if filters.from_date:
                stmt = stmt.where(
                    or_(
                        Delivery.planned_date >= filters.from_date,
                        Delivery.actual_date >= filters.from_date,
                    )
                )
            if filters.to_date:
                stmt = stmt.where(
                    or_(
                        Delivery.planned_date <= filters.to_date,
                        Delivery.actual_date <= filters.to_date,
                    )
                )
            if filters.search:
                pattern = contains_pattern(filters.search)
                stmt = stmt.where(
                    or_(
                        func.lower(Order.order_number).like(pattern, escape=LIKE_ESCAPE),
                        func.lower(User.full_name).like(pattern, escape=LIKE_ESCAPE),
                        func.lower(User.email).like(pattern, escape=LIKE_ESCAPE),
                    )
                )

        return stmt.order_by(Delivery.created_at.desc(), Delivery.id)

