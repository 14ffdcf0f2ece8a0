"""
Sales statistics.

Revenue counts confirmed and delivered orders only; order counts include every
status. Both exclude soft-deleted orders and filter on ``created_at``.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, func, or_, select

from dealer_sales.core.logging import get_logger
from dealer_sales.database.models.order import Order
from dealer_sales.database.repository import BaseRepository
from dealer_sales.database.unit_of_work import UnitOfWork
from dealer_sales.schemas.statistics import SalesStatisticsResponse
from dealer_sales.services.orders.enums import OrderStatus
from dealer_sales.services.users.service import require_staff, resolve_actor

logger = get_logger(__name__)


def _created_window(from_date: Optional[datetime], to_date: Optional[datetime]) -> list:
    conditions = []
    if from_date is not None:
        conditions.append(Order.created_at >= from_date)
    if to_date is not None:
        conditions.append(Order.created_at <= to_date)
    return conditions


class StatisticsService:
    """Revenue and order count aggregation."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.repository = BaseRepository(uow.session)

    async def total_revenue(
        self,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> Decimal:
        """
        Sum of order totals for confirmed and delivered orders.

        The status disjunction is grouped on its own so the date window
        applies to every counted status.
        """
        stmt = select(func.coalesce(func.sum(Order.total_amount), 0)).where(
            and_(
                Order.deleted_at.is_(None),
                or_(
                    Order.status == OrderStatus.CONFIRMED,
                    Order.status == OrderStatus.DELIVERED,
                ),
                *_created_window(from_date, to_date),
            )
        )
        total = await self.repository.scalar(stmt, "sum revenue")
        return Decimal(str(total or 0)).quantize(Decimal("0.01"))

    async def total_orders_count(
        self,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> int:
        """Count of non-deleted orders of any status in the window."""
        stmt = select(func.count(Order.id)).where(
            Order.deleted_at.is_(None),
            *_created_window(from_date, to_date),
        )
        return int(await self.repository.scalar(stmt, "count orders") or 0)

    async def sales_summary(
        self,
        actor_id: Optional[uuid.UUID],
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> SalesStatisticsResponse:
        """Revenue and order count for staff dashboards."""
        actor = await resolve_actor(self.uow.users, actor_id)
        require_staff(actor, "sales_summary")

        revenue = await self.total_revenue(from_date, to_date)
        count = await self.total_orders_count(from_date, to_date)

        logger.debug(
            "Sales statistics computed",
            total_revenue=str(revenue),
            total_orders=count,
        )
        return SalesStatisticsResponse(
            total_revenue=revenue,
            total_orders=count,
            from_date=from_date,
            to_date=to_date,
        )
