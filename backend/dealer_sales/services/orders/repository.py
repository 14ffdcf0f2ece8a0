"""
Order data access repository.

This module implements the OrderRepository class providing async methods for
loading the order aggregate (always eagerly: customer, staff, items with their
vehicles, invoices with their payments, deliveries), locking an order row for
a state change, allocating day-scoped order and invoice numbers, and building
the filtered listing statements used by pagination.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import selectinload

from dealer_sales.core.logging import get_logger
from dealer_sales.database.models.invoice import Invoice
from dealer_sales.database.models.order import Order, OrderItem
from dealer_sales.database.models.user import User
from dealer_sales.database.repository import (
    LIKE_ESCAPE,
    BaseRepository,
    contains_pattern,
)
from dealer_sales.schemas.orders import OrderFilter

logger = get_logger(__name__)

ORDER_NUMBER_PREFIX = "ORD"
INVOICE_NUMBER_PREFIX = "INV"


def order_aggregate_options() -> tuple:
    """Loader options pulling in the whole order aggregate."""
    return (
        selectinload(Order.customer),
        selectinload(Order.staff),
        selectinload(Order.items).selectinload(OrderItem.vehicle),
        selectinload(Order.invoices).selectinload(Invoice.payments),
        selectinload(Order.deliveries),
    )


def daily_prefix(prefix: str, day: datetime) -> str:
    return f"{prefix}-{day:%Y%m%d}-"


def format_daily_number(prefix: str, day: datetime, sequence: int) -> str:
    """Build ``PREFIX-YYYYMMDD-NNNN``."""
    return f"{daily_prefix(prefix, day)}{sequence:04d}"


class OrderRepository(BaseRepository):
    """
    Repository for order aggregate data access.

    Every loader returns the order with all of its relationships populated
    from the current database state, so callers never trigger lazy loads.
    """

    def _aggregate_stmt(self) -> Select:
        return (
            select(Order)
            .options(*order_aggregate_options())
            .execution_options(populate_existing=True)
        )

    async def get_by_id(self, order_id: uuid.UUID) -> Optional[Order]:
        """
        Get a non-deleted order by ID with its aggregate loaded.

        Returns:
            Order if found, None otherwise
        """
        logger.debug("Fetching order by ID", order_id=str(order_id))
        stmt = self._aggregate_stmt().where(
            Order.id == order_id,
            Order.deleted_at.is_(None),
        )
        return await self.scalar_one_or_none(stmt, "fetch order", order_id=order_id)

    async def get_for_update(self, order_id: uuid.UUID) -> Optional[Order]:
        """
        Get a non-deleted order holding its row lock until the transaction ends.

        Payment and delivery checks made against the returned aggregate run
        on the same serialized snapshot as the state change that follows.
        """
        logger.debug("Locking order row", order_id=str(order_id))
        stmt = (
            self._aggregate_stmt()
            .where(Order.id == order_id, Order.deleted_at.is_(None))
            .with_for_update(of=Order)
        )
        return await self.scalar_one_or_none(stmt, "lock order", order_id=order_id)

    async def next_order_number(self, day: datetime) -> str:
        """
        Allocate the next ``ORD-YYYYMMDD-NNNN`` number for a day.

        Collisions between concurrent allocations are caught by the unique
        constraint on ``order_number`` at commit.
        """
        prefix = daily_prefix(ORDER_NUMBER_PREFIX, day)
        stmt = select(func.count(Order.id)).where(Order.order_number.like(f"{prefix}%"))
        count = await self.scalar(stmt, "count order numbers", prefix=prefix)
        return format_daily_number(ORDER_NUMBER_PREFIX, day, int(count or 0) + 1)

    async def next_invoice_number(self, day: datetime) -> str:
        """Allocate the next ``INV-YYYYMMDD-NNNN`` number for a day."""
        prefix = daily_prefix(INVOICE_NUMBER_PREFIX, day)
        stmt = select(func.count(Invoice.id)).where(
            Invoice.invoice_number.like(f"{prefix}%")
        )
        count = await self.scalar(stmt, "count invoice numbers", prefix=prefix)
        return format_daily_number(INVOICE_NUMBER_PREFIX, day, int(count or 0) + 1)

    def add(self, order: Order) -> None:
        self.session.add(order)

    def customer_orders_stmt(self, customer_id: uuid.UUID) -> Select:
        """Non-deleted orders of one customer, newest first."""
        return (
            self._aggregate_stmt()
            .where(Order.customer_id == customer_id, Order.deleted_at.is_(None))
            .order_by(Order.created_at.desc(), Order.order_number.desc())
        )

    def filtered_stmt(self, filters: Optional[OrderFilter] = None) -> Select:
        """
        Build the staff listing statement.

        Args:
            filters: Optional customer, staff, status, created-at window and
                free-text search filters

        Returns:
            Statement over non-deleted orders, newest first
        """
        stmt = (
            self._aggregate_stmt()
            .join(User, Order.customer_id == User.id)
            .where(Order.deleted_at.is_(None))
        )

        if filters:
            if filters.customer_id:
                stmt = stmt.where(Order.customer_id == filters.customer_id)
            if filters.staff_id:
                stmt = stmt.where(Order.staff_id == filters.staff_id)
            if filters.status:
                stmt = stmt.where(Order.status == filters.status)
            if filters.from_date:
                stmt = stmt.where(Order.created_at >= filters.from_date)
            if filters.to_date:
                stmt = stmt.where(Order.created_at <= filters.to_date)
            if filters.search:
                pattern = contains_pattern(filters.search)
                stmt = stmt.where(
                    or_(
                        func.lower(Order.order_number).like(pattern, escape=LIKE_ESCAPE),
                        func.lower(User.full_name).like(pattern, escape=LIKE_ESCAPE),
                        func.lower(User.email).like(pattern, escape=LIKE_ESCAPE),
                    )
                )

        return stmt.order_by(Order.created_at.desc(), Order.order_number.desc())
