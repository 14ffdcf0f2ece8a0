"""
Test suite for StatisticsService revenue and order counts.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from dealer_sales.core.exceptions import ForbiddenError, UnauthenticatedError
from dealer_sales.database.models import Order
from dealer_sales.services.orders.enums import OrderStatus
from dealer_sales.services.orders.service import OrderService
from dealer_sales.services.statistics.service import StatisticsService


@pytest.fixture
def order_service(uow, clock) -> OrderService:
    return OrderService(uow, clock)


@pytest.fixture
def statistics(uow) -> StatisticsService:
    return StatisticsService(uow)


@pytest.fixture
async def sales(order_service, clock, customer, staff, make_vehicle, add_paid_payment):
    """
    Four orders across three days.

    14th: confirmed (30000.50) and cancelled (20000.00)
    15th: pending (10000.00)
    16th: confirmed (15000.25)
    """
    premium = await make_vehicle(base_price=Decimal("30000.50"))
    standard = await make_vehicle(base_price=Decimal("20000.00"))
    basic = await make_vehicle(base_price=Decimal("10000.00"))
    sport = await make_vehicle(base_price=Decimal("15000.25"))

    confirmed_early = await order_service.create_order(customer, premium)
    await add_paid_payment(confirmed_early)
    await order_service.update_order_status(confirmed_early, staff, OrderStatus.CONFIRMED)

    cancelled = await order_service.create_order(customer, standard)
    await order_service.cancel_order(cancelled, customer, "Not needed")

    clock.advance(days=1)
    await order_service.create_order(customer, basic)

    clock.advance(days=1)
    confirmed_late = await order_service.create_order(customer, sport)
    await add_paid_payment(confirmed_late)
    await order_service.update_order_status(confirmed_late, staff, OrderStatus.CONFIRMED)

    return {"confirmed_early": confirmed_early, "confirmed_late": confirmed_late}


class TestTotalRevenue:
    """Test revenue aggregation."""

    @pytest.mark.asyncio
    async def test_empty_database(self, statistics):
        assert await statistics.total_revenue() == Decimal("0.00")
        assert await statistics.total_orders_count() == 0

    @pytest.mark.asyncio
    async def test_revenue_counts_confirmed_and_delivered_only(self, statistics, sales):
        assert await statistics.total_revenue() == Decimal("45000.75")

    @pytest.mark.asyncio
    async def test_window_applies_to_every_counted_status(self, statistics, sales):
        """
        The date window bounds confirmed and delivered orders alike.

        Only the early confirmed order falls inside the 14th.
        """
        revenue = await statistics.total_revenue(
            from_date=datetime(2026, 3, 14), to_date=datetime(2026, 3, 14, 23, 59, 59)
        )

        assert revenue == Decimal("30000.50")

    @pytest.mark.asyncio
    async def test_window_bounds_are_inclusive(self, statistics, sales):
        revenue = await statistics.total_revenue(
            from_date=datetime(2026, 3, 16, 10, 30), to_date=datetime(2026, 3, 16, 10, 30)
        )

        assert revenue == Decimal("15000.25")

    @pytest.mark.asyncio
    async def test_soft_deleted_orders_excluded(
        self, statistics, sales, soft_delete
    ):
        await soft_delete(Order, sales["confirmed_late"])

        assert await statistics.total_revenue() == Decimal("30000.50")
        assert await statistics.total_orders_count() == 3


class TestTotalOrdersCount:
    """Test order counts."""

    @pytest.mark.asyncio
    async def test_counts_every_status(self, statistics, sales):
        assert await statistics.total_orders_count() == 4

    @pytest.mark.asyncio
    async def test_counts_within_window(self, statistics, sales):
        count = await statistics.total_orders_count(
            from_date=datetime(2026, 3, 15), to_date=datetime(2026, 3, 16)
        )

        assert count == 1


class TestSalesSummary:
    """Test the staff statistics summary."""

    @pytest.mark.asyncio
    async def test_summary_for_staff(self, statistics, staff, sales):
        summary = await statistics.sales_summary(staff, from_date=datetime(2026, 3, 15))

        assert summary.total_revenue == Decimal("15000.25")
        assert summary.total_orders == 2
        assert summary.from_date == datetime(2026, 3, 15)
        assert summary.to_date is None

    @pytest.mark.asyncio
    async def test_summary_requires_staff(self, statistics, customer):
        with pytest.raises(ForbiddenError):
            await statistics.sales_summary(customer)

    @pytest.mark.asyncio
    async def test_summary_requires_actor(self, statistics):
        with pytest.raises(UnauthenticatedError):
            await statistics.sales_summary(None)
