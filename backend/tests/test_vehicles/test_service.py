"""
Test suite for VehicleService.

Covers catalog browsing with its filters and visibility rules, and the staff
operations that add, edit and delist vehicles.
"""

import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError

from dealer_sales.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
)
from dealer_sales.database.models import Vehicle
from dealer_sales.schemas.vehicles import (
    VehicleCreateRequest,
    VehicleFilter,
    VehicleSortField,
    VehicleUpdateRequest,
)
from dealer_sales.services.orders.service import OrderService
from dealer_sales.services.vehicles.service import VehicleService


@pytest.fixture
def vehicle_service(uow, clock) -> VehicleService:
    return VehicleService(uow, clock)


@pytest.fixture
async def catalog(make_vehicle) -> dict[str, uuid.UUID]:
    """Four listed vehicles plus one inactive and one sold-out model."""
    return {
        "model_3": await make_vehicle(
            model_name="Model 3", base_price=Decimal("45990.00"), range_km=602
        ),
        "model_y": await make_vehicle(
            model_name="Model Y",
            trim_name="Performance",
            base_price=Decimal("54990.00"),
            range_km=514,
        ),
        "ioniq": await make_vehicle(
            model_name="Ioniq 5",
            trim_name="N_Line",
            base_price=Decimal("52600.00"),
            model_year=2025,
            range_km=481,
        ),
        "leaf": await make_vehicle(
            model_name="Leaf",
            trim_name="",
            base_price=Decimal("28140.00"),
            stock=0,
            range_km=240,
        ),
        "roadster": await make_vehicle(
            model_name="Roadster",
            trim_name="",
            base_price=Decimal("200000.00"),
            is_active=False,
            range_km=1000,
        ),
    }


def names(page) -> list[str]:
    return [item.display_name for item in page.items]


class TestListVehicles:
    """Test catalog listing."""

    @pytest.mark.asyncio
    async def test_lists_active_vehicles_by_name(self, vehicle_service, customer, catalog):
        page = await vehicle_service.list_vehicles(customer)

        assert page.total_count == 4
        assert names(page) == [
            "Ioniq 5 N_Line",
            "Leaf",
            "Model 3 Long Range",
            "Model Y Performance",
        ]

    @pytest.mark.asyncio
    async def test_deleted_vehicles_are_hidden(
        self, vehicle_service, staff, catalog, soft_delete
    ):
        await soft_delete(Vehicle, catalog["leaf"])

        page = await vehicle_service.list_vehicles(staff, include_inactive=True)

        assert page.total_count == 4
        assert "Leaf" not in names(page)
        assert "Roadster" in names(page)

    @pytest.mark.asyncio
    async def test_customer_cannot_list_inactive(self, vehicle_service, customer, catalog):
        with pytest.raises(ForbiddenError):
            await vehicle_service.list_vehicles(customer, include_inactive=True)

    @pytest.mark.asyncio
    async def test_requires_actor(self, vehicle_service, catalog):
        with pytest.raises(UnauthenticatedError):
            await vehicle_service.list_vehicles(None)

    @pytest.mark.asyncio
    async def test_filters(self, vehicle_service, customer, catalog):
        async def listed(**kwargs) -> list[str]:
            page = await vehicle_service.list_vehicles(customer, VehicleFilter(**kwargs))
            return names(page)

        assert await listed(search="model") == ["Model 3 Long Range", "Model Y Performance"]
        assert await listed(search="PERFORMANCE") == ["Model Y Performance"]
        assert await listed(min_price=Decimal("50000")) == [
            "Ioniq 5 N_Line",
            "Model Y Performance",
        ]
        assert await listed(max_price=Decimal("30000")) == ["Leaf"]
        assert await listed(min_range_km=500, max_range_km=600) == ["Model Y Performance"]
        assert await listed(model_year=2025) == ["Ioniq 5 N_Line"]
        assert "Leaf" not in await listed(in_stock_only=True)

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(
        self, vehicle_service, customer, catalog
    ):
        async def listed(term: str) -> list[str]:
            page = await vehicle_service.list_vehicles(customer, VehicleFilter(search=term))
            return names(page)

        assert await listed("_") == ["Ioniq 5 N_Line"]
        assert await listed("n_l") == ["Ioniq 5 N_Line"]
        assert await listed("%") == []
        assert await listed("model_") == []

    @pytest.mark.asyncio
    async def test_sorting(self, vehicle_service, customer, catalog):
        by_price = await vehicle_service.list_vehicles(
            customer, VehicleFilter(sort_by=VehicleSortField.BASE_PRICE, sort_desc=True)
        )
        by_range = await vehicle_service.list_vehicles(
            customer, VehicleFilter(sort_by=VehicleSortField.RANGE_KM)
        )

        assert [item.base_price for item in by_price.items] == [
            Decimal("54990.00"),
            Decimal("52600.00"),
            Decimal("45990.00"),
            Decimal("28140.00"),
        ]
        assert [item.range_km for item in by_range.items] == [240, 481, 514, 602]

    @pytest.mark.asyncio
    async def test_pagination(self, vehicle_service, customer, catalog):
        page = await vehicle_service.list_vehicles(customer, page_number=2, page_size=3)

        assert page.total_count == 4
        assert page.page_number == 2
        assert names(page) == ["Model Y Performance"]

    def test_inverted_ranges_rejected(self):
        with pytest.raises(ValidationError):
            VehicleFilter(min_price=Decimal("100"), max_price=Decimal("50"))
        with pytest.raises(ValidationError):
            VehicleFilter(min_range_km=500, max_range_km=100)


class TestGetVehicle:
    """Test single vehicle reads."""

    @pytest.mark.asyncio
    async def test_get_vehicle(self, vehicle_service, customer, vehicle):
        result = await vehicle_service.get_vehicle(vehicle, customer)

        assert result.id == vehicle
        assert result.display_name == "Model 3 Long Range"
        assert result.base_price == Decimal("45990.00")
        assert result.is_orderable is True

    @pytest.mark.asyncio
    async def test_inactive_vehicle_hidden_from_customers(
        self, vehicle_service, customer, staff, make_vehicle
    ):
        hidden = await make_vehicle(is_active=False)

        with pytest.raises(NotFoundError):
            await vehicle_service.get_vehicle(hidden, customer)

        result = await vehicle_service.get_vehicle(hidden, staff)
        assert result.is_active is False
        assert result.is_orderable is False

    @pytest.mark.asyncio
    async def test_unknown_vehicle(self, vehicle_service, staff):
        with pytest.raises(NotFoundError):
            await vehicle_service.get_vehicle(uuid.uuid4(), staff)


class TestCreateVehicle:
    """Test adding vehicles to the catalog."""

    @pytest.mark.asyncio
    async def test_staff_creates_vehicle(self, vehicle_service, staff, clock):
        request = VehicleCreateRequest(
            model_name="  EV6 ",
            trim_name="GT",
            model_year=2026,
            base_price=Decimal("61600.00"),
            stock=2,
            range_km=424,
            battery_capacity_kwh=Decimal("77.40"),
        )

        result = await vehicle_service.create_vehicle(staff, request)

        assert result.display_name == "EV6 GT"
        assert result.stock == 2
        assert result.range_km == 424
        assert result.battery_capacity_kwh == Decimal("77.40")
        assert result.created_at == clock.now()
        assert result.is_orderable is True

        fetched = await vehicle_service.get_vehicle(result.id, staff)
        assert fetched.model_name == "EV6"

    @pytest.mark.asyncio
    async def test_customer_cannot_create(self, vehicle_service, customer):
        request = VehicleCreateRequest(
            model_name="EV6", model_year=2026, base_price=Decimal("61600.00")
        )

        with pytest.raises(ForbiddenError):
            await vehicle_service.create_vehicle(customer, request)

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError):
            VehicleCreateRequest(
                model_name="EV6",
                model_year=2026,
                base_price=Decimal("61600.00"),
                stock=-1,
            )


class TestUpdateVehicle:
    """Test catalog edits."""

    @pytest.mark.asyncio
    async def test_only_sent_fields_change(
        self, vehicle_service, staff, vehicle, clock, stock_of
    ):
        clock.advance(days=1)

        result = await vehicle_service.update_vehicle(
            vehicle,
            staff,
            VehicleUpdateRequest(base_price=Decimal("42990.00"), stock=5),
        )

        assert result.base_price == Decimal("42990.00")
        assert result.stock == 5
        assert result.model_name == "Model 3"
        assert result.trim_name == "Long Range"
        assert result.updated_at == clock.now()
        assert await stock_of(vehicle) == 5

    @pytest.mark.asyncio
    async def test_price_change_leaves_orders_alone(
        self, vehicle_service, uow, clock, staff, customer, vehicle
    ):
        order_service = OrderService(uow, clock)
        order_id = await order_service.create_order(customer, vehicle)

        await vehicle_service.update_vehicle(
            vehicle, staff, VehicleUpdateRequest(base_price=Decimal("39990.00"))
        )

        order = await order_service.get_order(order_id, customer)
        assert order.total_amount == Decimal("45990.00")

    @pytest.mark.asyncio
    async def test_deactivated_vehicle_leaves_listing(
        self, vehicle_service, staff, customer, vehicle
    ):
        await vehicle_service.update_vehicle(
            vehicle, staff, VehicleUpdateRequest(is_active=False)
        )

        page = await vehicle_service.list_vehicles(customer)
        assert page.total_count == 0

    @pytest.mark.asyncio
    async def test_customer_cannot_update(self, vehicle_service, customer, vehicle):
        with pytest.raises(ForbiddenError):
            await vehicle_service.update_vehicle(
                vehicle, customer, VehicleUpdateRequest(stock=99)
            )

    @pytest.mark.asyncio
    async def test_unknown_vehicle(self, vehicle_service, staff):
        with pytest.raises(NotFoundError):
            await vehicle_service.update_vehicle(
                uuid.uuid4(), staff, VehicleUpdateRequest(stock=1)
            )


class TestDeleteVehicle:
    """Test delisting."""

    @pytest.mark.asyncio
    async def test_staff_deletes_vehicle(self, vehicle_service, staff, customer, vehicle):
        assert await vehicle_service.delete_vehicle(vehicle, staff) is True

        with pytest.raises(NotFoundError):
            await vehicle_service.get_vehicle(vehicle, staff)
        page = await vehicle_service.list_vehicles(customer)
        assert page.total_count == 0

        with pytest.raises(NotFoundError):
            await vehicle_service.delete_vehicle(vehicle, staff)

    @pytest.mark.asyncio
    async def test_customer_cannot_delete(self, vehicle_service, customer, vehicle):
        with pytest.raises(ForbiddenError):
            await vehicle_service.delete_vehicle(vehicle, customer)

    @pytest.mark.asyncio
    async def test_cancelling_returns_stock_to_deleted_vehicle(
        self, vehicle_service, uow, clock, staff, customer, vehicle, stock_of
    ):
        order_service = OrderService(uow, clock)
        order_id = await order_service.create_order(customer, vehicle)
        assert await stock_of(vehicle) == 2

        await vehicle_service.delete_vehicle(vehicle, staff)
        await order_service.cancel_order(order_id, customer, "Changed my mind")

        assert await stock_of(vehicle) == 3
