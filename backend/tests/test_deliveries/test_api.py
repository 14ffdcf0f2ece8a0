"""
API tests for the delivery endpoints.
"""

import uuid

import pytest
from fastapi import status

BASE_URL = "/api/v1/deliveries"


@pytest.fixture
async def paid_order(client, auth_headers, customer, vehicle, add_paid_payment) -> str:
    response = await client.post(
        "/api/v1/orders",
        json={"vehicle_id": str(vehicle), "shipping_address": "12 Elm Road"},
        headers=auth_headers(customer),
    )
    order_id = response.json()["order_id"]
    await add_paid_payment(uuid.UUID(order_id))
    return order_id


@pytest.fixture
async def delivery_id(client, auth_headers, staff, paid_order) -> str:
    response = await client.post(
        BASE_URL,
        json={"order_id": paid_order, "planned_date": "2026-03-20T09:00:00"},
        headers=auth_headers(staff),
    )
    return response.json()["id"]


class TestDeliveryEndpoints:
    """Test delivery scheduling and lifecycle over HTTP."""

    @pytest.mark.asyncio
    async def test_create_delivery(self, client, auth_headers, staff, paid_order):
        response = await client.post(
            BASE_URL,
            json={
                "order_id": paid_order,
                "planned_date": "2026-03-20T09:00:00",
                "notes": "Ring twice",
            },
            headers=auth_headers(staff),
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["status"] == "scheduled"
        assert body["order_id"] == paid_order
        assert body["shipping_address"] == "12 Elm Road"
        assert body["customer_email"] == "jane@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_delivery(
        self, client, auth_headers, staff, paid_order, delivery_id
    ):
        response = await client.post(
            BASE_URL,
            json={"order_id": paid_order, "planned_date": "2026-03-21T09:00:00"},
            headers=auth_headers(staff),
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["context"]["delivery_id"] == delivery_id

    @pytest.mark.asyncio
    async def test_customer_cannot_schedule(self, client, auth_headers, customer, paid_order):
        response = await client.post(
            BASE_URL,
            json={"order_id": paid_order, "planned_date": "2026-03-20T09:00:00"},
            headers=auth_headers(customer),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_complete_delivery(
        self, client, auth_headers, staff, customer, paid_order, delivery_id
    ):
        response = await client.patch(
            f"{BASE_URL}/{delivery_id}/status",
            json={"status": "delivered", "actual_date": "2026-03-20T15:00:00"},
            headers=auth_headers(staff),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "delivered"
        assert response.json()["actual_date"] == "2026-03-20T15:00:00"

        order = await client.get(
            f"/api/v1/orders/{paid_order}", headers=auth_headers(customer)
        )
        assert order.json()["status"] == "delivered"
        assert order.json()["delivery_id"] == delivery_id

    @pytest.mark.asyncio
    async def test_regression_is_conflict(self, client, auth_headers, staff, delivery_id):
        await client.patch(
            f"{BASE_URL}/{delivery_id}/status",
            json={"status": "delivered"},
            headers=auth_headers(staff),
        )

        response = await client.patch(
            f"{BASE_URL}/{delivery_id}/status",
            json={"status": "in_transit"},
            headers=auth_headers(staff),
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    @pytest.mark.asyncio
    async def test_get_by_order(self, client, auth_headers, customer, paid_order, delivery_id):
        response = await client.get(
            f"{BASE_URL}/by-order/{paid_order}", headers=auth_headers(customer)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == delivery_id

    @pytest.mark.asyncio
    async def test_get_missing_delivery(self, client, auth_headers, staff):
        response = await client.get(
            f"{BASE_URL}/{uuid.uuid4()}", headers=auth_headers(staff)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_list_deliveries(self, client, auth_headers, staff, delivery_id):
        response = await client.get(
            BASE_URL,
            params={"status": "scheduled", "search": "ORD-20260314"},
            headers=auth_headers(staff),
        )

        assert response.status_code == status.HTTP_200_OK
        assert [item["id"] for item in response.json()["items"]] == [delivery_id]
