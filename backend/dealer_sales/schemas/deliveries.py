"""
Delivery Pydantic schemas for API request/response validation.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dealer_sales.services.orders.enums import DeliveryStatus, OrderStatus

if TYPE_CHECKING:
    from dealer_sales.database.models.delivery import Delivery


class DeliveryCreateRequest(BaseModel):
    """Staff request to schedule a delivery for a paid order."""

    model_config = ConfigDict(str_strip_whitespace=True)

    order_id: UUID = Field(..., description="Order to deliver")
    planned_date: datetime = Field(..., description="Planned delivery date")
    notes: Optional[str] = Field(None, max_length=1000)
    shipping_address: Optional[str] = Field(
        None,
        max_length=500,
        description="Overrides the order's shipping address",
    )


class DeliveryStatusUpdate(BaseModel):
    """Staff request to move a delivery through its lifecycle."""

    model_config = ConfigDict(str_strip_whitespace=True)

    status: DeliveryStatus
    planned_date: Optional[datetime] = None
    actual_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            return DeliveryStatus.from_string(v)
        return v


class DeliveryFilter(BaseModel):
    """Filters for the staff delivery listing."""

    model_config = ConfigDict(str_strip_whitespace=True)

    status: Optional[DeliveryStatus] = None
    from_date: Optional[datetime] = Field(
        None, description="Planned or actual date at or after"
    )
    to_date: Optional[datetime] = Field(
        None, description="Planned or actual date at or before"
    )
    search: Optional[str] = Field(None, max_length=200)

    @model_validator(mode="after")
    def validate_date_range(self) -> "DeliveryFilter":
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError("from_date must not be after to_date")
        return self


class DeliveryResponse(BaseModel):
    """Delivery with order and customer display fields."""

    id: UUID
    order_id: UUID
    order_number: Optional[str] = None
    order_status: Optional[OrderStatus] = None

    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    vehicle_info: str = ""

    status: DeliveryStatus
    planned_date: Optional[datetime] = None
    actual_date: Optional[datetime] = None
    shipping_address: Optional[str] = None
    notes: Optional[str] = None

    created_at: datetime
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    @classmethod
    def from_delivery(cls, delivery: "Delivery") -> "DeliveryResponse":
        order = delivery.order
        customer = order.customer if order else None

        return cls(
            id=delivery.id,
            order_id=delivery.order_id,
            order_number=order.order_number if order else None,
            order_status=order.status if order else None,
            customer_id=order.customer_id if order else None,
            customer_name=customer.full_name if customer else None,
            customer_email=customer.email if customer else None,
            customer_phone=customer.phone_number if customer else None,
            vehicle_info=order.vehicle_info if order else "",
            status=delivery.status,
            planned_date=delivery.planned_date,
            actual_date=delivery.actual_date,
            shipping_address=delivery.shipping_address,
            notes=delivery.notes,
            created_at=delivery.created_at,
            updated_at=delivery.updated_at,
            created_by=delivery.created_by,
            updated_by=delivery.updated_by,
        )
