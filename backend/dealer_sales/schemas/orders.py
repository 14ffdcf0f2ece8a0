"""
Order Pydantic schemas for API request/response validation.

Responses carry denormalized display fields (customer name, email and phone,
staff name, vehicle info) computed from the loaded aggregate.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dealer_sales.services.orders.enums import (
    InvoiceStatus,
    OrderStatus,
    PaymentStatus,
)

if TYPE_CHECKING:
    from dealer_sales.database.models.invoice import Invoice
    from dealer_sales.database.models.order import Order


class OrderCreateRequest(BaseModel):
    """Request to order one vehicle."""

    model_config = ConfigDict(str_strip_whitespace=True)

    vehicle_id: UUID = Field(..., description="Vehicle to order")
    notes: Optional[str] = Field(None, max_length=1000, description="Order notes")
    shipping_address: Optional[str] = Field(
        None,
        max_length=500,
        description="Shipping address for delivery",
    )


class OrderCancelRequest(BaseModel):
    """Request to cancel an order."""

    model_config = ConfigDict(str_strip_whitespace=True)

    reason: Optional[str] = Field(None, max_length=500, description="Cancellation reason")


class OrderStatusUpdate(BaseModel):
    """Staff request to change an order's status."""

    model_config = ConfigDict(str_strip_whitespace=True)

    status: OrderStatus = Field(..., description="Target order status")
    notes: Optional[str] = Field(None, max_length=1000, description="Note to append")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            return OrderStatus.from_string(v)
        return v


class AssignStaffRequest(BaseModel):
    """Staff request to assign an order to a staff member."""

    staff_id: UUID = Field(..., description="Staff member to assign")


class OrderFilter(BaseModel):
    """Filters for the staff order listing."""

    model_config = ConfigDict(str_strip_whitespace=True)

    customer_id: Optional[UUID] = None
    staff_id: Optional[UUID] = None
    status: Optional[OrderStatus] = None
    from_date: Optional[datetime] = Field(None, description="Created at or after")
    to_date: Optional[datetime] = Field(None, description="Created at or before")
    search: Optional[str] = Field(
        None,
        max_length=200,
        description="Case-insensitive match on order number, customer name or email",
    )

    @model_validator(mode="after")
    def validate_date_range(self) -> "OrderFilter":
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError("from_date must not be after to_date")
        return self


class PaymentResponse(BaseModel):
    """Payment recorded against an invoice."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_id: UUID
    amount: Decimal
    status: PaymentStatus
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_intent_id: Optional[str] = None
    requires_refund: bool = False
    created_at: datetime


class InvoiceResponse(BaseModel):
    """Invoice with its payments."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_number: str
    total_amount: Decimal
    status: InvoiceStatus
    notes: Optional[str] = None
    payments: list[PaymentResponse] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_invoice(cls, invoice: "Invoice") -> "InvoiceResponse":
        return cls(
            id=invoice.id,
            invoice_number=invoice.invoice_number,
            total_amount=invoice.total_amount,
            status=invoice.status,
            notes=invoice.notes,
            payments=[
                PaymentResponse.model_validate(payment)
                for payment in invoice.payments
                if not payment.is_deleted
            ],
            created_at=invoice.created_at,
        )


class OrderItemResponse(BaseModel):
    """Order line item with vehicle display fields."""

    id: UUID
    vehicle_id: UUID
    model_name: Optional[str] = None
    trim_name: Optional[str] = None
    model_year: Optional[int] = None
    unit_price: Decimal


class OrderResponse(BaseModel):
    """Order with items, invoices and display fields."""

    id: UUID
    order_number: str
    status: OrderStatus
    total_amount: Decimal
    shipping_address: Optional[str] = None
    notes: Optional[str] = None

    customer_id: UUID
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    staff_id: Optional[UUID] = None
    staff_name: Optional[str] = None

    vehicle_info: str = ""
    has_paid_payment: bool = False
    delivery_id: Optional[UUID] = None

    items: list[OrderItemResponse] = Field(default_factory=list)
    invoices: list[InvoiceResponse] = Field(default_factory=list)

    created_at: datetime
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    @classmethod
    def from_order(cls, order: "Order") -> "OrderResponse":
        """Build the response from a fully loaded order aggregate."""
        customer = order.customer
        staff = order.staff
        delivery = order.active_delivery

        return cls(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            total_amount=order.total_amount,
            shipping_address=order.shipping_address,
            notes=order.notes,
            customer_id=order.customer_id,
            customer_name=customer.full_name if customer else None,
            customer_email=customer.email if customer else None,
            customer_phone=customer.phone_number if customer else None,
            staff_id=order.staff_id,
            staff_name=staff.full_name if staff else None,
            vehicle_info=order.vehicle_info,
            has_paid_payment=order.has_paid_payment,
            delivery_id=delivery.id if delivery else None,
            items=[
                OrderItemResponse(
                    id=item.id,
                    vehicle_id=item.vehicle_id,
                    model_name=item.vehicle.model_name if item.vehicle else None,
                    trim_name=item.vehicle.trim_name if item.vehicle else None,
                    model_year=item.vehicle.model_year if item.vehicle else None,
                    unit_price=item.unit_price,
                )
                for item in order.live_items
            ],
            invoices=[
                InvoiceResponse.from_invoice(invoice)
                for invoice in order.invoices
                if not invoice.is_deleted
            ],
            created_at=order.created_at,
            updated_at=order.updated_at,
            created_by=order.created_by,
            updated_by=order.updated_by,
        )


class OrderCreatedResponse(BaseModel):
    """Identifier of a newly created order."""

    order_id: UUID
