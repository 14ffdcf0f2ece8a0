"""
Order aggregate root and order items.

An order owns its items, invoices and deliveries. Item prices are a snapshot
of the vehicle's base price taken when the order is created, and the order
total is their sum.
"""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealer_sales.database.base import AuditedModel, SoftDeleteModel
from dealer_sales.services.orders.enums import OrderStatus, PaymentStatus

if TYPE_CHECKING:
    from dealer_sales.database.models.delivery import Delivery
    from dealer_sales.database.models.invoice import Invoice
    from dealer_sales.database.models.user import User
    from dealer_sales.database.models.vehicle import Vehicle


class Order(AuditedModel):
    """
    Customer order for one or more vehicles.

    Attributes:
        order_number: Human-readable number, ``ORD-YYYYMMDD-NNNN``
        customer_id: Customer who placed the order
        staff_id: Staff member assigned to the order
        status: Current order status
        total_amount: Sum of item unit prices at creation
        shipping_address: Delivery address
        notes: Newline-joined order notes
    """

    __tablename__ = "orders"

    order_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Human-readable order number",
    )

    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Customer who placed the order",
    )

    staff_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Staff member handling the order",
    )

    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(
            OrderStatus,
            name="order_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
        comment="Current order status",
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Total order amount",
    )

    shipping_address: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Shipping address for delivery",
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Order notes, one entry per line",
    )

    customer: Mapped["User"] = relationship(
        "User",
        foreign_keys=[customer_id],
        lazy="selectin",
    )

    staff: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[staff_id],
        lazy="selectin",
    )

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.created_at",
    )

    invoices: Mapped[list["Invoice"]] = relationship(
        "Invoice",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Invoice.created_at",
    )

    deliveries: Mapped[list["Delivery"]] = relationship(
        "Delivery",
        back_populates="order",
        lazy="selectin",
        order_by="Delivery.created_at",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
        Index("ix_orders_customer_status", "customer_id", "status"),
        Index("ix_orders_status_created", "status", "created_at"),
        {"comment": "Customer orders"},
    )

    @property
    def has_paid_payment(self) -> bool:
        """Whether any payment on any live invoice is paid."""
        return any(
            payment.status == PaymentStatus.PAID
            for invoice in self.invoices
            if not invoice.is_deleted
            for payment in invoice.payments
            if not payment.is_deleted
        )

    @property
    def active_delivery(self) -> Optional["Delivery"]:
        """The order's non-deleted delivery, if any."""
        for delivery in self.deliveries:
            if not delivery.is_deleted:
                return delivery
        return None

    @property
    def live_items(self) -> list["OrderItem"]:
        return [item for item in self.items if not item.is_deleted]

    @property
    def vehicle_info(self) -> str:
        """``"Model Trim"`` of every item, comma separated."""
        return ", ".join(
            item.vehicle.display_name for item in self.live_items if item.vehicle
        )

    def is_accessible_by(self, user: "User") -> bool:
        """Owner or staff may read and cancel the order."""
        return user.is_staff or self.customer_id == user.id

    def append_note(self, note: Optional[str]) -> None:
        """Append a line to the notes, keeping earlier entries."""
        if not note:
            return
        self.notes = f"{self.notes}\n{note}" if self.notes else note

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, order_number={self.order_number}, "
            f"status={self.status.value})>"
        )


class OrderItem(SoftDeleteModel):
    """
    Line item of an order.

    Attributes:
        order_id: Owning order
        vehicle_id: Ordered vehicle
        unit_price: Vehicle base price at order time
    """

    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning order",
    )

    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("vehicles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Ordered vehicle",
    )

    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Unit price snapshot",
    )

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="items",
        lazy="selectin",
    )

    vehicle: Mapped["Vehicle"] = relationship(
        "Vehicle",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("unit_price >= 0", name="ck_order_items_unit_price_non_negative"),
        {"comment": "Order line items"},
    )

    def __repr__(self) -> str:
        return (
            f"<OrderItem(id={self.id}, order_id={self.order_id}, "
            f"vehicle_id={self.vehicle_id})>"
        )
