"""Invoice model: the billing record of an order."""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    Enum as SQLEnum,
    ForeignKey,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealer_sales.database.base import SoftDeleteModel
from dealer_sales.services.orders.enums import InvoiceStatus, PaymentStatus

if TYPE_CHECKING:
    from dealer_sales.database.models.order import Order
    from dealer_sales.database.models.payment import Payment


class Invoice(SoftDeleteModel):
    """
    Invoice issued for an order.

    Attributes:
        order_id: Invoiced order
        customer_id: Billed customer
        invoice_number: Human-readable number, ``INV-YYYYMMDD-NNNN``
        total_amount: Amount due
        status: Invoice status
        notes: Free-form notes
    """

    __tablename__ = "invoices"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Invoiced order",
    )

    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="Billed customer",
    )

    invoice_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Human-readable invoice number",
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Amount due",
    )

    status: Mapped[InvoiceStatus] = mapped_column(
        SQLEnum(
            InvoiceStatus,
            name="invoice_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=InvoiceStatus.PENDING,
        index=True,
        comment="Invoice status",
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Invoice notes",
    )

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="invoices",
        lazy="selectin",
    )

    payments: Mapped[list["Payment"]] = relationship(
        "Payment",
        back_populates="invoice",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Payment.created_at",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_invoices_total_non_negative"),
        {"comment": "Order invoices"},
    )

    @property
    def is_paid(self) -> bool:
        return any(
            payment.status == PaymentStatus.PAID
            for payment in self.payments
            if not payment.is_deleted
        )

    def __repr__(self) -> str:
        return (
            f"<Invoice(id={self.id}, invoice_number={self.invoice_number}, "
            f"status={self.status.value})>"
        )
