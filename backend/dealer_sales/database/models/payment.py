"""
Payment model recording outcomes reported by the payment gateway.

The gateway's payment-intent identifier is stored opaquely and is unique when
present.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Numeric,
    String,
    Uuid,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealer_sales.database.base import SoftDeleteModel
from dealer_sales.services.orders.enums import PaymentStatus

if TYPE_CHECKING:
    from dealer_sales.database.models.invoice import Invoice


class Payment(SoftDeleteModel):
    """
    Payment against an invoice.

    Attributes:
        invoice_id: Paid invoice
        amount: Payment amount
        status: Payment status
        payment_date: When the gateway reported success
        payment_method: Gateway payment method type
        payment_intent_id: Gateway payment intent identifier
        requires_refund: Gateway captured money for an invoice that was
            already cancelled
    """

    __tablename__ = "payments"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Paid invoice",
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Payment amount",
    )

    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(
            PaymentStatus,
            name="payment_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True,
        comment="Payment status",
    )

    payment_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(),
        nullable=True,
        comment="Timestamp when payment succeeded",
    )

    payment_method: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Payment method type",
    )

    payment_intent_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
        comment="Gateway payment intent identifier",
    )

    requires_refund: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        comment="Captured after cancellation; money must be returned",
    )

    invoice: Mapped["Invoice"] = relationship(
        "Invoice",
        back_populates="payments",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payments_amount_non_negative"),
        {"comment": "Invoice payments"},
    )

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, invoice_id={self.invoice_id}, "
            f"status={self.status.value})>"
        )
