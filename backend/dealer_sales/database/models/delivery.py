"""
Delivery model.

An order has at most one non-deleted delivery. The service checks this before
inserting and a partial unique index on ``order_id WHERE deleted_at IS NULL``
backs the check under concurrency.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealer_sales.database.base import AuditedModel
from dealer_sales.services.orders.enums import DeliveryStatus

if TYPE_CHECKING:
    from dealer_sales.database.models.order import Order


class Delivery(AuditedModel):
    """
    Scheduled hand-over of an order's vehicles.

    Attributes:
        order_id: Delivered order
        planned_date: Scheduled delivery date
        actual_date: Completion date, set only when delivered
        status: Delivery status
        shipping_address: Destination address
        notes: Delivery notes
    """

    __tablename__ = "deliveries"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        comment="Delivered order",
    )

    planned_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(),
        nullable=True,
        index=True,
        comment="Planned delivery date",
    )

    actual_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(),
        nullable=True,
        index=True,
        comment="Actual delivery date",
    )

    status: Mapped[DeliveryStatus] = mapped_column(
        SQLEnum(
            DeliveryStatus,
            name="delivery_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=DeliveryStatus.SCHEDULED,
        index=True,
        comment="Delivery status",
    )

    shipping_address: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Delivery destination",
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Delivery notes",
    )

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="deliveries",
        lazy="selectin",
    )

    __table_args__ = (
        Index(
            "uq_deliveries_order_active",
            "order_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        {"comment": "Order deliveries"},
    )

    def __repr__(self) -> str:
        return (
            f"<Delivery(id={self.id}, order_id={self.order_id}, "
            f"status={self.status.value})>"
        )
