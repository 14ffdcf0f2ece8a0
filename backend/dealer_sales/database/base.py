"""
SQLAlchemy declarative base and common model mixins.

This module provides the SQLAlchemy DeclarativeBase and the mixins for UUID
keys, timestamps, audit fields and soft deletion shared by every model.
Timestamps are stamped by services from the injected clock; the Python-side
defaults only cover rows created outside a service (seeding, tests).
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from dealer_sales.core.logging import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp used as a column default."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models with async support.

    Provides async attribute loading and a primary-key repr for every model.
    """

    __abstract__ = True

    def __repr__(self) -> str:
        pk_values = []
        for column in self.__table__.primary_key.columns:
            value = getattr(self, column.name, None)
            if value is not None:
                pk_values.append(f"{column.name}={value!r}")

        pk_str = ", ".join(pk_values) if pk_values else "no primary key"
        return f"<{self.__class__.__name__}({pk_str})>"


class TimestampMixin:
    """
    Mixin for created/updated timestamps.

    Values are written explicitly by services so that every transition is
    stamped by the same clock.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(),
            nullable=False,
            default=utcnow,
            index=True,
            comment="Timestamp when record was created",
        )

    @declared_attr
    def updated_at(cls) -> Mapped[Optional[datetime]]:
        return mapped_column(
            DateTime(),
            nullable=True,
            default=None,
            comment="Timestamp when record was last updated",
        )


class UUIDMixin:
    """Mixin for a UUID primary key generated client-side."""

    @declared_attr
    def id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            Uuid(as_uuid=True),
            primary_key=True,
            default=uuid.uuid4,
            nullable=False,
            comment="Unique identifier for the record",
        )


class SoftDeleteMixin:
    """
    Mixin for soft delete functionality.

    Adds a deleted_at column for marking records as deleted without
    physically removing them. Every query excludes rows where it is set.
    """

    @declared_attr
    def deleted_at(cls) -> Mapped[Optional[datetime]]:
        return mapped_column(
            DateTime(),
            nullable=True,
            default=None,
            comment="Timestamp when record was soft deleted",
        )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def soft_delete(self, at: datetime) -> None:
        """Mark record as deleted at the given timestamp."""
        if self.deleted_at is None:
            self.deleted_at = at
            logger.info(
                "Record soft deleted",
                model=self.__class__.__name__,
                record_id=str(getattr(self, "id", None)),
            )


class AuditMixin(TimestampMixin):
    """
    Mixin for audit trail functionality.

    Extends TimestampMixin with created_by and updated_by columns holding
    the acting user's ID.
    """

    @declared_attr
    def created_by(cls) -> Mapped[Optional[str]]:
        return mapped_column(
            String(255),
            nullable=True,
            comment="User ID who created the record",
        )

    @declared_attr
    def updated_by(cls) -> Mapped[Optional[str]]:
        return mapped_column(
            String(255),
            nullable=True,
            comment="User ID who last updated the record",
        )

    def stamp_update(self, actor_id: Optional[uuid.UUID], at: datetime) -> None:
        """Record who changed the row and when."""
        self.updated_at = at
        self.updated_by = str(actor_id) if actor_id else None


class BaseModel(Base, UUIDMixin, TimestampMixin):
    """
    Base model with UUID primary key and timestamps.

    Example:
        class OrderItem(BaseModel):
            __tablename__ = "order_items"

            unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    """

    __abstract__ = True


class SoftDeleteModel(BaseModel, SoftDeleteMixin):
    """
    Base model with UUID, timestamps, and soft delete.

    Example:
        class Vehicle(SoftDeleteModel):
            __tablename__ = "vehicles"

            model_name: Mapped[str] = mapped_column(String(100))
    """

    __abstract__ = True


class AuditedModel(Base, UUIDMixin, AuditMixin, SoftDeleteMixin):
    """
    Base model with UUID, timestamps, audit fields and soft delete.

    Example:
        class Order(AuditedModel):
            __tablename__ = "orders"

            order_number: Mapped[str] = mapped_column(String(50), unique=True)
    """

    __abstract__ = True
