"""
Database models package initialization.

Models are imported here so they are registered with the Base metadata for
relationship resolution and Alembic.
"""

from dealer_sales.database.base import (
    AuditedModel,
    AuditMixin,
    Base,
    BaseModel,
    SoftDeleteMixin,
    SoftDeleteModel,
    TimestampMixin,
    UUIDMixin,
)
from dealer_sales.database.models.delivery import Delivery
from dealer_sales.database.models.invoice import Invoice
from dealer_sales.database.models.order import Order, OrderItem
from dealer_sales.database.models.payment import Payment
from dealer_sales.database.models.user import User, UserRole
from dealer_sales.database.models.vehicle import Vehicle

__all__ = [
    "Base",
    "BaseModel",
    "AuditedModel",
    "SoftDeleteModel",
    "TimestampMixin",
    "UUIDMixin",
    "SoftDeleteMixin",
    "AuditMixin",
    "User",
    "UserRole",
    "Vehicle",
    "Order",
    "OrderItem",
    "Invoice",
    "Payment",
    "Delivery",
]
