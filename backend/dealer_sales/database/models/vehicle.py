"""
Vehicle catalog model holding the dealership's stock counter.

Stock is a plain integer column guarded by a ``CHECK (stock >= 0)``
constraint. It is decremented when an order is created and incremented when a
stock-holding order is cancelled, always under a row lock.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from dealer_sales.database.base import SoftDeleteModel


class Vehicle(SoftDeleteModel):
    """
    Vehicle model sold by the dealership.

    Attributes:
        model_name: Vehicle model name
        trim_name: Trim level name
        model_year: Model year
        base_price: Current list price, snapshotted onto order items
        stock: Units available for sale
        is_active: Whether the vehicle can be ordered
        image_url: Catalog picture
        battery_capacity_kwh: Battery capacity
        range_km: Driving range
        charging_time_minutes: Full charge time
        top_speed_kmh: Top speed
    """

    __tablename__ = "vehicles"

    model_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Vehicle model name",
    )

    trim_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="",
        comment="Vehicle trim name",
    )

    model_year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Vehicle model year",
    )

    base_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Vehicle base price in USD",
    )

    stock: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Units in stock",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether vehicle is available for ordering",
    )

    image_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Catalog image URL",
    )

    battery_capacity_kwh: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=6, scale=2),
        nullable=True,
        comment="Battery capacity in kWh",
    )

    range_km: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Driving range in km",
    )

    charging_time_minutes: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Full charge time in minutes",
    )

    top_speed_kmh: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Top speed in km/h",
    )

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_vehicles_stock_non_negative"),
        CheckConstraint("base_price >= 0", name="ck_vehicles_base_price_non_negative"),
        CheckConstraint(
            "model_year >= 1900 AND model_year <= 2100",
            name="ck_vehicles_model_year_range",
        ),
        Index("ix_vehicles_active_stock", "is_active", "stock"),
        {"comment": "Vehicles with stock counters"},
    )

    @property
    def display_name(self) -> str:
        """Model and trim, e.g. ``"Model 3 Long Range"``."""
        return f"{self.model_name} {self.trim_name}".strip()

    @property
    def is_orderable(self) -> bool:
        return self.is_active and not self.is_deleted and self.stock > 0

    def __repr__(self) -> str:
        return (
            f"<Vehicle(id={self.id}, model={self.model_name}, "
            f"trim={self.trim_name}, stock={self.stock})>"
        )
