"""
Vehicle catalog Pydantic schemas for API request/response validation.

Staff maintain the catalog; customers browse the active, non-deleted part of
it. Electric specifications are optional on every vehicle.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VehicleSortField(str, Enum):
    """Columns the catalog listing can be sorted by."""

    MODEL_NAME = "model_name"
    BASE_PRICE = "base_price"
    MODEL_YEAR = "model_year"
    RANGE_KM = "range_km"
    CREATED_AT = "created_at"


class VehicleSpecs(BaseModel):
    """Electric vehicle specifications shared by create, update and response."""

    image_url: Optional[str] = Field(None, max_length=500)
    battery_capacity_kwh: Optional[Decimal] = Field(
        None, ge=0, max_digits=6, decimal_places=2, description="Battery capacity in kWh"
    )
    range_km: Optional[int] = Field(None, ge=0, le=5000, description="Range in km")
    charging_time_minutes: Optional[int] = Field(
        None, ge=0, le=10000, description="Full charge time in minutes"
    )
    top_speed_kmh: Optional[int] = Field(None, ge=0, le=600, description="Top speed in km/h")


class VehicleCreateRequest(VehicleSpecs):
    """Staff request to add a vehicle to the catalog."""

    model_config = ConfigDict(str_strip_whitespace=True)

    model_name: str = Field(..., min_length=1, max_length=100)
    trim_name: str = Field("", max_length=100)
    model_year: int = Field(..., ge=1900, le=2100)
    base_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    stock: int = Field(0, ge=0, description="Units in stock")
    is_active: bool = True


class VehicleUpdateRequest(VehicleSpecs):
    """
    Staff request to change catalog fields.

    Only the fields sent are changed. Price changes never touch existing
    orders, whose items keep the price they were ordered at.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    model_name: Optional[str] = Field(None, min_length=1, max_length=100)
    trim_name: Optional[str] = Field(None, max_length=100)
    model_year: Optional[int] = Field(None, ge=1900, le=2100)
    base_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class VehicleFilter(BaseModel):
    """Filters and ordering for the catalog listing."""

    model_config = ConfigDict(str_strip_whitespace=True)

    search: Optional[str] = Field(None, max_length=200, description="Model or trim name")
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    min_range_km: Optional[int] = Field(None, ge=0)
    max_range_km: Optional[int] = Field(None, ge=0)
    model_year: Optional[int] = Field(None, ge=1900, le=2100)
    in_stock_only: bool = False
    sort_by: VehicleSortField = VehicleSortField.MODEL_NAME
    sort_desc: bool = False

    @model_validator(mode="after")
    def validate_ranges(self) -> "VehicleFilter":
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("min_price must not exceed max_price")
        if (
            self.min_range_km is not None
            and self.max_range_km is not None
            and self.min_range_km > self.max_range_km
        ):
            raise ValueError("min_range_km must not exceed max_range_km")
        return self


class VehicleResponse(VehicleSpecs):
    """Catalog entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    model_name: str
    trim_name: str
    display_name: str
    model_year: int
    base_price: Decimal
    stock: int
    is_active: bool
    is_orderable: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
