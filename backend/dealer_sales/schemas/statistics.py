"""Statistics Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class SalesStatisticsResponse(BaseModel):
    """Revenue and order count for a created-at window."""

    total_revenue: Decimal
    total_orders: int
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
