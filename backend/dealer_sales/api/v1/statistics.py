"""
Sales statistics endpoint (staff).
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query

from dealer_sales.api.deps import ActorId, StatisticsServiceDep
from dealer_sales.schemas.statistics import SalesStatisticsResponse

router = APIRouter(prefix="/statistics", tags=["statistics"])


@router.get(
    "/sales",
    response_model=SalesStatisticsResponse,
    summary="Revenue and order count",
)
async def sales_statistics(
    actor_id: ActorId,
    service: StatisticsServiceDep,
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
) -> SalesStatisticsResponse:
    return await service.sales_summary(actor_id, from_date, to_date)
