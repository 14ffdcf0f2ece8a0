"""
API version 1 routers.
"""

from fastapi import APIRouter

from dealer_sales.api.v1.deliveries import router as deliveries_router
from dealer_sales.api.v1.orders import router as orders_router
from dealer_sales.api.v1.payments import router as payments_router
from dealer_sales.api.v1.statistics import router as statistics_router
from dealer_sales.api.v1.vehicles import router as vehicles_router

api_router = APIRouter()
api_router.include_router(vehicles_router)
api_router.include_router(orders_router)
api_router.include_router(deliveries_router)
api_router.include_router(payments_router)
api_router.include_router(statistics_router)

__all__ = ["api_router"]
