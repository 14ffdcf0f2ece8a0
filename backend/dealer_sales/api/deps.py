"""
FastAPI dependencies for authentication and service construction.

The acting user's ID comes from the ``sub`` claim of the bearer token; role
and ownership checks happen in the services against the user row.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from dealer_sales.core.clock import Clock, get_clock
from dealer_sales.core.exceptions import UnauthenticatedError
from dealer_sales.core.logging import get_logger, set_user_id
from dealer_sales.core.security import get_token_user_id
from dealer_sales.database.connection import get_db
from dealer_sales.database.unit_of_work import UnitOfWork
from dealer_sales.services.deliveries.service import DeliveryService
from dealer_sales.services.orders.service import OrderService
from dealer_sales.services.payments.gateway import PaymentGateway, get_payment_gateway
from dealer_sales.services.payments.service import PaymentService
from dealer_sales.services.statistics.service import StatisticsService
from dealer_sales.services.vehicles.service import VehicleService

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_actor_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> UUID:
    """
    Resolve the acting user's ID from the bearer token.

    Raises:
        UnauthenticatedError: If no token is sent or it is invalid
    """
    if credentials is None:
        logger.warning("Authentication failed: No credentials provided")
        raise UnauthenticatedError("Authentication required")

    actor_id = get_token_user_id(credentials.credentials)
    set_user_id(str(actor_id))
    return actor_id


async def get_unit_of_work(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UnitOfWork:
    return UnitOfWork(db)


ActorId = Annotated[UUID, Depends(get_current_actor_id)]
UnitOfWorkDep = Annotated[UnitOfWork, Depends(get_unit_of_work)]
ClockDep = Annotated[Clock, Depends(get_clock)]
PaymentGatewayDep = Annotated[PaymentGateway, Depends(get_payment_gateway)]


async def get_order_service(
    uow: UnitOfWorkDep,
    clock: ClockDep,
    gateway: PaymentGatewayDep,
) -> OrderService:
    return OrderService(uow, clock, gateway=gateway)


async def get_delivery_service(uow: UnitOfWorkDep, clock: ClockDep) -> DeliveryService:
    return DeliveryService(uow, clock)


async def get_payment_service(
    uow: UnitOfWorkDep,
    clock: ClockDep,
    gateway: PaymentGatewayDep,
) -> PaymentService:
    return PaymentService(uow, gateway, clock)


async def get_statistics_service(uow: UnitOfWorkDep) -> StatisticsService:
    return StatisticsService(uow)


async def get_vehicle_service(uow: UnitOfWorkDep, clock: ClockDep) -> VehicleService:
    return VehicleService(uow, clock)


OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
DeliveryServiceDep = Annotated[DeliveryService, Depends(get_delivery_service)]
PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]
StatisticsServiceDep = Annotated[StatisticsService, Depends(get_statistics_service)]
VehicleServiceDep = Annotated[VehicleService, Depends(get_vehicle_service)]
