"""
Unit of work: the single persistence boundary for every mutation.

A ``UnitOfWork`` wraps one ``AsyncSession`` and exposes the repositories that
share it. Services open it as an async context manager, make all changes of an
operation and call ``commit`` once. Leaving the context without committing,
or with an exception, rolls the transaction back so no partial state
survives. Integrity violations raised when changes are flushed surface as
``ConflictError``.
"""

from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dealer_sales.core.exceptions import ConflictError, FatalError
from dealer_sales.core.logging import get_logger
from dealer_sales.services.deliveries.repository import DeliveryRepository
from dealer_sales.services.vehicles.repository import VehicleRepository
from dealer_sales.services.orders.repository import OrderRepository
from dealer_sales.services.payments.repository import PaymentRepository
from dealer_sales.services.users.repository import UserRepository

logger = get_logger(__name__)


class UnitOfWork:
    """
    Transaction scope shared by the repositories of one request.

    Attributes:
        session: Async database session
        users: User lookups
        vehicles: Vehicle reads and row locks
        orders: Order aggregate loaders and number allocation
        payments: Payment lookups
        deliveries: Delivery loaders and listing statements
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.vehicles = VehicleRepository(session)
        self.orders = OrderRepository(session)
        self.payments = PaymentRepository(session)
        self.deliveries = DeliveryRepository(session)
        self._committed = False

    async def __aenter__(self) -> "UnitOfWork":
        self._committed = False
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Any,
    ) -> None:
        if exc_type is not None:
            logger.debug(
                "Rolling back unit of work",
                error_type=exc_type.__name__,
            )
            await self.rollback()
        elif not self._committed and self.session.in_transaction():
            await self.rollback()

    async def flush(self) -> None:
        """
        Flush pending changes without committing.

        Raises:
            ConflictError: If a constraint is violated
            FatalError: On any other database error
        """
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.rollback()
            logger.warning("Integrity violation on flush", error=str(e.orig))
            raise ConflictError(
                "Change conflicts with current data",
                error=str(e.orig),
            ) from e
        except SQLAlchemyError as e:
            await self.rollback()
            logger.error(
                "Database error on flush",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise FatalError("Failed to write changes", error=str(e)) from e

    async def commit(self) -> None:
        """
        Commit every change of the current operation atomically.

        Raises:
            ConflictError: If a constraint is violated
            FatalError: On any other database error
        """
        await self.flush()
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.rollback()
            logger.warning("Integrity violation on commit", error=str(e.orig))
            raise ConflictError(
                "Change conflicts with current data",
                error=str(e.orig),
            ) from e
        except SQLAlchemyError as e:
            await self.rollback()
            logger.error(
                "Database error on commit",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise FatalError("Failed to commit changes", error=str(e)) from e
        self._committed = True

    async def rollback(self) -> None:
        await self.session.rollback()
