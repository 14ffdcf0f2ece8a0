"""
Shared repository plumbing.

Repositories wrap SQLAlchemy failures into ``FatalError`` with structured
context so services never see driver exceptions for read queries. Integrity
violations raised at flush time are translated by the unit of work.
"""

from typing import Any, Optional, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dealer_sales.core.exceptions import FatalError
from dealer_sales.core.logging import get_logger

logger = get_logger(__name__)


LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """Lower-cased LIKE pattern matching ``term`` literally as a substring."""
    escaped = (
        term.lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


class BaseRepository:
    """Base class holding the session and query helpers."""

    def __init__(self, session: AsyncSession):
        """
        Initialize repository.

        Args:
            session: Async database session owned by the unit of work
        """
        self.session = session

    async def scalar_one_or_none(
        self, stmt: Select, operation: str, **context: Any
    ) -> Optional[Any]:
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self._log_failure(operation, e, **context)
            raise FatalError(f"Failed to {operation}", error=str(e), **context) from e

    async def scalars(
        self, stmt: Select, operation: str, **context: Any
    ) -> Sequence[Any]:
        try:
            result = await self.session.execute(stmt)
            return result.scalars().all()
        except SQLAlchemyError as e:
            self._log_failure(operation, e, **context)
            raise FatalError(f"Failed to {operation}", error=str(e), **context) from e

    async def scalar(self, stmt: Select, operation: str, **context: Any) -> Any:
        try:
            result = await self.session.execute(stmt)
            return result.scalar()
        except SQLAlchemyError as e:
            self._log_failure(operation, e, **context)
            raise FatalError(f"Failed to {operation}", error=str(e), **context) from e

    async def count(self, stmt: Select, operation: str = "count rows") -> int:
        """Count the rows a filtered statement would return."""
        count_stmt = select(func.count()).select_from(
            stmt.order_by(None).subquery()
        )
        return int(await self.scalar(count_stmt, operation) or 0)

    @staticmethod
    def _log_failure(operation: str, error: Exception, **context: Any) -> None:
        logger.error(
            "Database query failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            **{key: str(value) for key, value in context.items()},
        )
