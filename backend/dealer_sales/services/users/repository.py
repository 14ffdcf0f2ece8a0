"""User data access for actor and staff resolution."""

import uuid
from typing import Optional

from sqlalchemy import select

from dealer_sales.database.models.user import User
from dealer_sales.database.repository import BaseRepository


class UserRepository(BaseRepository):
    """Repository for reading non-deleted users."""

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """
        Get a non-deleted user by ID.

        Returns:
            User if found and not soft-deleted, None otherwise
        """
        stmt = select(User).where(User.id == user_id, User.deleted_at.is_(None))
        return await self.scalar_one_or_none(stmt, "fetch user", user_id=user_id)
