"""
Actor resolution and capability checks shared by every service.
"""

import uuid
from typing import Optional

from dealer_sales.core.exceptions import ForbiddenError, UnauthenticatedError
from dealer_sales.core.logging import get_logger
from dealer_sales.database.models.user import User
from dealer_sales.services.users.repository import UserRepository

logger = get_logger(__name__)


async def resolve_actor(users: UserRepository, actor_id: Optional[uuid.UUID]) -> User:
    """
    Load the acting user.

    Raises:
        UnauthenticatedError: If no actor is supplied or it does not resolve
            to a non-deleted user
    """
    if actor_id is None:
        raise UnauthenticatedError("Authentication required")

    actor = await users.get_by_id(actor_id)
    if actor is None:
        logger.warning("Actor not found", actor_id=str(actor_id))
        raise UnauthenticatedError("Unknown actor", actor_id=actor_id)
    return actor


def require_staff(actor: User, action: str) -> None:
    """
    Ensure the actor has staff capability.

    Raises:
        ForbiddenError: If the actor is not dealer staff or a manager
    """
    if not actor.is_staff:
        logger.warning(
            "Staff capability required",
            actor_id=str(actor.id),
            role=actor.role.value,
            action=action,
        )
        raise ForbiddenError(
            "Only dealer staff can perform this action",
            actor_id=actor.id,
            action=action,
        )
