"""
Bearer token verification.

Tokens are issued by the external identity provider; this module only
verifies their signature and extracts the acting user's identifier from the
``sub`` claim.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt

from dealer_sales.core.config import get_settings
from dealer_sales.core.exceptions import UnauthenticatedError
from dealer_sales.core.logging import get_logger

logger = get_logger(__name__)


def decode_token(token: str, secret_key: Optional[str] = None) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string to decode
        secret_key: Verification key, defaults to settings

    Returns:
        Dictionary of decoded token claims

    Raises:
        UnauthenticatedError: If token is empty, invalid or expired
    """
    if not token:
        logger.warning("Attempted to decode empty token")
        raise UnauthenticatedError("Token cannot be empty")

    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            secret_key or settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError as e:
        logger.warning("Token has expired", error=str(e))
        raise UnauthenticatedError("Token has expired") from e
    except JWTError as e:
        logger.warning(
            "Invalid token",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise UnauthenticatedError("Invalid token") from e

    logger.debug(
        "Token decoded successfully",
        subject=payload.get("sub"),
        expires_at=payload.get("exp"),
    )
    return payload


def get_token_user_id(token: str) -> UUID:
    """
    Extract the acting user ID from a token's ``sub`` claim.

    Raises:
        UnauthenticatedError: If the claim is missing or not a UUID
    """
    payload = decode_token(token)
    subject = payload.get("sub")
    if subject is None:
        logger.warning("Token missing 'sub' claim")
        raise UnauthenticatedError("Token missing subject")

    try:
        return UUID(str(subject))
    except ValueError as e:
        logger.warning("Invalid user ID format in token", subject=subject)
        raise UnauthenticatedError("Invalid token subject") from e
