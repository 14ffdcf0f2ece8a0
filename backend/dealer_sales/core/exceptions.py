"""
Error taxonomy shared by every service.

Each exception carries an ``ErrorKind`` so callers branch on ``error.kind``
instead of matching message text. Structured context passed as keyword
arguments is kept on ``error.context`` for logging and API responses.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Kinds of failure a core operation can report."""

    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FATAL = "fatal"


class DealerSalesError(Exception):
    """Base exception for core operation failures."""

    kind: ErrorKind = ErrorKind.FATAL

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.kind.value,
            "message": self.message,
            "context": {key: str(value) for key, value in self.context.items()},
        }


class UnauthenticatedError(DealerSalesError):
    """Raised when no valid actor is supplied."""

    kind = ErrorKind.UNAUTHENTICATED


class ForbiddenError(DealerSalesError):
    """Raised when the actor lacks the required capability or ownership."""

    kind = ErrorKind.FORBIDDEN


class NotFoundError(DealerSalesError):
    """Raised when a referenced entity is absent or soft-deleted."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(DealerSalesError):
    """Raised when a valid request violates a state precondition."""

    kind = ErrorKind.CONFLICT


class FatalError(DealerSalesError):
    """Raised when an invariant breaks mid-operation; nothing is committed."""

    kind = ErrorKind.FATAL
