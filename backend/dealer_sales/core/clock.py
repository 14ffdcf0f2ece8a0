"""
Clock providers used to stamp created/updated/actual dates.

Services never read system time directly; they receive a ``Clock`` so state
transitions stay deterministic under test. Timestamps are naive UTC, matching
the ``DateTime`` columns of the schema.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Source of the current timestamp."""

    def now(self) -> datetime: ...


class SystemClock:
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock:
    """Clock frozen at a given instant, advanced explicitly."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        """Move the clock forward by ``timedelta(**delta)`` and return it."""
        self.current = self.current + timedelta(**delta)
        return self.current


def get_clock() -> Clock:
    """Default clock provider (FastAPI dependency)."""
    return SystemClock()
