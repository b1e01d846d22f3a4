"""
Clock -- injectable source of service-log timestamps.

The service ledger stamps each loan with ``clock.now()`` instead of reading
the wall clock, so tests can pin and step time and assert on the ordering of
the active-loan listing.

Architecture position:
    Kernel > Domain.  SystemClock is the only place the wall clock is read.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

_EPOCH = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


class Clock(ABC):
    """Anything that can say what time it is, timezone-aware (UTC)."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Frozen clock for tests.

    ``now()`` keeps returning the same instant until ``advance()`` moves it.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or _EPOCH

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> datetime:
        """Move forward by ``seconds`` and return the new instant."""
        self._current += timedelta(seconds=seconds)
        return self._current
