"""
Clock -- injectable time source.

Responsibility:
    The invoice services read time at exactly two moments: when an
    allocation attempt picks its ``INV-YYYYMM-`` partition, and when a
    change is persisted (created_at / updated_at / sent_at / paid_at).
    Both readings come from the Clock handed to the service, so tests can
    pin them and a month boundary can be crossed on demand.

Architecture position:
    Kernel > Domain.  SystemClock is the one place that asks the operating
    system for the time.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


def _require_aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"Clock times must be timezone-aware, got {value!r}")
    return value


class Clock(ABC):
    """
    Source of the current time.

    Guarantees:
        - ``now()`` is timezone-aware.
        - ``now_utc()`` is the same instant expressed in UTC.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Starts at ``start`` (mid-January 2024 by default) and stays there until
    ``advance()``, ``tick()`` or ``set_time()``.
    """

    DEFAULT_START = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __init__(self, start: datetime | None = None):
        self._current = _require_aware(start or self.DEFAULT_START)

    def now(self) -> datetime:
        return self._current

    def set_time(self, moment: datetime) -> None:
        self._current = _require_aware(moment)

    def advance(self, seconds: float = 1) -> None:
        """Move forward by ``seconds``."""
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        self.advance(1)
        return self._current
