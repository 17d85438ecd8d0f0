"""
Core type definitions and protocols.

This module defines shared protocols so that ledger operations never read
an ambient global clock and stay deterministic under test.
"""

from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Protocol for anything that can tell the current time."""

    def now(self) -> datetime:
        """Return the current timezone-aware time."""
        ...


class SystemClock:
    """Clock backed by the system time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock that returns a pinned instant, optionally advancing on each read."""

    def __init__(self, instant: datetime, step: timedelta | None = None) -> None:
        self._instant = instant
        self._step = step

    def now(self) -> datetime:
        current = self._instant
        if self._step is not None:
            self._instant = self._instant + self._step
        return current

    def advance(self, delta: timedelta) -> None:
        """Move the pinned instant forward."""
        self._instant = self._instant + delta


def to_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
