"""Time sources for the simulation.

Tension decay, connection aging, synergy expiry, and conflict escalation are
all driven by elapsed time. The engine never reads the system clock directly;
it asks an injected ``Clock`` so tests can advance time without sleeping.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Source of simulated time in seconds."""

    @abstractmethod
    def now(self) -> float:
        """Return the current time in seconds."""

    def advance(self, seconds: float) -> None:
        """Move time forward by ``seconds``. Clocks that follow real time ignore this."""


class LogicalClock(Clock):
    """Deterministic clock advanced explicitly by the orchestrator (default)."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("LogicalClock cannot move backwards")
        self._now += seconds

    def __repr__(self) -> str:
        return f"LogicalClock(now={self._now:.3f})"


class WallClock(Clock):
    """Monotonic real time, measured from construction."""

    def __init__(self) -> None:
        self._origin = time.monotonic()

    def now(self) -> float:
        return time.monotonic() - self._origin
