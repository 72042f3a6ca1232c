"""Simulated time source for driving propagation."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass
class SimulationClock:
    """Maps elapsed wall time onto simulated time.

    ``now(elapsed)`` is ``start + elapsed * speed``. The clock never reads the
    system time itself; callers pass elapsed seconds in.

    Attributes:
        start: Simulated time at zero elapsed seconds.
        speed: Simulated seconds per wall-clock second.
    """

    start: datetime
    speed: float = 1.0
    elapsed_s: float = 0.0

    def now(self, elapsed_s: float | None = None) -> datetime:
        if elapsed_s is None:
            elapsed_s = self.elapsed_s
        return self.start + timedelta(seconds=elapsed_s * self.speed)

    def advance(self, seconds: float) -> datetime:
        """Advance by ``seconds`` of wall time and return the new simulated time."""
        self.elapsed_s += seconds
        return self.now()
