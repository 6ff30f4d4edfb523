"""Simulation clock advanced by the host, one tick at a time."""

from __future__ import annotations


class SimulationClock:
    """Monotonic simulation time source.

    Parameters
    ----------
    ticks_per_second : float
        Host physics rate; one :meth:`advance` call moves time by
        ``1 / ticks_per_second`` seconds.
    start : float, optional
        Initial simulation time in seconds.
    """

    def __init__(self, ticks_per_second: float, start: float = 0.0) -> None:
        if ticks_per_second <= 0:
            raise ValueError(f"ticks_per_second must be positive; got {ticks_per_second}.")
        self.ticks_per_second = float(ticks_per_second)
        self._start = float(start)
        self.ticks = 0

    @property
    def tick_length(self) -> float:
        return 1.0 / self.ticks_per_second

    def now(self) -> float:
        # Derived from the tick count so long runs do not accumulate drift.
        return self._start + self.ticks / self.ticks_per_second

    def advance(self, ticks: int = 1) -> float:
        """Move the clock forward by *ticks* host ticks and return the new time."""
        if ticks < 0:
            raise ValueError("The simulation clock cannot run backwards.")
        self.ticks += ticks
        return self.now()
