"""
Timed explosion of doomed parts.

Doomed parts go off one at a time, every ``ticks_between_part_failures``
ticks.  The engine starts the tick counter at ``-interval`` when it enters the
explosion phase, so the first aligned tick (counter == 0) explodes index 0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .interfaces import FlightLog, Physics, VesselGraph
from .parts import Part

logger = logging.getLogger(__name__)


class ScheduleExhausted(IndexError):
    """Raised when the tick counter points past the last doomed part."""


@dataclass(frozen=True)
class ExplosionScheduler:
    """Maps aligned ticks onto the doomed list.

    Attributes
    ----------
    doomed : tuple of Part
        Parts to explode, in order.
    ticks_between_part_failures : int
        Explosion cadence in ticks (>= 1).
    """

    doomed: tuple[Part, ...]
    ticks_between_part_failures: int

    def __post_init__(self) -> None:
        if self.ticks_between_part_failures < 1:
            raise ValueError(
                f"ticks_between_part_failures must be >= 1; "
                f"got {self.ticks_between_part_failures}."
            )

    def part_for_tick(self, ticks_since_failure_start: int) -> Part | None:
        """Doomed part due on this tick, or ``None`` for a non-aligned tick.

        Raises
        ------
        ScheduleExhausted
            On an aligned tick whose index is past the end of the list.
        """
        if ticks_since_failure_start < 0:
            return None
        index, remainder = divmod(ticks_since_failure_start, self.ticks_between_part_failures)
        if remainder != 0:
            return None
        if index >= len(self.doomed):
            raise ScheduleExhausted(
                f"No doomed part at index {index} (only {len(self.doomed)})."
            )
        return self.doomed[index]

    def explode_next(
        self,
        ticks_since_failure_start: int,
        vessel: VesselGraph,
        physics: Physics,
        flight_log: FlightLog,
    ) -> Part | None:
        """Explode the part due on this tick, if any, and return it.

        A part that was already destroyed by other means keeps its slot but is
        not exploded again.
        """
        part = self.part_for_tick(ticks_since_failure_start)
        if part is None:
            return None
        if vessel.is_destroyed(part):
            logger.info("%s already destroyed; skipping its explosion slot", part.title)
            return None

        flight_log.record(f"{part.title} disassembly due to an earlier failure.")
        physics.explode(part)
        return part
