"""
Collaborator interfaces consumed by the failure engine.

The engine depends on these structural protocols only.  ``vessel.Vessel``,
``clock.SimulationClock`` and the recorders in ``notifications`` are the
reference implementations; a host application can supply its own.
"""

from __future__ import annotations

from typing import Protocol

from .parts import EngineModule, Part


class Clock(Protocol):
    def now(self) -> float:
        """Monotonic simulation time in seconds."""


class VesselGraph(Protocol):
    altitude: float

    def contains(self, part: Part) -> bool: ...
    def is_destroyed(self, part: Part) -> bool: ...
    def parent(self, part: Part) -> Part | None: ...
    def children(self, part: Part) -> list[Part]: ...
    def active_engine_parts(self) -> list[Part]: ...
    def radial_decouplers(self) -> list[Part]: ...
    def control_surfaces(self) -> list[Part]: ...
    def struts_and_fuel_lines(self) -> list[Part]: ...


class Physics(Protocol):
    def apply_force(self, part: Part, magnitude: float) -> None: ...
    def add_heat(self, part: Part, delta: float) -> None: ...
    def set_thrust_percentage(self, module: EngineModule, percentage: float) -> None: ...
    def decouple(self, part: Part, force: float) -> bool: ...
    def explode(self, part: Part) -> None: ...
    def trigger_abort(self) -> None: ...


class Notifier(Protocol):
    def post_message(self, text: str, duration: float) -> None: ...
    def highlight(self, part: Part) -> None: ...
    def unhighlight(self, part: Part) -> None: ...
    def play_alarm(self) -> None: ...
    def stop_alarm(self) -> None: ...


class FlightLog(Protocol):
    def record(self, text: str) -> None: ...
