"""
Ascent host: flies a vessel and polls the failure engine once per tick.

This is the minimal host loop the engine expects: advance the simulation
clock by one physics tick, update altitude from the ascent profile, call
``FailureEngine.tick()``, and stop when it reports ``False`` or the flight
time runs out.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from numpy.random import Generator

from .clock import SimulationClock
from .config import FailureSettings
from .engine import FailureEngine
from .interfaces import Notifier
from .notifications import FlightDataLog, FlightEvent, RecordingNotifier
from .parts import FailureType, Part
from .states import TerminationReason
from .vessel import CelestialBody, Vessel


@dataclass(frozen=True)
class AscentProfile:
    """Altitude as a function of time since launch."""

    vertical_speed: float = 100.0
    acceleration: float = 0.0

    def altitude_at(self, t: float) -> float:
        return max(0.0, self.vertical_speed * t + 0.5 * self.acceleration * t * t)


def profile_from_config(ascent_cfg: dict[str, Any]) -> AscentProfile:
    return AscentProfile(
        vertical_speed=float(ascent_cfg.get("vertical_speed", 100.0)),
        acceleration=float(ascent_cfg.get("acceleration", 0.0)),
    )


@dataclass(frozen=True)
class FlightResult:
    """Outcome of one simulated ascent.

    Attributes
    ----------
    termination_reason : TerminationReason or None
        ``None`` when the flight time ran out with the session still running.
    failure_type : FailureType
        ``FailureType.NONE`` if no starting part was ever selected.
    failed_part : Part or None
        The starting part.
    doomed, exploded : tuple of Part
        Parts doomed by propagation, and those that actually exploded.
    failure_time : float or None
        Simulation time at which the starting part was destroyed.
    end_time : float
        Simulation time of the last tick.
    ticks : int
        Number of ticks flown.
    altitude_threshold : int
        Altitude gate drawn for the session.
    abort_triggered : bool
        Whether the abort action group fired.
    events : tuple of FlightEvent
        Flight log entries recorded during the flight.
    """

    termination_reason: TerminationReason | None
    failure_type: FailureType
    failed_part: Part | None
    doomed: tuple[Part, ...]
    exploded: tuple[Part, ...]
    failure_time: float | None
    end_time: float
    ticks: int
    altitude_threshold: int
    abort_triggered: bool
    events: tuple[FlightEvent, ...] = ()

    @property
    def failure_started(self) -> bool:
        return self.failure_type is not FailureType.NONE


def simulate_flight(
    vessel: Vessel,
    body: CelestialBody,
    settings: FailureSettings,
    rng: Generator,
    profile: AscentProfile | None = None,
    max_flight_time: float = 600.0,
    notifier: Notifier | None = None,
) -> FlightResult:
    """Fly *vessel* and run one failure session against it.

    Parameters
    ----------
    vessel : Vessel
        Vessel to fly; mutated by the failure.
    body : CelestialBody
        Launch body.
    settings : FailureSettings
        Failure tunables; ``ticks_per_second`` sets the tick length.
    rng : Generator
        Seeded random source shared by every draw of the session.
    profile : AscentProfile, optional
        Ascent profile; a constant 100 m/s climb by default.
    max_flight_time : float, optional
        Flight time in seconds after which polling stops.
    notifier : Notifier, optional
        Operator notification sink; an in-memory recorder by default.
    """
    profile = profile if profile is not None else AscentProfile()
    clock = SimulationClock(settings.ticks_per_second)
    flight_log = FlightDataLog(clock, vessel.name)
    engine = FailureEngine(
        vessel,
        body,
        settings,
        clock,
        rng,
        notifier=notifier if notifier is not None else RecordingNotifier(clock),
        flight_log=flight_log,
    )

    max_ticks = int(math.ceil(max_flight_time * settings.ticks_per_second))
    running = True
    while running and clock.ticks < max_ticks:
        clock.advance()
        vessel.altitude = profile.altitude_at(clock.now())
        running = engine.tick()

    return FlightResult(
        termination_reason=engine.termination_reason,
        failure_type=engine.failure_type,
        failed_part=engine.failed_part,
        doomed=engine.doomed,
        exploded=tuple(engine.exploded),
        failure_time=engine.failure_time,
        end_time=clock.now(),
        ticks=clock.ticks,
        altitude_threshold=engine.altitude_threshold,
        abort_triggered=vessel.abort_triggered,
        events=tuple(flight_log.events),
    )
