"""
Failure engine: the poll-driven state machine of one failure session.

The host calls :meth:`FailureEngine.tick` once per simulation tick.  The call
never blocks; it returns ``True`` while the session is waiting or running and
``False`` once it has ended (no atmosphere, target detached, or every doomed
part exploded).  Time comes from the injected clock and randomness from the
injected numpy ``Generator``, so a seeded run is fully reproducible.
"""

from __future__ import annotations

import logging

from numpy.random import Generator

from .config import FailureSettings
from .degradation import (
    DegradationState,
    degrade,
    destruction_cause,
    is_destroyed,
    is_overheated,
    mark_warned,
    warning_due,
    warning_message,
)
from .interfaces import Clock, FlightLog, Notifier, Physics, VesselGraph
from .notifications import FlightDataLog, RecordingNotifier
from .parts import EngineModule, FailureType, Part
from .propagation import propagate_failure
from .scheduler import ExplosionScheduler, ScheduleExhausted
from .selection import select_starting_part
from .states import (
    ActiveDegradation,
    ArmedNoTarget,
    DestructionPending,
    FailureState,
    Phase,
    PreFailureWarning,
    PropagationExploding,
    Terminated,
    TerminationReason,
    WaitingForAltitude,
)
from .vessel import CelestialBody

logger = logging.getLogger(__name__)

WARNING_MESSAGE_DURATION: float = 1.0
DETACHED_MESSAGE_DURATION: float = 5.0


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def failure_occurs(settings: FailureSettings, rng: Generator) -> bool:
    """Single Bernoulli draw: does this launch get a failure session at all?"""
    return bool(rng.random() < settings.initial_failure_probability)


def draw_altitude_threshold(
    body: CelestialBody, settings: FailureSettings, rng: Generator
) -> int:
    """Altitude above which a failure may start, in ``[0, depth * max_pct)``."""
    upper = int(body.atmosphere_depth * settings.max_failure_altitude_percentage)
    if upper <= 0:
        return 0
    return int(rng.integers(0, upper))


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class FailureEngine:
    """Drives one failure event from selection to the last explosion.

    Parameters
    ----------
    vessel : VesselGraph
        Vessel being flown; read for candidates, topology and altitude.
    body : CelestialBody
        Body the vessel ascends from.  Without an atmosphere no failure ever
        starts and :meth:`tick` always returns ``False``.
    settings : FailureSettings
        Read-only tunables.
    clock : Clock
        Simulation time source.
    rng : Generator
        Uniform random source.
    notifier, flight_log : optional
        Operator notification and flight log sinks; in-memory recorders are
        created when omitted.
    physics : Physics, optional
        Mutation collaborator; defaults to *vessel*.
    launch_time : float, optional
        Simulation time of launch; defaults to ``clock.now()``.
    """

    def __init__(
        self,
        vessel: VesselGraph,
        body: CelestialBody,
        settings: FailureSettings,
        clock: Clock,
        rng: Generator,
        notifier: Notifier | None = None,
        flight_log: FlightLog | None = None,
        physics: Physics | None = None,
        launch_time: float | None = None,
    ) -> None:
        self.vessel = vessel
        self.body = body
        self.settings = settings
        self.clock = clock
        self.rng = rng
        self.physics: Physics = physics if physics is not None else vessel  # type: ignore[assignment]
        self.notifier: Notifier = (
            notifier if notifier is not None else RecordingNotifier(clock)
        )
        self.flight_log: FlightLog = (
            flight_log if flight_log is not None
            else FlightDataLog(clock, getattr(vessel, "name", "Vessel"))
        )
        self.launch_time = clock.now() if launch_time is None else float(launch_time)
        self.over_thrust: bool = settings.over_thrust
        self.ticks_between_part_failures: int = settings.ticks_between_part_failures

        self.failure_type: FailureType = FailureType.NONE
        self.failed_part: Part | None = None
        # Kept after the session ends, for reporting.
        self.doomed: tuple[Part, ...] = ()
        self.engine_module: EngineModule | None = None
        self.failure_time: float | None = None
        self.exploded: list[Part] = []

        self.state: FailureState
        if body.atmosphere:
            self.altitude_threshold = draw_altitude_threshold(body, settings, rng)
            logger.info("Failure will occur at an altitude of %d", self.altitude_threshold)
            self.state = WaitingForAltitude()
        else:
            self.altitude_threshold = 0
            self.state = Terminated(TerminationReason.NO_ATMOSPHERE)

    occurs = staticmethod(failure_occurs)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def termination_reason(self) -> TerminationReason | None:
        return self.state.reason if isinstance(self.state, Terminated) else None

    @property
    def starting_part(self) -> Part | None:
        if isinstance(self.state, (PreFailureWarning, ActiveDegradation, DestructionPending)):
            return self.state.target.part
        return None

    @property
    def doomed_parts(self) -> tuple[Part, ...] | None:
        if isinstance(self.state, PropagationExploding):
            return self.state.scheduler.doomed
        return None

    @property
    def degradation(self) -> DegradationState | None:
        if isinstance(self.state, ActiveDegradation):
            return self.state.degradation
        return None

    @property
    def ticks_since_failure_start(self) -> int:
        if isinstance(self.state, (ActiveDegradation, PropagationExploding)):
            return self.state.ticks_since_failure_start
        return 0

    # ------------------------------------------------------------------
    # Poll entry point
    # ------------------------------------------------------------------

    def tick(self) -> bool:
        """Advance the session by one simulation tick.

        Returns
        -------
        bool
            ``True`` to keep polling, ``False`` once the session is over.

        Raises
        ------
        EngineModuleMismatch
            If a selected engine part does not expose exactly one engine module.
        """
        state = self.state
        if isinstance(state, Terminated):
            return False

        now = self.clock.now()
        if isinstance(state, (WaitingForAltitude, ArmedNoTarget)):
            return self._tick_waiting(now)
        if isinstance(state, PreFailureWarning):
            return self._tick_warning(state, now)
        if isinstance(state, ActiveDegradation):
            return self._tick_degradation(state, now)
        if isinstance(state, PropagationExploding):
            return self._tick_explosions(state, now)

        raise RuntimeError(f"Unexpected failure state {state!r}")

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------

    def _gate_open(self, now: float) -> bool:
        elapsed = now - self.launch_time
        if elapsed < self.settings.min_time_before_failure:
            return False
        return (
            self.vessel.altitude >= self.altitude_threshold
            or elapsed >= self.settings.max_time_before_failure
        )

    def _tick_waiting(self, now: float) -> bool:
        if not self._gate_open(now):
            return True

        target = select_starting_part(self.vessel, self.rng)
        if target is None:
            self.state = ArmedNoTarget()
            return True

        self.failure_type = target.failure_type
        self.failed_part = target.part
        self.engine_module = target.engine_module
        logger.warning(
            "Imminent failure of %s (%s)", target.part.title, target.failure_type.value
        )
        if self.settings.pre_failure_warning_time > 0:
            self._warn(target.part, f"Imminent Failure on {target.part.title}")
            self.notifier.play_alarm()
        self.state = PreFailureWarning(target, warning_started=now, next_warning_time=now + 1.0)
        return True

    # ------------------------------------------------------------------
    # Warning
    # ------------------------------------------------------------------

    def _tick_warning(self, state: PreFailureWarning, now: float) -> bool:
        part = state.target.part
        if not self.vessel.contains(part):
            return self._abort_detached(part)

        if now - state.warning_started < self.settings.pre_failure_warning_time:
            if now >= state.next_warning_time:
                self._warn(part, f"Imminent Failure on {part.title}")
                state.next_warning_time = now + 1.0
            return True

        active = ActiveDegradation(state.target)
        self.state = active
        return self._tick_degradation(active, now)

    # ------------------------------------------------------------------
    # Degradation
    # ------------------------------------------------------------------

    def _tick_degradation(self, state: ActiveDegradation, now: float) -> bool:
        target = state.target
        if not self.vessel.contains(target.part):
            return self._abort_detached(target.part)

        degrade(
            target,
            state.degradation,
            state.ticks_since_failure_start,
            self.ticks_between_part_failures,
            self.over_thrust,
            now,
            self.physics,
            self.rng,
        )

        if is_destroyed(target.part, state.degradation):
            exploding = self._destroy_starting_part(DestructionPending(target, now))
            exploding.ticks_since_failure_start += 1
            return True

        if warning_due(target.part, state.degradation, now):
            self._warn(target.part, warning_message(target, self.over_thrust))
            mark_warned(target.part, state.degradation, now)

        state.ticks_since_failure_start += 1
        return True

    def _destroy_starting_part(self, pending: DestructionPending) -> PropagationExploding:
        self.state = pending
        target = pending.target
        part = target.part

        cause = destruction_cause(target, self.over_thrust)
        logger.warning(cause)
        self.flight_log.record(cause)
        self.failure_time = pending.detected_at

        doomed = propagate_failure(
            self.vessel,
            part,
            target.failure_type,
            self.settings.failure_propagate_probability,
            self.settings.propagation_chance_decreases,
            self.rng,
        )
        logger.info("%d part(s) doomed by the failure of %s", len(doomed), part.title)
        self.doomed = doomed

        if is_overheated(part) and not self.vessel.is_destroyed(part):
            self.physics.explode(part)
        self.notifier.unhighlight(part)

        exploding = PropagationExploding(
            ExplosionScheduler(doomed, self.ticks_between_part_failures),
            failure_time=pending.detected_at,
            ticks_since_failure_start=-self.ticks_between_part_failures,
        )
        self.state = exploding
        self._maybe_abort(exploding, pending.detected_at)
        return exploding

    # ------------------------------------------------------------------
    # Explosions
    # ------------------------------------------------------------------

    def _tick_explosions(self, state: PropagationExploding, now: float) -> bool:
        self._maybe_abort(state, now)
        try:
            part = state.scheduler.explode_next(
                state.ticks_since_failure_start, self.vessel, self.physics, self.flight_log
            )
        except ScheduleExhausted:
            logger.info("All doomed parts exploded; failure session over")
            if self.settings.auto_abort and not state.abort_done:
                logger.warning(
                    "Failure session ended %.2f s after the failure, before the %.2f s "
                    "auto-abort delay; no abort was triggered",
                    now - state.failure_time, self.settings.auto_abort_delay,
                )
            self.notifier.stop_alarm()
            self.state = Terminated(TerminationReason.SCHEDULE_EXHAUSTED)
            return False

        if part is not None:
            self.exploded.append(part)
        state.ticks_since_failure_start += 1
        return True

    def _maybe_abort(self, state: PropagationExploding, now: float) -> None:
        if not self.settings.auto_abort or state.abort_done:
            return
        if now - state.failure_time < self.settings.auto_abort_delay:
            return
        self.physics.trigger_abort()
        self.flight_log.record("Abort sequence triggered after part failure.")
        state.abort_done = True

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _warn(self, part: Part, text: str) -> None:
        self.notifier.post_message(text, WARNING_MESSAGE_DURATION)
        if self.settings.highlight_failing_part:
            self.notifier.highlight(part)

    def _abort_detached(self, part: Part) -> bool:
        text = f"Failing {part.title} no longer attached to vessel"
        logger.warning(text)
        self.notifier.post_message(text, DETACHED_MESSAGE_DURATION)
        self.flight_log.record(f"{text}.")
        self.notifier.unhighlight(part)
        self.notifier.stop_alarm()
        self.state = Terminated(TerminationReason.TARGET_DETACHED)
        return False

