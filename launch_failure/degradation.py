"""
Per-tick degradation of the failing part.

Three models, selected by failure type and the over-thrust flag:

  Engine, over-thrust
      Thrust overload accumulates by ``round(max_thrust / 30 * throttle)`` on
      every aligned tick and is applied as an upward force; the part heats by
      ``max_temperature / 20 * throttle``.

  Engine, under-thrust
      Every 0.5 s a new thrust limiter target ``(0.9 - u / 2) * 100`` is drawn;
      between draws the limiter moves linearly from the previous target to
      the new one.  No heating.

  Structural (radial decoupler, control surface, strut / fuel line)
      A force counter grows by one per aligned tick; past 20 the joint is
      overloaded beyond its breaking force.

Aligned tick: ``ticks_since_failure_start % ticks_between_part_failures == 0``.
The destruction check itself runs on every tick.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.random import Generator

from .interfaces import Physics
from .parts import EngineModule, FailureType, Part
from .selection import Target

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Model constants
# ---------------------------------------------------------------------------

DECOUPLER_FORCE_LIMIT: int = 20
OVERLOAD_DIVISOR: float = 30.0
HEAT_DIVISOR: float = 20.0
UNDER_THRUST_WINDOW: float = 0.5
WARNING_INTERVAL: float = 1.0


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


@dataclass
class DegradationState:
    """Counters and timers of an active degradation."""

    thrust_overload: int = 0
    under_thrust_start: float = 100.0
    under_thrust_end: float = 100.0
    under_thrust_refresh_time: float = 0.0
    decoupler_force_count: int = 0
    next_warning_time: float = 0.0
    last_warning_temperature: float = 0.0


def is_aligned(ticks_since_failure_start: int, ticks_between_part_failures: int) -> bool:
    return ticks_since_failure_start % ticks_between_part_failures == 0


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


def degrade_over_thrust(
    part: Part, module: EngineModule, state: DegradationState, physics: Physics
) -> None:
    throttle = module.final_thrust / module.max_thrust
    logger.info("throttle: %.3f", throttle)

    state.thrust_overload += int(round(module.max_thrust / OVERLOAD_DIVISOR * throttle))
    physics.apply_force(part, state.thrust_overload)
    physics.add_heat(part, part.max_temperature / HEAT_DIVISOR * throttle)


def sample_under_thrust_target(rng: Generator) -> float:
    """Draw a thrust limiter target in (40, 90]."""
    return (0.9 - rng.random() / 2) * 100


def degrade_under_thrust(
    module: EngineModule,
    state: DegradationState,
    now: float,
    physics: Physics,
    rng: Generator,
) -> None:
    if now >= state.under_thrust_refresh_time:
        state.under_thrust_start = state.under_thrust_end
        state.under_thrust_end = sample_under_thrust_target(rng)
        state.under_thrust_refresh_time = now + UNDER_THRUST_WINDOW

    window_start = state.under_thrust_refresh_time - UNDER_THRUST_WINDOW
    fraction = float(np.clip((now - window_start) / UNDER_THRUST_WINDOW, 0.0, 1.0))
    percentage = state.under_thrust_start + (
        state.under_thrust_end - state.under_thrust_start
    ) * fraction
    physics.set_thrust_percentage(module, percentage)


def degrade_structure(part: Part, state: DegradationState, physics: Physics) -> None:
    state.decoupler_force_count += 1
    logger.info("decoupler force count: %d", state.decoupler_force_count)
    if state.decoupler_force_count > DECOUPLER_FORCE_LIMIT:
        physics.decouple(part, part.breaking_force + 1)


def degrade(
    target: Target,
    state: DegradationState,
    ticks_since_failure_start: int,
    ticks_between_part_failures: int,
    over_thrust: bool,
    now: float,
    physics: Physics,
    rng: Generator,
) -> None:
    """Apply one tick of degradation to *target*.

    Does nothing on non-aligned ticks, and nothing for an engine that no
    longer produces thrust.
    """
    if not is_aligned(ticks_since_failure_start, ticks_between_part_failures):
        return

    if target.failure_type is FailureType.ENGINE:
        module = target.engine_module
        if module is None or module.final_thrust <= 0:
            return
        if over_thrust:
            degrade_over_thrust(target.part, module, state, physics)
        else:
            degrade_under_thrust(module, state, now, physics, rng)
    else:
        degrade_structure(target.part, state, physics)


# ---------------------------------------------------------------------------
# Destruction and warnings
# ---------------------------------------------------------------------------


def is_overheated(part: Part) -> bool:
    return part.temperature >= part.max_temperature


def is_destroyed(part: Part, state: DegradationState) -> bool:
    return is_overheated(part) or state.decoupler_force_count > DECOUPLER_FORCE_LIMIT


def destruction_cause(target: Target, over_thrust: bool) -> str:
    """Flight log entry describing why the starting part was lost."""
    title = target.part.title
    if target.failure_type is not FailureType.ENGINE:
        return f"Random structural failure of {title}."
    if over_thrust:
        return f"Random failure of {title}."
    return f"Underthrust of {title}."


def warning_due(part: Part, state: DegradationState, now: float) -> bool:
    """At most once per second, while heating or past the force limit."""
    if now < state.next_warning_time:
        return False
    return (
        part.temperature >= state.last_warning_temperature
        or state.decoupler_force_count > DECOUPLER_FORCE_LIMIT
    )


def warning_message(target: Target, over_thrust: bool) -> str:
    title = target.part.title
    if target.failure_type is not FailureType.ENGINE:
        return f"{title} structural failure imminent"
    if over_thrust:
        return f"{title} temperature exceeding limits: {round(target.part.temperature, 1)}"
    return f"{title} losing thrust"


def mark_warned(part: Part, state: DegradationState, now: float) -> None:
    state.next_warning_time = now + WARNING_INTERVAL
    state.last_warning_temperature = part.temperature
