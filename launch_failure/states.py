"""
Lifecycle states of a failure session.

Each state is its own dataclass carrying only the data that is meaningful in
that state, so combinations such as "doomed parts known while the starting
part is still degrading" cannot be represented.

    WaitingForAltitude -> ArmedNoTarget -> PreFailureWarning
        -> ActiveDegradation -> DestructionPending
        -> PropagationExploding -> Terminated
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from .degradation import DegradationState
from .scheduler import ExplosionScheduler
from .selection import Target


class Phase(Enum):
    WAITING_FOR_ALTITUDE = "waiting_for_altitude"
    ARMED_NO_TARGET = "armed_no_target"
    PRE_FAILURE_WARNING = "pre_failure_warning"
    ACTIVE_DEGRADATION = "active_degradation"
    DESTRUCTION_PENDING = "destruction_pending"
    PROPAGATION_EXPLODING = "propagation_exploding"
    TERMINATED = "terminated"


class TerminationReason(Enum):
    NO_ATMOSPHERE = "no_atmosphere"
    TARGET_DETACHED = "target_detached"
    SCHEDULE_EXHAUSTED = "schedule_exhausted"


@dataclass(frozen=True)
class WaitingForAltitude:
    phase: ClassVar[Phase] = Phase.WAITING_FOR_ALTITUDE


@dataclass(frozen=True)
class ArmedNoTarget:
    """Gate passed, but the vessel offered no candidate; retried every tick."""

    phase: ClassVar[Phase] = Phase.ARMED_NO_TARGET


@dataclass
class PreFailureWarning:
    phase: ClassVar[Phase] = Phase.PRE_FAILURE_WARNING

    target: Target
    warning_started: float
    next_warning_time: float


@dataclass
class ActiveDegradation:
    phase: ClassVar[Phase] = Phase.ACTIVE_DEGRADATION

    target: Target
    degradation: DegradationState = field(default_factory=DegradationState)
    ticks_since_failure_start: int = 0


@dataclass(frozen=True)
class DestructionPending:
    """Starting part destroyed; doomed parts not yet computed."""

    phase: ClassVar[Phase] = Phase.DESTRUCTION_PENDING

    target: Target
    detected_at: float


@dataclass
class PropagationExploding:
    phase: ClassVar[Phase] = Phase.PROPAGATION_EXPLODING

    scheduler: ExplosionScheduler
    failure_time: float
    ticks_since_failure_start: int
    abort_done: bool = False


@dataclass(frozen=True)
class Terminated:
    phase: ClassVar[Phase] = Phase.TERMINATED

    reason: TerminationReason


FailureState = Union[
    WaitingForAltitude,
    ArmedNoTarget,
    PreFailureWarning,
    ActiveDegradation,
    DestructionPending,
    PropagationExploding,
    Terminated,
]
