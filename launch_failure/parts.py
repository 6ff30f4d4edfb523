"""
Part and failure-type model for the launch failure engine.

Parts are plain mutable records owned by the vessel collaborator.  The engine
only holds references to them, so equality and hashing are by identity: two
parts with the same title are still distinct components.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class PartCategory(Enum):
    """Category tag of a part, used for candidate pools and propagation."""

    ENGINE = "engine"
    RADIAL_DECOUPLER = "radial_decoupler"
    CONTROL_SURFACE = "control_surface"
    STRUT_OR_FUEL_LINE = "strut_or_fuel_line"
    EXPLOSIVE_FUEL_TANK = "explosive_fuel_tank"
    STRUCTURAL = "structural"


class FailureType(Enum):
    """Kind of failure a session is running."""

    NONE = "none"
    ENGINE = "engine"
    RADIAL_DECOUPLER = "radial_decoupler"
    CONTROL_SURFACE = "control_surface"
    STRUT_OR_FUEL_LINE = "strut_or_fuel_line"


# Pool category -> failure type started from that pool.
FAILURE_TYPE_BY_CATEGORY: dict[PartCategory, FailureType] = {
    PartCategory.ENGINE: FailureType.ENGINE,
    PartCategory.RADIAL_DECOUPLER: FailureType.RADIAL_DECOUPLER,
    PartCategory.CONTROL_SURFACE: FailureType.CONTROL_SURFACE,
    PartCategory.STRUT_OR_FUEL_LINE: FailureType.STRUT_OR_FUEL_LINE,
}


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class EngineModule:
    """Engine-performance sub-object of a part.

    Attributes
    ----------
    max_thrust : float
        Thrust at full throttle with a 100 % limiter.
    throttle : float
        Vessel throttle in [0, 1].
    thrust_percentage : float
        Thrust limiter override in [0, 100].
    ignited : bool
        Whether the engine has been staged and is running.
    """

    max_thrust: float
    throttle: float = 1.0
    thrust_percentage: float = 100.0
    ignited: bool = True

    @property
    def final_thrust(self) -> float:
        if not self.ignited:
            return 0.0
        return self.max_thrust * self.throttle * self.thrust_percentage / 100.0


@dataclass(eq=False)
class Part:
    """A node of the vessel's component tree."""

    part_id: int
    title: str
    category: PartCategory = PartCategory.STRUCTURAL
    max_temperature: float = 2000.0
    temperature: float = 300.0
    breaking_force: float = 50.0
    modules: list[EngineModule] = field(default_factory=list)

    @property
    def engine_modules(self) -> list[EngineModule]:
        return [m for m in self.modules if isinstance(m, EngineModule)]

    @property
    def is_explosive_fuel_tank(self) -> bool:
        return self.category is PartCategory.EXPLOSIVE_FUEL_TANK

    def __repr__(self) -> str:
        return f"Part({self.part_id}, {self.title!r}, {self.category.value})"
