"""
Candidate selection for the starting part of a failure.

Four disjoint pools are gathered from the attached parts: active engines,
radial decouplers, control surfaces, and struts / fuel lines.  A single index
is drawn uniformly over their concatenation, so every candidate part has the
same chance ``1 / total`` regardless of which pool it sits in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from numpy.random import Generator

from .interfaces import VesselGraph
from .parts import FAILURE_TYPE_BY_CATEGORY, EngineModule, FailureType, Part, PartCategory

logger = logging.getLogger(__name__)


class EngineModuleMismatch(AssertionError):
    """Raised when an engine candidate does not expose exactly one engine module."""


@dataclass(frozen=True)
class CandidatePools:
    """The four selection pools, in concatenation order."""

    engines: tuple[Part, ...]
    radial_decouplers: tuple[Part, ...]
    control_surfaces: tuple[Part, ...]
    struts_and_fuel_lines: tuple[Part, ...]

    def ordered(self) -> list[tuple[FailureType, tuple[Part, ...]]]:
        pools = {
            PartCategory.ENGINE: self.engines,
            PartCategory.RADIAL_DECOUPLER: self.radial_decouplers,
            PartCategory.CONTROL_SURFACE: self.control_surfaces,
            PartCategory.STRUT_OR_FUEL_LINE: self.struts_and_fuel_lines,
        }
        return [(failure_type, pools[category])
                for category, failure_type in FAILURE_TYPE_BY_CATEGORY.items()]

    @property
    def total(self) -> int:
        return sum(len(pool) for _, pool in self.ordered())


@dataclass(frozen=True)
class Target:
    """The chosen starting part and what kind of failure it will suffer."""

    part: Part
    failure_type: FailureType
    engine_module: EngineModule | None = None


def gather_candidate_pools(vessel: VesselGraph) -> CandidatePools:
    return CandidatePools(
        engines=tuple(vessel.active_engine_parts()),
        radial_decouplers=tuple(vessel.radial_decouplers()),
        control_surfaces=tuple(vessel.control_surfaces()),
        struts_and_fuel_lines=tuple(vessel.struts_and_fuel_lines()),
    )


def resolve_engine_module(part: Part) -> EngineModule:
    """Return the single engine module of *part*.

    Raises
    ------
    EngineModuleMismatch
        If the part exposes zero or several engine modules.
    """
    modules = part.engine_modules
    if len(modules) != 1:
        raise EngineModuleMismatch(
            f"{part.title} was classified as an active engine but exposes "
            f"{len(modules)} engine modules; expected exactly one."
        )
    return modules[0]


def select_starting_part(vessel: VesselGraph, rng: Generator) -> Target | None:
    """Pick the starting part of a failure.

    Parameters
    ----------
    vessel : VesselGraph
        Vessel to search for candidates.
    rng : Generator
        Uniform random source; exactly one ``integers`` draw is consumed when
        at least one candidate exists, none otherwise.

    Returns
    -------
    Target or None
        ``None`` when all four pools are empty.

    Raises
    ------
    EngineModuleMismatch
        If the picked engine part does not expose exactly one engine module.
    """
    pools = gather_candidate_pools(vessel)
    total = pools.total
    if total == 0:
        return None

    index = int(rng.integers(0, total))
    logger.info(
        "Candidates: engines=%d radial_decouplers=%d control_surfaces=%d "
        "struts_and_fuel_lines=%d -> index %d",
        len(pools.engines), len(pools.radial_decouplers),
        len(pools.control_surfaces), len(pools.struts_and_fuel_lines), index,
    )

    offset = 0
    for failure_type, pool in pools.ordered():
        if index < offset + len(pool):
            part = pool[index - offset]
            module = None
            if failure_type is FailureType.ENGINE:
                module = resolve_engine_module(part)
            return Target(part, failure_type, module)
        offset += len(pool)

    raise AssertionError("candidate index out of range")  # unreachable: index < total
