"""
Failure propagation through the vessel part tree.

Once the starting part is destroyed, failure may spread to adjacent parts
(parent and children).  The traversal is depth-first: every candidate draws
one uniform sample and, when doomed, immediately spreads further before the
next sibling is considered.

The walk keeps an explicit stack of frames instead of recursing, so the depth
of the part tree is not bounded by the interpreter stack.  Its doomed list and
visited set are local to one call; callers receive a fresh tuple and nothing
passed in is mutated.

Per-hop chance
--------------
With ``decreases`` enabled the chance at depth ``k`` (direct neighbours of the
starting part are depth 1) is ``base ** k``; otherwise it stays ``base`` at
every depth.  For engine failures, explosive fuel tanks are always doomed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from numpy.random import Generator

from .interfaces import VesselGraph
from .parts import FailureType, Part


# ---------------------------------------------------------------------------
# Chance helpers
# ---------------------------------------------------------------------------


def propagation_chance(base: float, depth: int, decreases: bool) -> float:
    """Chance that failure reaches a part at *depth* hops from the origin.

    Parameters
    ----------
    base : float
        Configured base propagation probability in [0, 1].
    depth : int
        Hop distance from the starting part (>= 1).
    decreases : bool
        Whether the chance decays with distance.
    """
    if depth < 1:
        raise ValueError(f"depth must be >= 1; got {depth}.")
    return base ** depth if decreases else base


def candidate_chance(candidate: Part, failure_type: FailureType, chance: float) -> float:
    """Chance applied to one candidate: fuel tanks next to an engine failure always go."""
    if failure_type is FailureType.ENGINE and candidate.is_explosive_fuel_tank:
        return 1.0
    return chance


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def _neighbours(vessel: VesselGraph, part: Part, visited: set[Part]) -> list[Part]:
    candidates: list[Part] = []
    parent = vessel.parent(part)
    if parent is not None and parent not in visited:
        candidates.append(parent)
    candidates.extend(c for c in vessel.children(part) if c not in visited)
    return candidates


@dataclass
class _Frame:
    """One part on the walk: the chance for its neighbours and those left to try."""

    part: Part
    chance: float
    candidates: Iterator[Part]


def _spread(
    vessel: VesselGraph,
    starting_part: Part,
    failure_type: FailureType,
    base_probability: float,
    decreases: bool,
    rng: Generator,
) -> list[Part]:
    # Parts hash by identity, so the set is an O(1) visited check.
    visited: set[Part] = {starting_part}
    doomed: list[Part] = []
    stack = [_Frame(starting_part, base_probability,
                    iter(_neighbours(vessel, starting_part, visited)))]

    while stack:
        frame = stack[-1]
        candidate = next(frame.candidates, None)
        if candidate is None:
            stack.pop()
            continue
        # A deeper branch of an earlier sibling may already have claimed it.
        if candidate in visited:
            continue
        if rng.random() < candidate_chance(candidate, failure_type, frame.chance):
            visited.add(candidate)
            doomed.append(candidate)
            next_chance = frame.chance * base_probability if decreases else frame.chance
            stack.append(_Frame(candidate, next_chance,
                                iter(_neighbours(vessel, candidate, visited))))
    return doomed


def propagate_failure(
    vessel: VesselGraph,
    starting_part: Part,
    failure_type: FailureType,
    base_probability: float,
    decreases: bool,
    rng: Generator,
) -> tuple[Part, ...]:
    """Compute the parts doomed by the destruction of *starting_part*.

    Parameters
    ----------
    vessel : VesselGraph
        Vessel graph, read only.
    starting_part : Part
        The part whose destruction seeds the propagation.
    failure_type : FailureType
        Type of the originating failure.
    base_probability : float
        Configured propagation probability in [0, 1]; chance at depth 1.
    decreases : bool
        Multiply the chance by *base_probability* at every further hop.
    rng : Generator
        Uniform random source; one ``random()`` draw per candidate examined.

    Returns
    -------
    tuple of Part
        Doomed parts in the order they were doomed, without duplicates and
        without the starting part.

    Raises
    ------
    ValueError
        If *base_probability* is outside [0, 1].
    """
    if not 0.0 <= base_probability <= 1.0:
        raise ValueError(f"base_probability must be in [0, 1]; got {base_probability}.")

    # The starting part is handled by the degradation path, not the scheduler,
    # so it never enters the doomed list.
    return tuple(_spread(vessel, starting_part, failure_type, base_probability, decreases, rng))
