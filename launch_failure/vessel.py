"""
Vessel part graph and reference physics collaborator.

The vessel is a rooted tree stored as a NetworkX ``DiGraph`` with edges
``parent -> child`` keyed by ``Part.part_id``.  Topology only changes through
the physics calls (``decouple`` and ``explode``); the failure engine reads the
graph and never edits it directly.

A part that loses its path to the root (decoupled, or orphaned by an
explosion) stays known to the vessel as debris: it can still be exploded, but
it no longer counts as attached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import networkx as nx
import numpy as np
from numpy.random import Generator

from .parts import EngineModule, Part, PartCategory

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Celestial body
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CelestialBody:
    """Body the vessel is ascending from."""

    name: str
    atmosphere: bool
    atmosphere_depth: float = 0.0


def body_from_config(body_cfg: dict[str, Any]) -> CelestialBody:
    return CelestialBody(
        name=str(body_cfg.get("name", "Body")),
        atmosphere=bool(body_cfg["atmosphere"]),
        atmosphere_depth=float(body_cfg.get("atmosphere_depth", 0.0)),
    )


# ---------------------------------------------------------------------------
# Vessel
# ---------------------------------------------------------------------------


class Vessel:
    """Rooted part tree with query and physics-mutation operations.

    Parameters
    ----------
    parts : sequence of Part
        All parts of the vessel.
    edges : iterable of (int, int)
        ``(parent_id, child_id)`` pairs.  Together with *parts* they must form
        a single rooted tree.
    name : str, optional
        Display name used in log records.

    Raises
    ------
    ValueError
        If ids are duplicated or unknown, or the edges do not form a tree.
    """

    def __init__(
        self,
        parts: Sequence[Part],
        edges: Iterable[tuple[int, int]],
        name: str = "Vessel",
    ) -> None:
        self.name = name
        self.altitude: float = 0.0
        self.abort_triggered: bool = False
        self.applied_forces: dict[int, float] = {}

        self._parts: dict[int, Part] = {}
        for part in parts:
            if part.part_id in self._parts:
                raise ValueError(f"Duplicate part id {part.part_id}.")
            self._parts[part.part_id] = part
        if not self._parts:
            raise ValueError("A vessel needs at least one part.")

        G: nx.DiGraph = nx.DiGraph()
        G.add_nodes_from(self._parts)
        for u, v in edges:
            if u not in self._parts or v not in self._parts:
                raise ValueError(f"Edge ({u}, {v}) references an unknown part id.")
            G.add_edge(u, v)

        if not nx.is_arborescence(G):
            raise ValueError(
                "Vessel edges must form a single rooted tree "
                "(one root, one parent per part, no cycles)."
            )

        self._graph = G
        self._root_id: int | None = next(n for n, d in G.in_degree() if d == 0)
        self._destroyed: set[int] = set()

    # ------------------------------------------------------------------
    # Graph queries
    # ------------------------------------------------------------------

    @property
    def graph(self) -> nx.DiGraph:
        """The live topology (read-only by convention)."""
        return self._graph

    @property
    def root(self) -> Part | None:
        if self._root_id is None:
            return None
        return self._parts[self._root_id]

    @property
    def parts(self) -> list[Part]:
        """Parts still attached to the root, in depth-first order."""
        if self._root_id is None:
            return []
        return [self._parts[i] for i in nx.dfs_preorder_nodes(self._graph, self._root_id)]

    @property
    def all_parts(self) -> list[Part]:
        """Every part ever on the vessel, including debris and destroyed ones."""
        return list(self._parts.values())

    def contains(self, part: Part) -> bool:
        """Whether *part* is still attached to the vessel."""
        if self._root_id is None or part.part_id not in self._graph:
            return False
        if self._parts.get(part.part_id) is not part:
            return False
        return nx.has_path(self._graph, self._root_id, part.part_id)

    def is_destroyed(self, part: Part) -> bool:
        return part.part_id in self._destroyed

    def parent(self, part: Part) -> Part | None:
        if part.part_id not in self._graph:
            return None
        preds = list(self._graph.predecessors(part.part_id))
        return self._parts[preds[0]] if preds else None

    def children(self, part: Part) -> list[Part]:
        if part.part_id not in self._graph:
            return []
        return [self._parts[i] for i in self._graph.successors(part.part_id)]

    # ------------------------------------------------------------------
    # Candidate pools
    # ------------------------------------------------------------------

    def active_engine_parts(self) -> list[Part]:
        return [
            p for p in self.parts
            if p.category is PartCategory.ENGINE
            and any(m.ignited for m in p.engine_modules)
        ]

    def radial_decouplers(self) -> list[Part]:
        return self._parts_in(PartCategory.RADIAL_DECOUPLER)

    def control_surfaces(self) -> list[Part]:
        return self._parts_in(PartCategory.CONTROL_SURFACE)

    def struts_and_fuel_lines(self) -> list[Part]:
        return self._parts_in(PartCategory.STRUT_OR_FUEL_LINE)

    def _parts_in(self, category: PartCategory) -> list[Part]:
        return [p for p in self.parts if p.category is category]

    # ------------------------------------------------------------------
    # Physics mutation
    # ------------------------------------------------------------------

    def apply_force(self, part: Part, magnitude: float) -> None:
        """Apply an upward force along the part's thrust axis."""
        self.applied_forces[part.part_id] = float(magnitude)

    def add_heat(self, part: Part, delta: float) -> None:
        part.temperature += float(delta)

    def set_thrust_percentage(self, module: EngineModule, percentage: float) -> None:
        module.thrust_percentage = float(np.clip(percentage, 0.0, 100.0))

    def decouple(self, part: Part, force: float) -> bool:
        """Break *part* off its parent when *force* exceeds its breaking force.

        Returns ``True`` if the joint broke.
        """
        if force <= part.breaking_force:
            return False
        parent = self.parent(part)
        if parent is None:
            return False
        self._graph.remove_edge(parent.part_id, part.part_id)
        logger.info("%s decoupled from %s", part.title, parent.title)
        return True

    def explode(self, part: Part) -> None:
        """Destroy *part*; its children are left as unattached debris."""
        if self.is_destroyed(part):
            return
        self._destroyed.add(part.part_id)
        if part.part_id in self._graph:
            self._graph.remove_node(part.part_id)
        if part.part_id == self._root_id:
            self._root_id = None
        logger.info("%s exploded", part.title)

    def trigger_abort(self) -> None:
        self.abort_triggered = True
        logger.warning("%s: abort action group triggered", self.name)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def part_from_config(part_cfg: dict[str, Any]) -> Part:
    """Build a :class:`Part` from a vessel config entry.

    ``engine`` may be a single mapping or a list of mappings; each becomes one
    :class:`EngineModule`.
    """
    engines = part_cfg.get("engine", [])
    if isinstance(engines, dict):
        engines = [engines]
    modules = [
        EngineModule(
            max_thrust=float(e["max_thrust"]),
            throttle=float(e.get("throttle", 1.0)),
            thrust_percentage=float(e.get("thrust_percentage", 100.0)),
            ignited=bool(e.get("ignited", True)),
        )
        for e in engines
    ]
    return Part(
        part_id=int(part_cfg["id"]),
        title=str(part_cfg.get("title", f"part-{part_cfg['id']}")),
        category=PartCategory(part_cfg.get("category", PartCategory.STRUCTURAL.value)),
        max_temperature=float(part_cfg.get("max_temperature", 2000.0)),
        temperature=float(part_cfg.get("temperature", 300.0)),
        breaking_force=float(part_cfg.get("breaking_force", 50.0)),
        modules=modules,
    )


def build_vessel(
    parts: Sequence[Part],
    edges: Sequence[tuple[int, int]],
    name: str = "Vessel",
) -> Vessel:
    """Build a vessel from explicit parts and ``(parent, child)`` edges."""
    return Vessel(parts, edges, name=name)


# Category mix for generated vessels.
_RANDOM_CATEGORY_WEIGHTS: dict[PartCategory, float] = {
    PartCategory.STRUCTURAL: 0.30,
    PartCategory.EXPLOSIVE_FUEL_TANK: 0.30,
    PartCategory.ENGINE: 0.15,
    PartCategory.RADIAL_DECOUPLER: 0.10,
    PartCategory.CONTROL_SURFACE: 0.10,
    PartCategory.STRUT_OR_FUEL_LINE: 0.05,
}


def generate_random_vessel(n: int, rng: Generator, name: str = "Vessel") -> Vessel:
    """Generate a random vessel of *n* parts.

    Part 0 is the root (a structural command part).  Every later part ``i``
    attaches to a parent drawn uniformly from ``0..i-1``, which always yields a
    rooted tree.  Categories follow ``_RANDOM_CATEGORY_WEIGHTS``.

    Parameters
    ----------
    n : int
        Number of parts (n >= 1).
    rng : Generator
        Seeded numpy Generator for reproducibility.

    Raises
    ------
    ValueError
        If ``n < 1``.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1; got {n}.")

    categories = list(_RANDOM_CATEGORY_WEIGHTS)
    weights = np.array([_RANDOM_CATEGORY_WEIGHTS[c] for c in categories])
    weights = weights / weights.sum()

    parts = [Part(0, "Command Pod", PartCategory.STRUCTURAL, max_temperature=2400.0)]
    edges: list[tuple[int, int]] = []
    for i in range(1, n):
        category = categories[int(rng.choice(len(categories), p=weights))]
        modules = []
        if category is PartCategory.ENGINE:
            modules.append(EngineModule(max_thrust=float(rng.uniform(50.0, 1500.0))))
        parts.append(
            Part(
                i,
                f"{category.value}-{i}",
                category,
                max_temperature=float(rng.uniform(1200.0, 2500.0)),
                breaking_force=float(rng.uniform(20.0, 200.0)),
                modules=modules,
            )
        )
        edges.append((int(rng.integers(0, i)), i))
    return Vessel(parts, edges, name=name)


def vessel_from_config(vessel_cfg: dict[str, Any], rng: Generator) -> Vessel:
    """Build a vessel from the ``vessel`` section of a scenario config.

    Supported types: ``custom`` (explicit ``parts`` and ``edges``) and
    ``random`` (``n`` parts generated with *rng*).
    """
    vtype = vessel_cfg.get("type", "custom")
    name = str(vessel_cfg.get("name", "Vessel"))
    if vtype == "custom":
        parts = [part_from_config(p) for p in vessel_cfg["parts"]]
        edges = [(int(u), int(v)) for u, v in vessel_cfg.get("edges", [])]
        return build_vessel(parts, edges, name=name)
    if vtype == "random":
        return generate_random_vessel(int(vessel_cfg["n"]), rng, name=name)

    raise ValueError(f"Unsupported vessel type: {vtype!r}")
