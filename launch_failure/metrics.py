"""
Summary metrics for failure cascades and flights.

All metrics are pure functions with no global state.
"""

from __future__ import annotations

from typing import Any, Sequence

from .flight import FlightResult
from .parts import Part
from .vessel import Vessel


def cascade_size(vessel: Vessel, doomed: Sequence[Part]) -> dict[str, int | float]:
    """Size of a propagation cascade relative to the whole vessel.

    Parameters
    ----------
    vessel : Vessel
        Vessel the cascade ran on; every part it ever held counts toward
        ``n_total``.
    doomed : sequence of Part
        Parts doomed by propagation (starting part excluded).

    Returns
    -------
    dict
        Dictionary with keys:

        - ``n_total`` : number of parts on the vessel at launch
        - ``n_doomed`` : parts doomed by propagation
        - ``n_fuel_tanks_doomed`` : explosive fuel tanks among them
        - ``frac_doomed`` : fraction of the vessel doomed
    """
    n_total = len(vessel.all_parts)
    n_doomed = len(doomed)
    n_tanks = sum(1 for p in doomed if p.is_explosive_fuel_tank)
    return {
        "n_total": n_total,
        "n_doomed": n_doomed,
        "n_fuel_tanks_doomed": n_tanks,
        "frac_doomed": n_doomed / n_total if n_total > 0 else 0.0,
    }


def flight_summary(result: FlightResult) -> dict[str, Any]:
    """JSON-serialisable summary of a :class:`FlightResult` (no event list)."""
    return {
        "failure_started": result.failure_started,
        "failure_type": result.failure_type.value,
        "failed_part": result.failed_part.title if result.failed_part is not None else None,
        "termination_reason": (
            result.termination_reason.value if result.termination_reason is not None else None
        ),
        "altitude_threshold": result.altitude_threshold,
        "failure_time": result.failure_time,
        "end_time": round(result.end_time, 4),
        "ticks": result.ticks,
        "n_doomed": len(result.doomed),
        "n_exploded": len(result.exploded),
        "doomed": [p.title for p in result.doomed],
        "exploded": [p.title for p in result.exploded],
        "abort_triggered": result.abort_triggered,
    }
