"""
Monte Carlo harness over repeated launches of one scenario.

Every trial rebuilds the vessel from the scenario config and flies it with its
own Generator spawned from a master ``SeedSequence``, so trials are
independent and the whole experiment is reproducible from a single seed.

Design principles
-----------------
* No global RNG state: every trial owns its Generator.
* Trials share nothing: the vessel is rebuilt from config each time.
* Confidence intervals use scipy.stats.t (t-distribution, two-tailed).
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.random import Generator

from .config import ConfigDict, FailureSettings, settings_from_config
from .engine import failure_occurs
from .flight import FlightResult, profile_from_config, simulate_flight
from .utils import confidence_interval, make_trial_rngs
from .vessel import body_from_config, vessel_from_config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MonteCarloResult:
    """Immutable container for Monte Carlo results.

    Attributes
    ----------
    doomed_counts : np.ndarray, shape (trials,), dtype int
        Parts doomed by propagation per trial (0 when no failure happened).
    failure_started : np.ndarray, shape (trials,), dtype bool
        Whether a starting part was selected in each trial.
    occurrence_rate : float
        Fraction of trials in which a failure started.
    mean_doomed : float
        Mean doomed count across trials.
    ci_low, ci_high : float
        95 % confidence interval for ``mean_doomed``.
    failure_type_counts : dict of str -> int
        Trials per failure type (``"none"`` for trials without a failure).
    termination_counts : dict of str -> int
        Trials per termination reason (``"running"`` when flight time ran out).
    trials : int
        Number of trials executed.
    seed : int
        Master seed.
    """

    doomed_counts: np.ndarray
    failure_started: np.ndarray
    occurrence_rate: float
    mean_doomed: float
    ci_low: float
    ci_high: float
    failure_type_counts: dict[str, int] = field(default_factory=dict)
    termination_counts: dict[str, int] = field(default_factory=dict)
    trials: int = 0
    seed: int = 0

    def summary_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable summary (no arrays)."""
        return {
            "trials": self.trials,
            "seed": self.seed,
            "occurrence_rate": self.occurrence_rate,
            "mean_doomed": self.mean_doomed,
            "ci_95_low": self.ci_low,
            "ci_95_high": self.ci_high,
            "max_doomed": int(np.max(self.doomed_counts)),
            "median_doomed": float(np.median(self.doomed_counts)),
            "failure_type_counts": dict(self.failure_type_counts),
            "termination_counts": dict(self.termination_counts),
        }


# ---------------------------------------------------------------------------
# Core runner
# ---------------------------------------------------------------------------


def run_trial(
    cfg: ConfigDict,
    settings: FailureSettings,
    rng: Generator,
    apply_initial_probability: bool = False,
) -> FlightResult | None:
    """Fly the scenario once.

    Returns ``None`` when *apply_initial_probability* is set and the launch
    draws no failure session.
    """
    if apply_initial_probability and not failure_occurs(settings, rng):
        return None

    vessel = vessel_from_config(cfg["vessel"], rng)
    return simulate_flight(
        vessel,
        body_from_config(cfg["body"]),
        settings,
        rng,
        profile=profile_from_config(cfg.get("ascent", {})),
        max_flight_time=float(cfg.get("max_flight_time", 600.0)),
    )


def run_monte_carlo(
    cfg: ConfigDict,
    trials: int,
    seed: int,
    apply_initial_probability: bool = False,
) -> MonteCarloResult:
    """Run *trials* independent launches of the scenario *cfg*.

    Parameters
    ----------
    cfg : ConfigDict
        Validated scenario config.
    trials : int
        Number of launches (>= 2, needed for the confidence interval).
    seed : int
        Master seed for the per-trial Generators.
    apply_initial_probability : bool, optional
        Gate each launch on ``initial_failure_probability`` first.

    Raises
    ------
    ValueError
        If ``trials < 2``.
    """
    if trials < 2:
        raise ValueError(f"trials must be >= 2 for CI computation; got {trials}.")

    settings = settings_from_config(cfg)
    doomed_counts = np.zeros(trials, dtype=np.int64)
    started = np.zeros(trials, dtype=bool)
    type_counts: Counter[str] = Counter()
    termination_counts: Counter[str] = Counter()

    for trial, trial_rng in enumerate(make_trial_rngs(seed, trials)):
        result = run_trial(cfg, settings, trial_rng, apply_initial_probability)
        if result is None:
            type_counts["none"] += 1
            termination_counts["not_launched"] += 1
            continue
        doomed_counts[trial] = len(result.doomed)
        started[trial] = result.failure_started
        type_counts[result.failure_type.value] += 1
        reason = result.termination_reason
        termination_counts[reason.value if reason is not None else "running"] += 1

    ci_low, ci_high = confidence_interval(doomed_counts.astype(np.float64))
    logger.info("Monte Carlo: %d trials, mean doomed %.3f", trials, float(np.mean(doomed_counts)))

    return MonteCarloResult(
        doomed_counts=doomed_counts,
        failure_started=started,
        occurrence_rate=float(np.mean(started)),
        mean_doomed=float(np.mean(doomed_counts)),
        ci_low=ci_low,
        ci_high=ci_high,
        failure_type_counts=dict(type_counts),
        termination_counts=dict(termination_counts),
        trials=trials,
        seed=seed,
    )
