"""
Shared statistics and RNG helpers.

  - confidence_interval() : t-distribution CI for a sample mean
  - make_trial_rngs()     : independent per-flight Generators from one seed
"""

from __future__ import annotations

import numpy as np
from numpy.random import Generator, SeedSequence, default_rng
import scipy.stats as stats


def confidence_interval(
    samples: np.ndarray,
    confidence: float = 0.95,
) -> tuple[float, float]:
    """Two-sided confidence interval for the mean of *samples*.

    Parameters
    ----------
    samples : np.ndarray, shape (m,)
        Sample array with m >= 2.
    confidence : float, optional
        Confidence level in (0, 1).  Default 0.95.

    Returns
    -------
    (ci_low, ci_high) : tuple of float

    Raises
    ------
    ValueError
        If m < 2 or confidence is not in (0, 1).
    """
    m = len(samples)
    if m < 2:
        raise ValueError("Need at least 2 samples for CI computation.")
    if not (0 < confidence < 1):
        raise ValueError(f"confidence must be in (0, 1); got {confidence}.")
    mean = float(np.mean(samples))
    se = float(stats.sem(samples))
    # Constant samples: the interval collapses onto the mean.
    if se == 0.0:
        return mean, mean
    low, high = stats.t.interval(confidence, df=m - 1, loc=mean, scale=se)
    return float(low), float(high)


def make_trial_rngs(master_seed: int, n_trials: int) -> list[Generator]:
    """Spawn *n_trials* independent Generators from *master_seed*.

    ``SeedSequence.spawn`` keeps the child streams statistically independent,
    and the same master seed always reproduces the same list.
    """
    ss = SeedSequence(master_seed)
    return [default_rng(child) for child in ss.spawn(n_trials)]
