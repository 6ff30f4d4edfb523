"""
Configuration loader for the launch failure engine.

Loads JSON scenario files, validates fields, and turns the ``settings``
section into an immutable :class:`FailureSettings`.  Randomness is always
derived from the scenario ``seed`` through a numpy ``Generator``.
"""

from __future__ import annotations

import json
import warnings
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from numpy.random import Generator, default_rng


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

ConfigDict = dict[str, Any]


@dataclass(frozen=True)
class FailureSettings:
    """Tunable failure parameters, read-only for the lifetime of a session.

    Attributes
    ----------
    max_failure_altitude_percentage : float
        Upper bound of the failure altitude as a fraction of atmosphere depth.
    min_time_before_failure, max_time_before_failure : float
        Seconds after launch before which no failure starts, and after which
        the altitude gate is ignored.
    pre_failure_warning_time : float
        Seconds of warning between target selection and degradation.
    delay_between_part_failures : float
        Seconds between successive degradation steps / explosions.
    failure_propagate_probability : float
        Base chance that failure spreads to an adjacent part.
    propagation_chance_decreases : bool
        Multiply the chance by the base probability at every hop.
    auto_abort : bool
        Trigger the abort action group after the starting part is destroyed.
    auto_abort_delay : float
        Seconds between destruction and the abort.
    initial_failure_probability : float
        Chance that a launch gets a failure session at all.
    highlight_failing_part : bool
        Visually mark the failing part.
    ticks_per_second : float
        Host physics rate.
    over_thrust : bool
        Engine failures over-thrust when ``True``, under-thrust otherwise.
    """

    max_failure_altitude_percentage: float = 0.65
    min_time_before_failure: float = 10.0
    max_time_before_failure: float = 180.0
    pre_failure_warning_time: float = 3.0
    delay_between_part_failures: float = 0.2
    failure_propagate_probability: float = 0.7
    propagation_chance_decreases: bool = False
    auto_abort: bool = False
    auto_abort_delay: float = 1.0
    initial_failure_probability: float = 0.02
    highlight_failing_part: bool = True
    ticks_per_second: float = 50.0
    over_thrust: bool = True

    @property
    def ticks_between_part_failures(self) -> int:
        """Ticks between failure steps; never less than one."""
        return max(1, int(round(self.ticks_per_second * self.delay_between_part_failures)))

    def to_dict(self) -> ConfigDict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Schema constants
# ---------------------------------------------------------------------------

SETTING_NAMES = {f.name for f in fields(FailureSettings)}
PROBABILITY_SETTINGS = {
    "max_failure_altitude_percentage",
    "failure_propagate_probability",
    "initial_failure_probability",
}
NON_NEGATIVE_SETTINGS = {
    "min_time_before_failure",
    "max_time_before_failure",
    "pre_failure_warning_time",
    "delay_between_part_failures",
    "auto_abort_delay",
}
BOOL_SETTINGS = {
    "propagation_chance_decreases",
    "auto_abort",
    "highlight_failing_part",
    "over_thrust",
}
VESSEL_TYPES = {"custom", "random"}


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> ConfigDict:
    """Load and validate a JSON scenario file.

    Parameters
    ----------
    path : str or Path
        Path to the JSON scenario file.

    Returns
    -------
    ConfigDict
        Validated configuration dictionary.

    Raises
    ------
    ValueError
        If required fields are missing or values are invalid.
    FileNotFoundError
        If the scenario file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")

    with path.open("r") as fh:
        cfg: ConfigDict = json.load(fh)

    validate_config(cfg)
    return cfg


def validate_config(cfg: ConfigDict) -> None:
    """Validate top-level scenario fields.

    Raises
    ------
    ValueError
        On any validation failure.
    """
    required_top = {"seed", "body", "vessel"}
    missing = required_top - cfg.keys()
    if missing:
        raise ValueError(f"Config missing required fields: {missing}")

    body_cfg = cfg["body"]
    if "atmosphere" not in body_cfg:
        raise ValueError("body.atmosphere is required")
    if body_cfg["atmosphere"] and float(body_cfg.get("atmosphere_depth", 0)) <= 0:
        raise ValueError("body.atmosphere_depth must be positive for an atmospheric body")

    vessel_cfg = cfg["vessel"]
    vtype = vessel_cfg.get("type", "custom")
    if vtype not in VESSEL_TYPES:
        raise ValueError(f"vessel.type must be one of {VESSEL_TYPES}, got {vtype!r}")
    if vtype == "custom" and not vessel_cfg.get("parts"):
        raise ValueError("vessel.parts is required for a custom vessel")
    if vtype == "random" and "n" not in vessel_cfg:
        raise ValueError("vessel.n is required for a random vessel")

    _validate_settings(cfg.get("settings", {}))


def _validate_settings(settings_cfg: ConfigDict) -> None:
    unknown = set(settings_cfg) - SETTING_NAMES
    if unknown:
        raise ValueError(f"Unknown settings: {sorted(unknown)}")

    for name in PROBABILITY_SETTINGS & settings_cfg.keys():
        value = float(settings_cfg[name])
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"settings.{name} must be in [0, 1]; got {value}")

    for name in NON_NEGATIVE_SETTINGS & settings_cfg.keys():
        if float(settings_cfg[name]) < 0:
            raise ValueError(f"settings.{name} must be >= 0; got {settings_cfg[name]}")

    for name in BOOL_SETTINGS & settings_cfg.keys():
        if not isinstance(settings_cfg[name], bool):
            raise ValueError(f"settings.{name} must be a boolean")

    if "ticks_per_second" in settings_cfg and float(settings_cfg["ticks_per_second"]) <= 0:
        raise ValueError("settings.ticks_per_second must be positive")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def settings_from_config(cfg: ConfigDict) -> FailureSettings:
    """Build :class:`FailureSettings` from the ``settings`` section.

    Missing keys take the dataclass defaults.  A ``UserWarning`` is emitted
    when ``min_time_before_failure`` exceeds ``max_time_before_failure``.
    """
    settings_cfg = dict(cfg.get("settings", {}))
    _validate_settings(settings_cfg)

    kwargs: ConfigDict = {}
    for f in fields(FailureSettings):
        if f.name not in settings_cfg:
            continue
        value = settings_cfg[f.name]
        kwargs[f.name] = value if f.name in BOOL_SETTINGS else float(value)
    settings = FailureSettings(**kwargs)

    if settings.min_time_before_failure > settings.max_time_before_failure:
        warnings.warn(
            f"settings_from_config: min_time_before_failure "
            f"({settings.min_time_before_failure}) exceeds max_time_before_failure "
            f"({settings.max_time_before_failure}); the altitude threshold is "
            f"ignored and failures start as soon as the minimum time has passed.",
            UserWarning,
            stacklevel=2,
        )
    return settings


def build_rng(cfg: ConfigDict) -> Generator:
    """Build a seeded numpy Generator from the scenario ``seed``."""
    return default_rng(int(cfg["seed"]))
