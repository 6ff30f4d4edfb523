"""
launch_failure — Randomized Launch Failure Engine
==================================================

Simulates one equipment failure during an atmospheric ascent:

  Selection
      One starting part is drawn uniformly from active engines, radial
      decouplers, control surfaces, and struts / fuel lines.

  Degradation
      Engines over-thrust (force and heat build up) or under-thrust (the
      thrust limiter wanders between 40 % and 90 %); structural parts
      accumulate force until their joint breaks.

  Propagation
      When the starting part is lost, failure spreads depth-first through the
      part tree with a configurable, optionally decaying, probability.
      Doomed parts then explode one at a time on a fixed cadence.

The engine is poll-driven: the host calls ``FailureEngine.tick()`` once per
simulation tick until it returns ``False``.

Quick start
-----------
>>> from numpy.random import default_rng
>>> from launch_failure import FailureSettings, generate_random_vessel, simulate_flight
>>> from launch_failure import CelestialBody
>>> rng = default_rng(42)
>>> vessel = generate_random_vessel(30, rng)
>>> body = CelestialBody("Kerbin", atmosphere=True, atmosphere_depth=70000)
>>> result = simulate_flight(vessel, body, FailureSettings(), rng)
"""

from .config import FailureSettings, load_config, settings_from_config, build_rng
from .parts import EngineModule, FailureType, Part, PartCategory
from .vessel import (
    CelestialBody,
    Vessel,
    build_vessel,
    generate_random_vessel,
    vessel_from_config,
    body_from_config,
)
from .clock import SimulationClock
from .notifications import FlightDataLog, RecordingNotifier
from .selection import EngineModuleMismatch, Target, select_starting_part
from .propagation import propagate_failure, propagation_chance
from .scheduler import ExplosionScheduler, ScheduleExhausted
from .states import Phase, TerminationReason
from .engine import FailureEngine, failure_occurs
from .flight import AscentProfile, FlightResult, simulate_flight
from .monte_carlo import MonteCarloResult, run_monte_carlo
from .metrics import cascade_size, flight_summary

__all__ = [
    # config
    "FailureSettings", "load_config", "settings_from_config", "build_rng",
    # parts and vessel
    "EngineModule", "FailureType", "Part", "PartCategory",
    "CelestialBody", "Vessel", "build_vessel", "generate_random_vessel",
    "vessel_from_config", "body_from_config",
    # collaborators
    "SimulationClock", "FlightDataLog", "RecordingNotifier",
    # failure core
    "EngineModuleMismatch", "Target", "select_starting_part",
    "propagate_failure", "propagation_chance",
    "ExplosionScheduler", "ScheduleExhausted",
    "Phase", "TerminationReason", "FailureEngine", "failure_occurs",
    # host and experiments
    "AscentProfile", "FlightResult", "simulate_flight",
    "MonteCarloResult", "run_monte_carlo",
    "cascade_size", "flight_summary",
]
