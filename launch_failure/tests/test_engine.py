"""
Tests for the poll-driven failure engine.

Each test drives ``FailureEngine.tick()`` the way a host would: advance the
simulation clock by one tick, set the altitude, poll.
"""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from launch_failure.clock import SimulationClock
from launch_failure.config import FailureSettings
from launch_failure.engine import FailureEngine, draw_altitude_threshold, failure_occurs
from launch_failure.notifications import FlightDataLog, RecordingNotifier
from launch_failure.parts import EngineModule, FailureType, Part, PartCategory
from launch_failure.selection import EngineModuleMismatch
from launch_failure.states import Phase, TerminationReason
from launch_failure.vessel import CelestialBody, build_vessel

KERBIN = CelestialBody("Kerbin", atmosphere=True, atmosphere_depth=70000)
MUN = CelestialBody("Mun", atmosphere=False)

# Gate opens on the first tick, no warning phase.
IMMEDIATE = dict(min_time_before_failure=0, max_time_before_failure=0,
                 pre_failure_warning_time=0)


def make_engine(vessel, body=KERBIN, seed=0, **overrides):
    settings = FailureSettings(**{**IMMEDIATE, **overrides})
    clock = SimulationClock(settings.ticks_per_second)
    notifier = RecordingNotifier(clock)
    log = FlightDataLog(clock, vessel.name)
    engine = FailureEngine(vessel, body, settings, clock, np.random.default_rng(seed),
                           notifier=notifier, flight_log=log, launch_time=0.0)
    return engine, clock, notifier, log


def step(engine, clock):
    clock.advance()
    return engine.tick()


def engine_vessel():
    engine_part = Part(1, "Engine", PartCategory.ENGINE, max_temperature=2000, temperature=300,
                       modules=[EngineModule(max_thrust=100)])
    return build_vessel([Part(0, "Pod"), engine_part], [(0, 1)]), engine_part


def strut_root_vessel():
    """A strut at the root holding three plain parts."""
    parts = [Part(0, "Strut", PartCategory.STRUT_OR_FUEL_LINE),
             Part(1, "A"), Part(2, "B"), Part(3, "C")]
    return build_vessel(parts, [(0, 1), (0, 2), (0, 3)]), parts


def decoupler_vessel():
    dec = Part(1, "Decoupler", PartCategory.RADIAL_DECOUPLER, breaking_force=40)
    return build_vessel([Part(0, "Pod"), dec], [(0, 1)]), dec


class TestGate(unittest.TestCase):

    def test_no_atmosphere_never_starts(self):
        vessel, _ = engine_vessel()
        engine, clock, _, _ = make_engine(vessel, body=MUN)
        self.assertFalse(step(engine, clock))
        self.assertFalse(step(engine, clock))
        self.assertEqual(engine.termination_reason, TerminationReason.NO_ATMOSPHERE)
        self.assertEqual(engine.failure_type, FailureType.NONE)

    def test_altitude_threshold_window(self):
        body = CelestialBody("Kerbin", True, 70000)
        settings = FailureSettings(max_failure_altitude_percentage=0.5)
        rng = np.random.default_rng(12)
        draws = [draw_altitude_threshold(body, settings, rng) for _ in range(2000)]
        self.assertGreaterEqual(min(draws), 0)
        self.assertLess(max(draws), 35000)

    def test_below_threshold_keeps_waiting(self):
        vessel, _ = engine_vessel()
        engine, clock, _, _ = make_engine(
            vessel, max_failure_altitude_percentage=0.5,
            min_time_before_failure=0, max_time_before_failure=180,
        )
        self.assertLess(engine.altitude_threshold, 35000)
        vessel.altitude = engine.altitude_threshold - 1
        for _ in range(500):
            self.assertTrue(step(engine, clock))
        self.assertEqual(engine.phase, Phase.WAITING_FOR_ALTITUDE)
        self.assertIsNone(engine.starting_part)

    def test_min_time_holds_gate(self):
        vessel, _ = engine_vessel()
        engine, clock, _, _ = make_engine(vessel, min_time_before_failure=1.0)
        vessel.altitude = 1e6
        for _ in range(49):
            step(engine, clock)
        self.assertEqual(engine.phase, Phase.WAITING_FOR_ALTITUDE)
        step(engine, clock)
        self.assertEqual(engine.phase, Phase.PRE_FAILURE_WARNING)

    def test_max_time_overrides_altitude(self):
        vessel, _ = engine_vessel()
        engine, clock, _, _ = make_engine(vessel, max_time_before_failure=1.0)
        vessel.altitude = -1.0
        for _ in range(49):
            step(engine, clock)
        self.assertEqual(engine.phase, Phase.WAITING_FOR_ALTITUDE)
        step(engine, clock)
        self.assertEqual(engine.phase, Phase.PRE_FAILURE_WARNING)

    def test_zero_candidates_stays_armed(self):
        vessel = build_vessel([Part(0, "Pod"), Part(1, "Tank", PartCategory.EXPLOSIVE_FUEL_TANK)],
                              [(0, 1)])
        engine, clock, _, _ = make_engine(vessel)
        for _ in range(20):
            self.assertTrue(step(engine, clock))
        self.assertEqual(engine.phase, Phase.ARMED_NO_TARGET)
        self.assertIsNone(engine.starting_part)
        self.assertIsNone(engine.doomed_parts)

    def test_occurs_bernoulli(self):
        rng = np.random.default_rng(3)
        always = FailureSettings(initial_failure_probability=1.0)
        never = FailureSettings(initial_failure_probability=0.0)
        self.assertTrue(all(failure_occurs(always, rng) for _ in range(100)))
        self.assertFalse(any(FailureEngine.occurs(never, rng) for _ in range(100)))


class TestWarningPhase(unittest.TestCase):

    def test_imminent_failure_warnings(self):
        vessel, part = engine_vessel()
        engine, clock, notifier, _ = make_engine(
            vessel, ticks_per_second=4, pre_failure_warning_time=3,
        )
        while engine.phase is not Phase.ACTIVE_DEGRADATION:
            self.assertTrue(step(engine, clock))
        warnings = [m for m in notifier.messages if m.text == "Imminent Failure on Engine"]
        self.assertEqual(len(warnings), 3)
        gaps = np.diff([m.time for m in warnings])
        self.assertTrue(np.all(gaps >= 1.0 - 1e-9))
        self.assertTrue(notifier.alarm_playing)
        self.assertIn(part.part_id, notifier.highlighted)

    def test_no_warning_when_time_is_zero(self):
        vessel, _ = engine_vessel()
        engine, clock, notifier, _ = make_engine(vessel)
        step(engine, clock)
        self.assertEqual(engine.phase, Phase.PRE_FAILURE_WARNING)
        self.assertEqual(notifier.messages, [])
        self.assertFalse(notifier.alarm_playing)

    def test_highlight_disabled(self):
        vessel, _ = engine_vessel()
        engine, clock, notifier, _ = make_engine(
            vessel, pre_failure_warning_time=3, highlight_failing_part=False,
        )
        for _ in range(20):
            step(engine, clock)
        self.assertEqual(notifier.highlight_count, 0)
        self.assertGreater(len(notifier.messages), 0)


class TestDegradationPhase(unittest.TestCase):

    def test_over_thrust_first_qualifying_tick(self):
        vessel, part = engine_vessel()
        engine, clock, _, _ = make_engine(vessel)
        step(engine, clock)
        step(engine, clock)
        self.assertEqual(engine.phase, Phase.ACTIVE_DEGRADATION)
        self.assertEqual(engine.degradation.thrust_overload, 3)
        self.assertEqual(vessel.applied_forces[part.part_id], 3.0)
        self.assertAlmostEqual(part.temperature, 400.0)
        self.assertEqual(engine.ticks_since_failure_start, 1)

    def test_overheat_destroys_and_terminates(self):
        vessel, part = engine_vessel()
        engine, clock, notifier, log = make_engine(vessel, failure_propagate_probability=0.0)
        results = []
        while not results or results[-1]:
            results.append(step(engine, clock))
            self.assertLess(len(results), 1000)
        # 1 selection tick, 161 degradation ticks (17 aligned steps of 100 K
        # with 10 ticks between them), 10 ticks until the empty schedule ends.
        self.assertEqual(len(results), 172)
        self.assertAlmostEqual(engine.failure_time, 162 / 50)
        self.assertEqual(engine.termination_reason, TerminationReason.SCHEDULE_EXHAUSTED)
        self.assertTrue(vessel.is_destroyed(part))
        self.assertIn("Random failure of Engine.", log.texts())
        self.assertEqual(engine.doomed, ())
        self.assertFalse(notifier.alarm_playing)
        self.assertNotIn(part.part_id, notifier.highlighted)

    def test_engine_module_mismatch_propagates(self):
        twin = Part(1, "Twin", PartCategory.ENGINE,
                    modules=[EngineModule(max_thrust=50), EngineModule(max_thrust=50)])
        vessel = build_vessel([Part(0, "Pod"), twin], [(0, 1)])
        engine, clock, _, _ = make_engine(vessel)
        clock.advance()
        with self.assertRaises(EngineModuleMismatch):
            engine.tick()

    def test_under_thrust_never_destroys(self):
        vessel, part = engine_vessel()
        engine, clock, notifier, _ = make_engine(vessel, over_thrust=False)
        for _ in range(1000):
            self.assertTrue(step(engine, clock))
        self.assertEqual(engine.phase, Phase.ACTIVE_DEGRADATION)
        self.assertTrue(40.0 <= part.modules[0].thrust_percentage <= 100.0)
        self.assertIn("Engine losing thrust", notifier.texts())


class TestDetachment(unittest.TestCase):

    def test_detached_during_warning(self):
        vessel, dec = decoupler_vessel()
        engine, clock, notifier, log = make_engine(vessel, pre_failure_warning_time=3)
        step(engine, clock)
        self.assertEqual(engine.phase, Phase.PRE_FAILURE_WARNING)
        vessel.decouple(dec, 1000)
        self.assertFalse(step(engine, clock))
        self.assertEqual(engine.termination_reason, TerminationReason.TARGET_DETACHED)
        self.assertFalse(notifier.alarm_playing)

    def test_detached_during_degradation(self):
        vessel, dec = decoupler_vessel()
        engine, clock, notifier, log = make_engine(vessel)
        step(engine, clock)
        step(engine, clock)
        self.assertEqual(engine.phase, Phase.ACTIVE_DEGRADATION)
        vessel.decouple(dec, 1000)
        self.assertFalse(step(engine, clock))
        self.assertIn("Failing Decoupler no longer attached to vessel", notifier.texts())
        self.assertIn("Failing Decoupler no longer attached to vessel.", log.texts())
        self.assertNotIn(dec.part_id, notifier.highlighted)
        self.assertFalse(step(engine, clock))


class TestExplosions(unittest.TestCase):

    def run_to_end(self, engine, clock):
        """Return the counter value at each explosion and at the final tick."""
        exploded_at = []
        while True:
            counter = engine.ticks_since_failure_start
            in_explosions = engine.phase is Phase.PROPAGATION_EXPLODING
            n_before = len(engine.exploded)
            if not step(engine, clock):
                return exploded_at, counter
            if in_explosions and len(engine.exploded) > n_before:
                exploded_at.append(counter)

    def test_three_parts_at_five_tick_cadence(self):
        vessel, parts = strut_root_vessel()
        engine, clock, _, log = make_engine(
            vessel, delay_between_part_failures=0.1, failure_propagate_probability=1.0,
        )
        exploded_at, final_counter = self.run_to_end(engine, clock)
        self.assertEqual(engine.doomed_parts, tuple(parts[1:]))
        self.assertEqual(exploded_at, [0, 5, 10])
        self.assertEqual(final_counter, 15)
        self.assertEqual(engine.exploded, parts[1:])
        self.assertIn("Random structural failure of Strut.", log.texts())
        self.assertEqual(
            [t for t in log.texts() if "disassembly" in t],
            [f"{p.title} disassembly due to an earlier failure." for p in parts[1:]],
        )

    def test_doomed_parts_visible_while_exploding(self):
        vessel, parts = strut_root_vessel()
        engine, clock, _, _ = make_engine(
            vessel, delay_between_part_failures=0.1, failure_propagate_probability=1.0,
        )
        while engine.phase is not Phase.PROPAGATION_EXPLODING:
            step(engine, clock)
        self.assertEqual(engine.doomed_parts, tuple(parts[1:]))
        self.assertIsNone(engine.starting_part)


class TestDeepVessels(unittest.TestCase):

    def test_long_chain_cascade_runs_to_completion(self):
        parts = [Part(0, "Strut", PartCategory.STRUT_OR_FUEL_LINE)]
        parts += [Part(i, f"Segment {i}") for i in range(1, 1600)]
        vessel = build_vessel(parts, [(i, i + 1) for i in range(1599)])
        engine, clock, _, _ = make_engine(
            vessel, delay_between_part_failures=0.02, failure_propagate_probability=1.0,
        )
        while engine.phase is not Phase.PROPAGATION_EXPLODING:
            self.assertTrue(step(engine, clock))
        self.assertEqual(engine.doomed_parts, tuple(parts[1:]))
        ticks = 0
        while step(engine, clock):
            ticks += 1
            self.assertLess(ticks, 5000)
        self.assertEqual(engine.termination_reason, TerminationReason.SCHEDULE_EXHAUSTED)
        self.assertEqual(engine.exploded, parts[1:])


class TestAutoAbort(unittest.TestCase):

    def setUp(self):
        self.vessel, self.parts = strut_root_vessel()

    def abort_records(self, log):
        return [t for t in log.texts() if t.startswith("Abort sequence")]

    def test_abort_after_delay(self):
        engine, clock, _, log = make_engine(
            self.vessel, delay_between_part_failures=0.1, failure_propagate_probability=1.0,
            auto_abort=True, auto_abort_delay=0.1,
        )
        while engine.phase is not Phase.PROPAGATION_EXPLODING:
            step(engine, clock)
        self.assertFalse(self.vessel.abort_triggered)
        while step(engine, clock):
            pass
        self.assertTrue(self.vessel.abort_triggered)
        self.assertEqual(len(self.abort_records(log)), 1)

    def test_zero_delay_aborts_on_destruction(self):
        engine, clock, _, log = make_engine(
            self.vessel, delay_between_part_failures=0.1, failure_propagate_probability=1.0,
            auto_abort=True, auto_abort_delay=0.0,
        )
        while engine.phase is not Phase.PROPAGATION_EXPLODING:
            step(engine, clock)
        self.assertTrue(self.vessel.abort_triggered)
        while step(engine, clock):
            pass
        self.assertEqual(len(self.abort_records(log)), 1)

    def test_session_ending_before_delay_logs_pending_abort(self):
        engine, clock, _, log = make_engine(
            self.vessel, delay_between_part_failures=0.1, failure_propagate_probability=1.0,
            auto_abort=True, auto_abort_delay=10.0,
        )
        with self.assertLogs("launch_failure.engine", level="WARNING") as captured:
            while step(engine, clock):
                pass
        self.assertEqual(engine.termination_reason, TerminationReason.SCHEDULE_EXHAUSTED)
        self.assertFalse(self.vessel.abort_triggered)
        self.assertEqual(self.abort_records(log), [])
        self.assertTrue(any("auto-abort delay" in line for line in captured.output))

    def test_disabled(self):
        engine, clock, _, log = make_engine(
            self.vessel, delay_between_part_failures=0.1, failure_propagate_probability=1.0,
        )
        while step(engine, clock):
            pass
        self.assertFalse(self.vessel.abort_triggered)
        self.assertEqual(self.abort_records(log), [])


if __name__ == "__main__":
    unittest.main()
