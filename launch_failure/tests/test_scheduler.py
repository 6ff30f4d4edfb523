"""Unit tests for the timed explosion of doomed parts."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from launch_failure.clock import SimulationClock
from launch_failure.notifications import FlightDataLog
from launch_failure.parts import Part
from launch_failure.scheduler import ExplosionScheduler, ScheduleExhausted
from launch_failure.vessel import build_vessel


def three_doomed():
    parts = [Part(0, "Pod"), Part(1, "A"), Part(2, "B"), Part(3, "C")]
    vessel = build_vessel(parts, [(0, 1), (1, 2), (2, 3)])
    return vessel, parts, ExplosionScheduler(tuple(parts[1:]), 5)


class TestPartForTick(unittest.TestCase):

    def test_aligned_ticks_map_to_indices(self):
        _, parts, sched = three_doomed()
        self.assertIs(sched.part_for_tick(0), parts[1])
        self.assertIs(sched.part_for_tick(5), parts[2])
        self.assertIs(sched.part_for_tick(10), parts[3])

    def test_exhausted_at_fourth_slot(self):
        _, _, sched = three_doomed()
        with self.assertRaises(ScheduleExhausted):
            sched.part_for_tick(15)

    def test_exhausted_is_index_error(self):
        self.assertTrue(issubclass(ScheduleExhausted, IndexError))

    def test_non_aligned_and_negative_ticks(self):
        _, _, sched = three_doomed()
        for t in (-5, -1, 1, 4, 6, 14):
            self.assertIsNone(sched.part_for_tick(t))

    def test_empty_list_exhausts_immediately(self):
        sched = ExplosionScheduler((), 3)
        with self.assertRaises(ScheduleExhausted):
            sched.part_for_tick(0)

    def test_invalid_interval_raises(self):
        with self.assertRaises(ValueError):
            ExplosionScheduler((), 0)


class TestExplodeNext(unittest.TestCase):

    def setUp(self):
        self.vessel, self.parts, self.sched = three_doomed()
        self.log = FlightDataLog(SimulationClock(50), "Test")

    def test_explodes_and_logs(self):
        exploded = self.sched.explode_next(0, self.vessel, self.vessel, self.log)
        self.assertIs(exploded, self.parts[1])
        self.assertTrue(self.vessel.is_destroyed(self.parts[1]))
        self.assertEqual(self.log.texts(), ["A disassembly due to an earlier failure."])

    def test_full_cadence(self):
        exploded = []
        with self.assertRaises(ScheduleExhausted):
            for t in range(100):
                part = self.sched.explode_next(t, self.vessel, self.vessel, self.log)
                if part is not None:
                    exploded.append((t, part.title))
        self.assertEqual(exploded, [(0, "A"), (5, "B"), (10, "C")])

    def test_already_destroyed_part_keeps_its_slot(self):
        self.vessel.explode(self.parts[2])
        self.assertIsNone(self.sched.explode_next(5, self.vessel, self.vessel, self.log))
        self.assertEqual(self.log.texts(), [])
        self.assertIs(self.sched.explode_next(10, self.vessel, self.vessel, self.log),
                      self.parts[3])


if __name__ == "__main__":
    unittest.main()
