"""
Tests for the Pass Predictor

Tests fixed-step pass search:
- Pass boundaries quantised to the scan step
- Truncation at the horizon end and passes already in progress
- Skipped invalid steps and unavailable objects
- Wall-clock budget and partial schedules
- A real ISS schedule over Accra, cross-checked step by step
- Pass formatting

Run with:
    python -m pytest tests/test_passes.py -v
"""

import time
import unittest
from datetime import datetime, timedelta, timezone

from orbit_visibility.passes import (
    format_duration,
    format_elevation,
    minimum_detectable_duration,
    predict,
    summarize_next_pass,
)
from orbit_visibility.visibility import evaluate, observe
from tests.support import ACCRA, ElevationProfilePropagator, iss, stub_object

T0 = datetime(2024, 5, 1, 0, 0, tzinfo=timezone.utc)


def seconds_since_start(instant):
    return (instant - T0).total_seconds()


def single_pass_profile(instant):
    """Above threshold on [600, 1200) s with a 40 degree peak at 900 s."""
    s = seconds_since_start(instant)
    if 600 <= s < 1200:
        return 40.0 - abs(s - 900) / 30.0
    return -5.0


class TestPassBoundaries(unittest.TestCase):
    """Pass start/end/peak from a known elevation profile."""

    def setUp(self):
        self.tracked = stub_object("PROFILE")

    def _predict(self, profile, **kwargs):
        kwargs.setdefault("horizon_hours", 1)
        kwargs.setdefault("step_seconds", 60)
        return predict(
            self.tracked, ACCRA, T0, propagator=ElevationProfilePropagator(ACCRA, profile), **kwargs
        )

    def test_single_pass(self):
        schedule = self._predict(single_pass_profile)

        self.assertEqual(len(schedule.passes), 1)
        p = schedule.passes[0]
        self.assertEqual(p.start, T0 + timedelta(seconds=600))
        self.assertEqual(p.end, T0 + timedelta(seconds=1200))
        self.assertEqual(p.duration, timedelta(minutes=10))
        self.assertEqual(p.peak_time, T0 + timedelta(seconds=900))
        self.assertAlmostEqual(p.max_elevation_deg, 40.0, places=6)
        self.assertFalse(p.truncated)
        self.assertFalse(p.in_progress_at_start)

    def test_schedule_metadata(self):
        schedule = self._predict(single_pass_profile)
        self.assertEqual(schedule.name, "PROFILE")
        self.assertEqual(schedule.horizon_start, T0)
        self.assertEqual(schedule.horizon_end, T0 + timedelta(hours=1))
        self.assertEqual(schedule.step_seconds, 60)
        self.assertFalse(schedule.partial)
        self.assertIs(schedule.next_pass, schedule.passes[0])

    def test_two_passes_in_order(self):
        def profile(instant):
            s = seconds_since_start(instant)
            return 25.0 if (300 <= s < 600 or 1800 <= s < 2400) else 0.0

        schedule = self._predict(profile)

        self.assertEqual(
            [(p.start, p.end) for p in schedule.passes],
            [
                (T0 + timedelta(seconds=300), T0 + timedelta(seconds=600)),
                (T0 + timedelta(seconds=1800), T0 + timedelta(seconds=2400)),
            ],
        )

    def test_pass_still_open_at_horizon_end_is_truncated(self):
        schedule = self._predict(lambda t: 30.0 if seconds_since_start(t) >= 3000 else 0.0)

        p = schedule.passes[-1]
        self.assertEqual(p.start, T0 + timedelta(seconds=3000))
        self.assertEqual(p.end, T0 + timedelta(hours=1))
        self.assertTrue(p.truncated)

    def test_pass_in_progress_at_start(self):
        schedule = self._predict(lambda t: 30.0 if seconds_since_start(t) < 300 else 0.0)

        p = schedule.passes[0]
        self.assertEqual(p.start, T0)
        self.assertEqual(p.end, T0 + timedelta(seconds=300))
        self.assertTrue(p.in_progress_at_start)
        self.assertFalse(p.truncated)

    def test_below_threshold_is_never_a_pass(self):
        schedule = self._predict(lambda t: 10.0, min_elevation_deg=10.5)
        self.assertTrue(schedule.is_empty)

    def test_no_passes(self):
        schedule = self._predict(lambda t: -5.0)
        self.assertIsNotNone(schedule)
        self.assertEqual(schedule.passes, ())
        self.assertIsNone(schedule.next_pass)

    def test_invalid_steps_are_skipped(self):
        def profile(instant):
            s = seconds_since_start(instant)
            if s in (540, 660, 720):
                return None
            return single_pass_profile(instant)

        p = self._predict(profile).passes[0]
        self.assertEqual(p.start, T0 + timedelta(seconds=600))
        self.assertEqual(p.end, T0 + timedelta(seconds=1200))

    def test_invalid_step_does_not_close_a_pass(self):
        def profile(instant):
            s = seconds_since_start(instant)
            if 600 <= s < 1200:
                return None if s == 900 else 30.0
            return 0.0

        schedule = self._predict(profile)
        self.assertEqual(len(schedule.passes), 1)

    def test_unavailable_at_start_gives_none(self):
        def profile(instant):
            return None if instant == T0 else 30.0

        self.assertIsNone(self._predict(profile))

    def test_short_pass_between_samples_is_missed(self):
        def profile(instant):
            s = seconds_since_start(instant)
            return 30.0 if 610 <= s < 650 else 0.0

        self.assertTrue(self._predict(profile).is_empty)
        self.assertEqual(len(self._predict(profile, step_seconds=10).passes), 1)

    def test_non_positive_step_rejected(self):
        with self.assertRaises(ValueError):
            self._predict(single_pass_profile, step_seconds=0)
        with self.assertRaises(ValueError):
            self._predict(single_pass_profile, horizon_hours=-1)

    def test_naive_start_is_utc(self):
        schedule = predict(
            self.tracked,
            ACCRA,
            T0.replace(tzinfo=None),
            horizon_hours=1,
            step_seconds=60,
            propagator=ElevationProfilePropagator(ACCRA, single_pass_profile),
        )
        self.assertEqual(schedule.passes[0].start, T0 + timedelta(seconds=600))

    def test_each_step_propagated_once(self):
        propagator = ElevationProfilePropagator(ACCRA, single_pass_profile)
        predict(self.tracked, ACCRA, T0, horizon_hours=1, step_seconds=60, propagator=propagator)
        self.assertEqual(propagator.calls, 60)

    def test_minimum_detectable_duration(self):
        self.assertEqual(minimum_detectable_duration(60), timedelta(seconds=60))


class TestBudget(unittest.TestCase):
    """Wall-clock budget on a long scan."""

    def test_budget_exceeded_gives_partial_schedule(self):
        def slow_profile(instant):
            time.sleep(0.005)
            return 30.0

        schedule = predict(
            stub_object("SLOW"),
            ACCRA,
            T0,
            horizon_hours=24,
            step_seconds=60,
            propagator=ElevationProfilePropagator(ACCRA, slow_profile),
            budget_seconds=0.05,
        )

        self.assertTrue(schedule.partial)
        self.assertEqual(len(schedule.passes), 1)
        p = schedule.passes[0]
        self.assertTrue(p.truncated)
        self.assertTrue(p.in_progress_at_start)
        self.assertLess(p.end, schedule.horizon_end)

    def test_generous_budget_completes(self):
        schedule = predict(
            stub_object("FAST"),
            ACCRA,
            T0,
            horizon_hours=1,
            step_seconds=60,
            propagator=ElevationProfilePropagator(ACCRA, single_pass_profile),
            budget_seconds=60.0,
        )
        self.assertFalse(schedule.partial)
        self.assertEqual(len(schedule.passes), 1)


class TestISSPasses(unittest.TestCase):
    """ISS passes over Accra on 2023-09-16 with the SGP4 propagator."""

    @classmethod
    def setUpClass(cls):
        cls.iss = iss()
        cls.start = datetime(2023, 9, 16, 12, 0, tzinfo=timezone.utc)
        cls.schedule = predict(cls.iss, ACCRA, cls.start, horizon_hours=24, step_seconds=60, min_elevation_deg=10)

    def test_schedule_has_passes(self):
        self.assertIsNotNone(self.schedule)
        self.assertGreater(len(self.schedule.passes), 0)

    def test_pass_shape(self):
        for p in self.schedule.passes:
            self.assertGreater(p.max_elevation_deg, 10.0)
            self.assertLessEqual(p.max_elevation_deg, 90.0)
            self.assertLessEqual(p.start, p.peak_time)
            self.assertLess(p.peak_time, p.end)
            if not (p.truncated or p.in_progress_at_start):
                self.assertGreaterEqual(p.duration.total_seconds(), 60)
                self.assertLessEqual(p.duration.total_seconds(), 900)

    def test_passes_ordered_and_disjoint(self):
        passes = self.schedule.passes
        for earlier, later in zip(passes, passes[1:]):
            self.assertLess(earlier.start, later.start)
            self.assertLessEqual(earlier.end, later.start)

    def test_passes_within_horizon(self):
        for p in self.schedule.passes:
            self.assertGreaterEqual(p.start, self.schedule.horizon_start)
            self.assertLessEqual(p.end, self.schedule.horizon_end)

    def test_schedule_reconstructed_from_visibility_reports(self):
        """Every step inside a pass is visible to evaluate(); the steps bounding it are not."""
        step = timedelta(seconds=60)

        def visible(t):
            return self.iss.name in evaluate([self.iss], ACCRA, t, min_elevation_deg=10).names()

        for p in self.schedule.passes:
            t = p.start
            while t < p.end:
                self.assertTrue(visible(t))
                t += step
            if not p.truncated:
                self.assertFalse(visible(p.end))
            if p.start - step >= self.schedule.horizon_start:
                self.assertFalse(visible(p.start - step))

    def test_peak_matches_observation(self):
        for p in self.schedule.passes:
            elevation = observe(self.iss, ACCRA, p.peak_time).elevation_deg
            self.assertAlmostEqual(elevation, p.max_elevation_deg, places=9)

    def test_coarser_step_never_finds_more_passes(self):
        coarse = predict(self.iss, ACCRA, self.start, horizon_hours=24, step_seconds=300)
        self.assertLessEqual(len(coarse.passes), len(self.schedule.passes))


class TestFormatting(unittest.TestCase):

    def test_format_duration(self):
        self.assertEqual(format_duration(None), "—")
        self.assertEqual(format_duration(0), "—")
        self.assertEqual(format_duration(42), "42s")
        self.assertEqual(format_duration(307), "5m 07s")
        self.assertEqual(format_duration(600), "10m 00s")
        self.assertEqual(format_duration(59.6), "1m 00s")

    def test_format_elevation(self):
        self.assertEqual(format_elevation(45.23), "45.2°")

    def test_summarize_next_pass(self):
        schedule = predict(
            stub_object("PROFILE"),
            ACCRA,
            T0,
            horizon_hours=1,
            step_seconds=60,
            propagator=ElevationProfilePropagator(ACCRA, single_pass_profile),
        )
        summary = summarize_next_pass(schedule)
        self.assertEqual(summary["next_pass"], (T0 + timedelta(seconds=600)).isoformat())
        self.assertEqual(summary["max_elevation"], "40.0°")
        self.assertEqual(summary["duration"], "10m 00s")

    def test_summarize_nothing(self):
        self.assertIsNone(summarize_next_pass(None))
        empty = predict(
            stub_object("NEVER"),
            ACCRA,
            T0,
            horizon_hours=1,
            propagator=ElevationProfilePropagator(ACCRA, lambda t: -5.0),
        )
        self.assertIsNone(summarize_next_pass(empty))


if __name__ == "__main__":
    unittest.main()
