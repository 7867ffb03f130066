"""Tests for the simulated sample source and the periodic timer thread."""

import datetime
import threading
import unittest

from helpers import T0

from nmea_location_sender.custom_thread import NmeaTimerThread, Scheduler
from nmea_location_sender.sources import SimulatedSampleSource


class Collector:
    def __init__(self) -> None:
        self.positions = []
        self.headings = []
        self.got_both = threading.Event()

    def on_position(self, sample) -> None:
        self.positions.append(sample)
        self._check()

    def on_heading(self, sample) -> None:
        self.headings.append(sample)
        self._check()

    def _check(self) -> None:
        if self.positions and self.headings:
            self.got_both.set()


class TestSimulatedSampleSource(unittest.TestCase):
    """Dead reckoning and gradual course/speed changes."""

    def setUp(self) -> None:
        self.source = SimulatedSampleSource(latitude=54.5, longitude=19.333333, heading=0.0, speed=10.0)
        self.source.utc_date_time = T0

    def test_no_fix_before_first_step(self) -> None:
        """Test no samples exist before the first step."""
        self.assertIsNone(self.source.last_position)
        self.assertIsNone(self.source.last_heading)

    def test_moves_north(self) -> None:
        """Test a unit heading north gains latitude."""
        sample = self.source.step(T0 + datetime.timedelta(seconds=60))
        # 10 knots for one minute is 1/6 nautical mile, about 0.0028 degrees of latitude
        self.assertGreater(sample.latitude, 54.5)
        self.assertAlmostEqual(sample.latitude - 54.5, 10 / 60 / 60, places=4)
        self.assertAlmostEqual(sample.longitude, 19.333333, places=5)
        self.assertAlmostEqual(sample.speed, 5.14444, places=4)
        self.assertEqual(sample.course, 0.0)
        self.assertEqual(sample.timestamp, T0 + datetime.timedelta(seconds=60))
        self.assertIs(self.source.last_position, sample)

    def test_stationary_unit(self) -> None:
        """Test a unit at zero speed stays in place."""
        self.source.speed = self.source.speed_targeted = 0
        sample = self.source.step(T0 + datetime.timedelta(seconds=60))
        self.assertEqual((sample.latitude, sample.longitude), (54.5, 19.333333))

    def test_heading_changes_gradually(self) -> None:
        """Test heading moves toward the target in steps."""
        self.source.set_heading(10.0)
        headings = []
        for second in range(1, 6):
            headings.append(self.source.step(T0 + datetime.timedelta(seconds=second)).course)
        self.assertEqual(headings, [3.0, 6.0, 9.0, 10.0, 10.0])

    def test_heading_turns_short_way(self) -> None:
        """Test heading turns the short way across north."""
        self.source.set_heading(350.0)
        self.assertEqual(self.source.step(T0 + datetime.timedelta(seconds=1)).course, 357.0)

    def test_speed_changes_gradually(self) -> None:
        """Test speed moves toward the target in steps."""
        self.source.set_speed(4.0)
        self.source.step(T0 + datetime.timedelta(seconds=1))
        self.assertEqual(self.source.speed, 7.0)
        self.source.step(T0 + datetime.timedelta(seconds=2))
        self.assertEqual(self.source.speed, 4.0)

    def test_heading_sample(self) -> None:
        """Test heading samples apply the magnetic variation."""
        self.source.magnetic_variation = 5.0
        sample = self.source.read_heading(T0)
        self.assertEqual(sample.true_heading, 0.0)
        self.assertEqual(sample.magnetic_heading, 355.0)
        self.assertIs(self.source.last_heading, sample)

    def test_start_delivers_samples(self) -> None:
        """Test a started source pushes samples to its listener."""
        source = SimulatedSampleSource(
            latitude=0.0,
            longitude=0.0,
            heading=90.0,
            speed=5.0,
            position_interval=0.05,
            heading_interval=0.02,
        )
        collector = Collector()
        source.start(collector)
        try:
            self.assertTrue(collector.got_both.wait(5.0))
        finally:
            source.stop()
        self.assertGreater(collector.positions[0].longitude, 0.0)


class TestTimers(unittest.TestCase):
    def test_timer_thread_ticks_until_cancelled(self) -> None:
        """Test the timer thread ticks until cancelled."""
        ticks = threading.Semaphore(0)
        timer = NmeaTimerThread(0.01, ticks.release, name="nmea_timer_test")
        timer.start()
        try:
            for _ in range(3):
                self.assertTrue(ticks.acquire(timeout=5.0))
        finally:
            timer.cancel()
        timer.join(5.0)
        self.assertFalse(timer.is_alive())
        self.assertTrue(timer.cancelled)

    def test_timer_survives_failing_callback(self) -> None:
        """Test the timer thread keeps running after a callback error."""
        calls = threading.Semaphore(0)

        def failing() -> None:
            calls.release()
            raise RuntimeError("boom")

        timer = NmeaTimerThread(0.01, failing)
        timer.start()
        try:
            with self.assertLogs(level="ERROR"):
                for _ in range(2):
                    self.assertTrue(calls.acquire(timeout=5.0))
        finally:
            timer.cancel()
            timer.join(5.0)

    def test_scheduler_call_later(self) -> None:
        """Test a delayed task runs once."""
        fired = threading.Event()
        Scheduler().call_later(0.01, fired.set)
        self.assertTrue(fired.wait(5.0))

    def test_scheduler_cancel(self) -> None:
        """Test a cancelled task never runs."""
        fired = threading.Event()
        handle = Scheduler().call_later(0.2, fired.set)
        handle.cancel()
        self.assertFalse(fired.wait(0.4))


if __name__ == "__main__":
    unittest.main()
