"""Custom threading classes: periodic ticks and delayed one-shot tasks."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from .constants import (
    MAX_LOOP_EXECUTION_SHARE,
    MIN_SLEEP_TIME_SEC,
    TIMING_PRECISION_TOLERANCE,
)


def remaining_interval(target_interval: float, timer_start: float, thread_name: str = "") -> float:
    """Return the time left in a target interval with timing validation.

    Calculates the remaining wait time and ensures it's never negative. Logs warnings
    if loop execution time exceeds expected thresholds.

    Args:
        target_interval: Target loop interval in seconds
        timer_start: Start time from time.perf_counter()
        thread_name: Optional thread name for logging purposes

    Returns:
        Seconds to wait before the next iteration

    """
    elapsed_time: float = time.perf_counter() - timer_start
    remaining_time: float = target_interval - elapsed_time

    if elapsed_time > target_interval:
        logging.error(
            f"Critical timing issue: Loop execution ({elapsed_time:.3f}s) "
            f"exceeds target interval ({target_interval}s) in {thread_name or 'thread'}"
        )
    elif elapsed_time > target_interval * MAX_LOOP_EXECUTION_SHARE:
        logging.warning(
            f"Loop execution time ({elapsed_time:.3f}s) approaching target interval "
            f"({target_interval}s) in {thread_name or 'thread'}"
        )

    # Ensure wait time is never negative and has minimum precision
    wait_time: float = max(remaining_time, MIN_SLEEP_TIME_SEC)

    # Add small tolerance to prevent busy waiting
    if wait_time < TIMING_PRECISION_TOLERANCE:
        wait_time = TIMING_PRECISION_TOLERANCE

    return wait_time


class NmeaTimerThread(threading.Thread):
    """A thread calling a function at a fixed interval until cancelled.

    The first call happens one interval after start(). Exceptions raised by the
    callback are logged and do not stop the timer.
    """

    def __init__(self, interval: float, function: Callable[[], Any], *args: Any, **kwargs: Any) -> None:
        """Initialize periodic timer thread.

        Args:
            interval: Seconds between two calls
            function: Callable invoked on every tick
            *args: Additional positional arguments passed to Thread.__init__
            **kwargs: Additional keyword arguments passed to Thread.__init__

        """
        kwargs.setdefault("daemon", True)
        super().__init__(*args, **kwargs)
        self.interval: float = interval
        self.function: Callable[[], Any] = function
        self._finished: threading.Event = threading.Event()

    def cancel(self) -> None:
        """Stop the timer; a tick already running is allowed to finish."""
        self._finished.set()

    @property
    def cancelled(self) -> bool:
        return self._finished.is_set()

    def run(self) -> None:
        timer_start: float = time.perf_counter()
        while not self._finished.wait(remaining_interval(self.interval, timer_start, self.name)):
            timer_start = time.perf_counter()
            try:
                self.function()
            except Exception:
                logging.exception(f"Periodic task failed in {self.name}")


class Scheduler:
    """Runs one-shot tasks after a delay on daemon timer threads.

    call_later() returns the started threading.Timer; cancel() on it drops the
    task if it has not fired yet.
    """

    def call_later(self, delay: float, function: Callable[[], Any]) -> threading.Timer:
        timer = threading.Timer(delay, function)
        timer.daemon = True
        timer.start()
        return timer
