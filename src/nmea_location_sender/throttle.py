"""Rate limiting of position and heading sends."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

from .constants import BUSY_WINDOW_FACTOR, HEADING_THROTTLE_SEC


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class SchedulerLike(Protocol):
    def call_later(self, delay: float, function: Callable[[], Any]) -> Cancellable: ...


class UpdateThrottler:
    """Decides which position and heading updates are sent.

    Position sends compete between the periodic timer and pushed location
    updates. While a timer interval is set, an accepted position send opens a
    busy window of interval x 1.1 seconds during which further position sends
    are refused. The window closes on its own, whatever happened to the write.

    Heading sends are independent of the busy window: at most one per
    heading_interval, measured from the last accepted update. Refused updates
    are dropped, never queued.
    """

    def __init__(
        self,
        scheduler: SchedulerLike,
        clock: Callable[[], float] = time.monotonic,
        heading_interval: float = HEADING_THROTTLE_SEC,
    ) -> None:
        self._scheduler = scheduler
        self._clock = clock
        self.heading_interval: float = heading_interval
        self._lock: threading.Lock = threading.Lock()
        self._timer_interval: float | None = None
        self._busy: bool = False
        self._busy_generation: int = 0
        self._busy_clear: Cancellable | None = None
        self._last_heading: float | None = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    def set_timer_interval(self, interval: float | None) -> None:
        """Enable the busy window for a timer of the given interval, or disable it with None."""
        with self._lock:
            self._timer_interval = interval

    def try_acquire_position(self) -> bool:
        """Claim the right to send a position now.

        Returns:
            True when the caller may send; False while a busy window is open

        """
        with self._lock:
            if self._timer_interval is None:
                return True
            if self._busy:
                logging.debug("Position send suppressed, previous send still in its busy window")
                return False
            self._busy = True
            self._busy_generation += 1
            generation = self._busy_generation
            delay = self._timer_interval * BUSY_WINDOW_FACTOR
        self._busy_clear = self._scheduler.call_later(delay, lambda: self._clear_busy(generation))
        return True

    def _clear_busy(self, generation: int) -> None:
        with self._lock:
            # A clear from an older window must not end a newer one
            if generation == self._busy_generation:
                self._busy = False

    def accept_heading(self) -> bool:
        """Return True if a heading update arriving now may be sent."""
        now = self._clock()
        with self._lock:
            if self._last_heading is not None and now - self._last_heading < self.heading_interval:
                return False
            self._last_heading = now
            return True

    def reset(self) -> None:
        """Forget the busy window and heading history."""
        with self._lock:
            self._busy = False
            self._busy_generation += 1
            self._last_heading = None
            pending, self._busy_clear = self._busy_clear, None
        if pending is not None:
            pending.cancel()
