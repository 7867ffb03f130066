"""Sample sources feeding position and heading updates to a session."""

from __future__ import annotations

import abc
import datetime
import logging
import threading
import uuid
from typing import Protocol

from pyproj import Geod

from .constants import (
    DEFAULT_ALTITUDE_AMSL,
    DEFAULT_MAGNETIC_VARIATION,
    DEGREES_HALF_CIRCLE,
    HEADING_INCREMENT_DEG,
    KNOTS_TO_MS_CONVERSION,
    MAX_HEADING_DEG,
    SIMULATOR_HEADING_INTERVAL_SEC,
    SIMULATOR_POSITION_INTERVAL_SEC,
    SPEED_INCREMENT_KNOTS,
)
from .custom_thread import NmeaTimerThread
from .models import HeadingSample, PositionSample


class SampleListener(Protocol):
    """Receiver of samples; called from the source's own threads."""

    def on_position(self, sample: PositionSample) -> None: ...

    def on_heading(self, sample: HeadingSample) -> None: ...


class SampleSource(abc.ABC):
    """Something that delivers location and heading samples while started."""

    @abc.abstractmethod
    def start(self, listener: SampleListener) -> None:
        """Begin delivering samples to listener."""

    @abc.abstractmethod
    def stop(self) -> None:
        """Stop delivering samples. Safe to call when not started."""

    @property
    @abc.abstractmethod
    def last_position(self) -> PositionSample | None:
        """Most recent position sample, None before the first fix."""

    @property
    @abc.abstractmethod
    def last_heading(self) -> HeadingSample | None:
        """Most recent heading sample, None when no compass reading exists."""


class SimulatedSampleSource(SampleSource):
    """A unit moving over the WGS84 ellipsoid at a given course and speed.

    Position samples are produced once per position_interval by dead reckoning
    from the previous fix, heading samples once per heading_interval. Course
    and speed changes requested while running are applied gradually, a few
    degrees or knots per position step.
    """

    def __init__(
        self,
        latitude: float,
        longitude: float,
        heading: float,
        speed: float,
        altitude: float = DEFAULT_ALTITUDE_AMSL,
        magnetic_variation: float = DEFAULT_MAGNETIC_VARIATION,
        position_interval: float = SIMULATOR_POSITION_INTERVAL_SEC,
        heading_interval: float = SIMULATOR_HEADING_INTERVAL_SEC,
    ) -> None:
        """Initialize the simulated unit.

        Args:
            latitude: Start latitude in signed degrees
            longitude: Start longitude in signed degrees
            heading: Initial course in degrees true (0-359)
            speed: Initial speed in knots
            altitude: Altitude above sea level in meters
            magnetic_variation: Easterly variation in degrees, magnetic = true - variation
            position_interval: Seconds between two position samples
            heading_interval: Seconds between two heading samples

        """
        self.latitude: float = latitude
        self.longitude: float = longitude
        self.heading: float = heading
        self.heading_targeted: float = heading
        self.speed: float = speed
        self.speed_targeted: float = speed
        self.altitude: float = altitude
        self.magnetic_variation: float = magnetic_variation
        self.position_interval: float = position_interval
        self.heading_interval: float = heading_interval
        self.utc_date_time: datetime.datetime = datetime.datetime.now(datetime.UTC)
        self._geod: Geod = Geod(ellps="WGS84")
        self._lock: threading.RLock = threading.RLock()
        self._listener: SampleListener | None = None
        self._threads: list[NmeaTimerThread] = []
        self._last_position: PositionSample | None = None
        self._last_heading: HeadingSample | None = None

    @property
    def last_position(self) -> PositionSample | None:
        with self._lock:
            return self._last_position

    @property
    def last_heading(self) -> HeadingSample | None:
        with self._lock:
            return self._last_heading

    def set_heading(self, heading: float) -> None:
        """Set the course the unit turns toward."""
        with self._lock:
            self.heading_targeted = heading

    def set_speed(self, speed: float) -> None:
        """Set the speed in knots the unit accelerates toward."""
        with self._lock:
            self.speed_targeted = speed

    def start(self, listener: SampleListener) -> None:
        with self._lock:
            if self._threads:
                logging.warning("Simulated source already running")
                return
            self._listener = listener
            self.utc_date_time = datetime.datetime.now(datetime.UTC)
            self._threads = [
                NmeaTimerThread(self.position_interval, self._emit_position, name=f"nmea_sim{uuid.uuid4().hex}"),
                NmeaTimerThread(self.heading_interval, self._emit_heading, name=f"nmea_sim{uuid.uuid4().hex}"),
            ]
            for thread in self._threads:
                thread.start()
        logging.info(f"Simulated unit started at {self.latitude:.6f}, {self.longitude:.6f}")

    def stop(self) -> None:
        with self._lock:
            threads, self._threads = self._threads, []
            self._listener = None
        for thread in threads:
            thread.cancel()

    def step(self, utc_date_time: datetime.datetime | None = None) -> PositionSample:
        """Advance the unit to utc_date_time (now by default) and return the new fix."""
        with self._lock:
            utc_date_time_prev = self.utc_date_time
            self.utc_date_time = utc_date_time or datetime.datetime.now(datetime.UTC)
            if self.speed > 0:
                self.position_update(utc_date_time_prev)
            if self.heading != self.heading_targeted:
                self._heading_update()
            if self.speed != self.speed_targeted:
                self._speed_update()
            self._last_position = PositionSample(
                timestamp=self.utc_date_time,
                latitude=self.latitude,
                longitude=self.longitude,
                speed=self.speed * KNOTS_TO_MS_CONVERSION,
                course=self.heading,
                altitude=self.altitude,
            )
            return self._last_position

    def read_heading(self, utc_date_time: datetime.datetime | None = None) -> HeadingSample:
        """Return a compass reading for the current course."""
        with self._lock:
            self._last_heading = HeadingSample(
                timestamp=utc_date_time or datetime.datetime.now(datetime.UTC),
                magnetic_heading=(self.heading - self.magnetic_variation) % MAX_HEADING_DEG,
                true_heading=self.heading,
            )
            return self._last_heading

    def position_update(self, utc_date_time_prev: datetime.datetime) -> None:
        """Move the unit along its course for the time elapsed since the previous fix.

        Uses the forward geodesic on the WGS84 ellipsoid; the result wraps
        naturally across the equator and the antimeridian.
        """
        # The time that has elapsed since the last fix
        time_delta = (self.utc_date_time - utc_date_time_prev).total_seconds()
        # Distance in meters.
        distance = self.speed * KNOTS_TO_MS_CONVERSION * time_delta
        # Forward transformation - returns longitude, latitude, back azimuth of terminus points
        lon_end, lat_end, _ = self._geod.fwd(self.longitude, self.latitude, self.heading, distance)
        self.latitude = lat_end
        self.longitude = lon_end

    def _heading_update(self) -> None:
        turn_angle = self.heading_targeted - self.heading
        # Immediate change of course when the increment <= turn_angle
        if abs(turn_angle) <= HEADING_INCREMENT_DEG:
            head_current = self.heading_targeted
        # Turn the short way round
        elif (turn_angle > 0) != (abs(turn_angle) > DEGREES_HALF_CIRCLE):
            head_current = self.heading + HEADING_INCREMENT_DEG
        else:
            head_current = self.heading - HEADING_INCREMENT_DEG
        # Heading range: 0-359
        self.heading = round(head_current % MAX_HEADING_DEG, 1)

    def _speed_update(self) -> None:
        speed_diff = self.speed_targeted - self.speed
        # Immediate change of speed when the increment <= speed_diff
        if abs(speed_diff) <= SPEED_INCREMENT_KNOTS:
            speed_current = self.speed_targeted
        elif speed_diff > 0:
            speed_current = self.speed + SPEED_INCREMENT_KNOTS
        else:
            speed_current = self.speed - SPEED_INCREMENT_KNOTS
        self.speed = round(speed_current, 3)

    def _emit_position(self) -> None:
        sample = self.step()
        listener = self._listener
        if listener is not None:
            listener.on_position(sample)

    def _emit_heading(self) -> None:
        sample = self.read_heading()
        listener = self._listener
        if listener is not None:
            listener.on_heading(sample)
