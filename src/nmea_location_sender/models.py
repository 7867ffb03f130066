"""Samples, endpoints and state enumerations shared by the sender components."""

from __future__ import annotations

import dataclasses
import datetime
import enum

from .constants import UNKNOWN_VALUE


class HeadingMode(enum.Enum):
    """Which compass heading is sent and which NMEA sentence carries it."""

    MAGNETIC = "magnetic"
    TRUE = "true"


class ChannelState(enum.Enum):
    """Lifecycle states of a datagram channel."""

    IDLE = "idle"
    CONNECTING = "connecting"
    READY = "ready"
    WAITING = "waiting"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ConnectionStatus(enum.Enum):
    """Connection status as shown to the user."""

    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting..."
    CONNECTED = "Connected"
    FAILED = "Failed"


@dataclasses.dataclass(frozen=True)
class Endpoint:
    """Destination of the outbound datagram stream."""

    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclasses.dataclass(frozen=True)
class PositionSample:
    """A single location fix.

    Attributes:
        timestamp: UTC instant of the fix
        latitude: Signed latitude in degrees (-90..90)
        longitude: Signed longitude in degrees (-180..180)
        speed: Speed over ground in m/s, None when unknown
        course: Course over ground in degrees true, None when unknown
        altitude: Altitude in meters

    """

    timestamp: datetime.datetime
    latitude: float
    longitude: float
    speed: float | None = None
    course: float | None = None
    altitude: float = 0.0

    def resolved(self) -> PositionSample:
        """Return a copy with unknown values replaced by UNKNOWN_VALUE."""
        return dataclasses.replace(
            self,
            speed=UNKNOWN_VALUE if self.speed is None else self.speed,
            course=UNKNOWN_VALUE if self.course is None else self.course,
        )


@dataclasses.dataclass(frozen=True)
class HeadingSample:
    """A single compass reading, both headings in degrees."""

    timestamp: datetime.datetime
    magnetic_heading: float | None = None
    true_heading: float | None = None

    def resolved(self) -> HeadingSample:
        """Return a copy with unknown headings replaced by UNKNOWN_VALUE."""
        return dataclasses.replace(
            self,
            magnetic_heading=UNKNOWN_VALUE if self.magnetic_heading is None else self.magnetic_heading,
            true_heading=UNKNOWN_VALUE if self.true_heading is None else self.true_heading,
        )
