"""Session configuration supplied by the console (or any other front end)."""

import dataclasses

from .constants import (
    DEFAULT_NMEA_PORT,
    DEFAULT_REMOTE_IP,
    DEFAULT_TIMER_INTERVAL_SEC,
    TIMER_INTERVALS_SEC,
)
from .models import Endpoint, HeadingMode


@dataclasses.dataclass(frozen=True)
class SessionConfig:
    """Settings read by the session controller at start and at send time.

    Attributes:
        endpoint: Destination of the UDP stream
        heading_mode: Send GPHDT (true) or GPHDM (magnetic)
        heading_enabled: Send heading sentences at all
        timer_enabled: Also send the last known position on a fixed interval
        timer_interval: Seconds between timer sends, one of 1, 3, 5, 10
        show_error_history: Display the error list in the console status
        swap_heading_fields: Put the magnetic reading in GPHDT and the true
            reading in GPHDM (crossed fields, off by default)

    """

    endpoint: Endpoint = Endpoint(DEFAULT_REMOTE_IP, DEFAULT_NMEA_PORT)
    heading_mode: HeadingMode = HeadingMode.TRUE
    heading_enabled: bool = True
    timer_enabled: bool = False
    timer_interval: int = DEFAULT_TIMER_INTERVAL_SEC
    show_error_history: bool = False
    swap_heading_fields: bool = False

    def validate(self) -> None:
        """Raise ValueError for a timer interval the sender does not support."""
        if self.timer_interval not in TIMER_INTERVALS_SEC:
            allowed = ", ".join(str(interval) for interval in TIMER_INTERVALS_SEC)
            raise ValueError(f"Timer interval must be one of {allowed} seconds, got {self.timer_interval}")
