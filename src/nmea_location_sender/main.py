#!/usr/bin/env python3

"""Main module for NMEA Location Sender application."""

import logging
import time

from .config import SessionConfig
from .constants import (
    COMMAND_CHANGE_COURSE,
    COMMAND_STATUS,
    COMMAND_TOGGLE,
    THREAD_STARTUP_DELAY_SEC,
)
from .models import ConnectionStatus
from .session import SessionController, SessionStatus
from .sources import SimulatedSampleSource
from .utils import (
    endpoint_input,
    heading_input,
    heading_mode_input,
    heading_speed_input,
    position_input,
    safe_input,
    speed_input,
    timer_input,
    yes_no_input,
)


def format_status(status: SessionStatus, show_errors: bool = False) -> str:
    """Render a session status the way the console prints it.

    Args:
        status: Snapshot from SessionController.status
        show_errors: Append the recent error list

    Returns:
        Multi-line status text

    """
    time_text = status.last_sent_time.strftime("%H:%M:%S") if status.last_sent_time else "--:--:--"
    lat_text = f"{status.last_sent_latitude:.6f}°" if status.last_sent_latitude is not None else "-"
    lon_text = f"{status.last_sent_longitude:.6f}°" if status.last_sent_longitude is not None else "-"
    heading_text = f"{status.last_sent_heading:.1f}°" if status.last_sent_heading is not None else "-"
    lines = [
        f"Sending:   {'yes' if status.is_sending else 'no'}",
        f"Status:    {status.connection_status.value}",
        f"Time:      {time_text}",
        f"Latitude:  {lat_text}",
        f"Longitude: {lon_text}",
        f"Heading:   {heading_text}",
    ]
    if show_errors:
        lines.append("Errors:")
        lines.extend(f"  {error}" for error in status.errors)
    return "\n".join(lines)


class Menu:
    """Collect the settings, then drive a sending session from the keyboard.

    The unit's position, course and speed come from a simulated source; the
    remaining settings configure the session itself.
    """

    def __init__(self, quiet: bool = False, heading_enabled: bool = True, swap_heading_fields: bool = False) -> None:
        self.quiet: bool = quiet
        self.heading_enabled: bool = heading_enabled
        self.swap_heading_fields: bool = swap_heading_fields
        self.session: SessionController | None = None
        self.source: SimulatedSampleSource | None = None
        self._last_connection_status: ConnectionStatus | None = None

    def display_menu(self) -> None:
        """Display the banner."""
        print(r"""

.##..##..##...##..######...####...........####...######..##..##..#####..
.###.##..###.###..##......##..##.........##......##......###.##..##..##.
.##.###..##.#.##..####....######..........####...####....##.###..##..##.
.##..##..##...##..##......##..##.............##..##......##..##..##..##.
.##..##..##...##..######..##..##..........####...######..##..##..#####..
........................................................................
        """)
        print("Send position and heading as NMEA 0183 over UDP")

    def run(self) -> None:
        """Display the banner, collect settings, start sending and enter the interactive loop."""
        if not self.quiet:
            self.display_menu()
        config = self._setup_config()
        self.source = self._setup_source()
        self.session = SessionController(config, self.source)
        self.session.add_observer(self._on_status)
        self.session.start()
        time.sleep(THREAD_STARTUP_DELAY_SEC)
        try:
            self._interactive_loop()
        finally:
            self.session.stop()

    def _setup_config(self) -> SessionConfig:
        endpoint = endpoint_input()
        heading_mode = heading_mode_input()
        timer_enabled, timer_interval = timer_input()
        show_error_history = yes_no_input("Show error history in status?", default=False)
        return SessionConfig(
            endpoint=endpoint,
            heading_mode=heading_mode,
            timer_enabled=timer_enabled,
            timer_interval=timer_interval,
            show_error_history=show_error_history,
            heading_enabled=self.heading_enabled,
            swap_heading_fields=self.swap_heading_fields,
        )

    def _setup_source(self) -> SimulatedSampleSource:
        latitude, longitude = position_input()
        heading = heading_input()
        speed = speed_input()
        return SimulatedSampleSource(latitude=latitude, longitude=longitude, heading=heading, speed=speed)

    def _on_status(self, status: SessionStatus) -> None:
        # Called on every update; only connection changes are worth a line
        if status.connection_status is not self._last_connection_status:
            self._last_connection_status = status.connection_status
            logging.info(f"Connection status: {status.connection_status.value}")

    def _interactive_loop(self) -> None:
        """Toggle sending, change course/speed or print the status until Ctrl+C."""
        while True:
            prompt = safe_input(
                'Press "Enter" to start/stop sending, "c" to change course/speed, '
                '"s" for status or "Ctrl+C" to exit...\n'
            )
            command = prompt.strip().lower()
            if command == COMMAND_TOGGLE and self.session:
                self.session.toggle()
                print(f"\n*** Sending {'started' if self.session.should_send else 'stopped'} ***\n")
            elif command == COMMAND_CHANGE_COURSE and self.source:
                new_head, new_speed = heading_speed_input()
                self.source.set_heading(new_head)
                self.source.set_speed(new_speed)
                print()
            elif command == COMMAND_STATUS and self.session:
                print(format_status(self.session.status, self.session.config.show_error_history))
                print()
            else:
                print("[ERROR] Unknown command")

