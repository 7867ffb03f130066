"""Console prompts for the sender settings and the simulated unit."""

import ipaddress
import re
from collections.abc import Callable
from re import Match, Pattern
from typing import NoReturn, TypeVar

from .constants import (
    COORDINATE_DEGREES_LAT_WIDTH,
    COORDINATE_DEGREES_LON_WIDTH,
    DEFAULT_HEADING,
    DEFAULT_NMEA_PORT,
    DEFAULT_POSITION,
    DEFAULT_REMOTE_IP,
    DEFAULT_SPEED,
    DEFAULT_TIMER_INTERVAL_SEC,
    MAX_PORT,
    MIN_PORT,
    MINUTES_PER_DEGREE,
    TIMER_INTERVALS_SEC,
)
from .models import Endpoint, HeadingMode

T = TypeVar("T")

HEADING_REGEX_PATTERN: str = r"(3[0-5]\d|[0-2]\d{2}|\d{1,2})"
SPEED_REGEX_PATTERN: str = r"\d{1,3}(\.\d+)?"

ENDPOINT_REGEX: Pattern[str] = re.compile(r"(?P<host>[^\s:]+):(?P<port>\d{1,5})")
HOSTNAME_LABEL_REGEX: Pattern[str] = re.compile(r"[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?", re.IGNORECASE)
POSITION_REGEX: Pattern[str] = re.compile(
    r"""
    (?P<lat>\d{4}(\.\d+)?)      # Latitude ddmm[.mmm]
    (?P<lat_dir>[NS])
    \s?
    (?P<lon>\d{5}(\.\d+)?)      # Longitude dddmm[.mmm]
    (?P<lon_dir>[EW])
    """,
    re.VERBOSE | re.IGNORECASE,
)

HEADING_MODES: dict[str, HeadingMode] = {
    "true": HeadingMode.TRUE,
    "t": HeadingMode.TRUE,
    "magnetic": HeadingMode.MAGNETIC,
    "m": HeadingMode.MAGNETIC,
}
YES_NO: dict[str, bool] = {"y": True, "yes": True, "n": False, "no": False}


def handle_keyboard_interrupt() -> NoReturn:
    """Print a closing message and exit; used for Ctrl+C at any prompt.

    Raises:
        SystemExit: Always, with status 0

    """
    print("\n\nClosing...")
    raise SystemExit(0)


def safe_input(prompt_text: str) -> str:
    """Read one line from the console, exiting cleanly on Ctrl+C."""
    try:
        return input(prompt_text)
    except KeyboardInterrupt:
        handle_keyboard_interrupt()


def prompt(question: str, parse: Callable[[str], T | None], error: str, default: str | None = None) -> T:
    """Ask a question until parse() accepts the answer.

    Args:
        question: Text printed above the prompt
        parse: Returns the parsed value, or None to reject the answer
        error: Message printed after a rejected answer
        default: Answer used when the user just presses Enter

    Returns:
        The first value parse() accepted

    Raises:
        SystemExit: If user presses Ctrl+C (handled by safe_input)

    """
    while True:
        print(f"\n{question}")
        if default is not None:
            print(f"Default: {default}")
        answer = safe_input("> ").strip() or (default or "")
        value = parse(answer)
        if value is not None:
            return value
        print(f"[ERROR] {error}")


def _is_host(host: str) -> bool:
    # Dotted digits must form an IPv4 address, anything else a DNS name
    if re.fullmatch(r"[\d.]+", host):
        try:
            ipaddress.IPv4Address(host)
        except ValueError:
            return False
        return True
    labels = host.rstrip(".").split(".")
    return len(host) <= 253 and all(HOSTNAME_LABEL_REGEX.fullmatch(label) for label in labels)


def parse_endpoint(text: str) -> Endpoint | None:
    """Parse 'host:port' where host is an IPv4 address or a DNS name."""
    mo: Match[str] | None = ENDPOINT_REGEX.fullmatch(text)
    if not mo:
        return None
    port = int(mo.group("port"))
    if not MIN_PORT <= port <= MAX_PORT or not _is_host(mo.group("host")):
        return None
    return Endpoint(mo.group("host"), port)


def parse_position(text: str) -> tuple[float, float] | None:
    """Parse '5430N 01920E' (minutes may carry decimals) into signed degrees."""
    mo: Match[str] | None = POSITION_REGEX.fullmatch(text)
    if not mo:
        return None
    coordinates = []
    for group, width, limit, negative in (
        ("lat", COORDINATE_DEGREES_LAT_WIDTH, 90, "S"),
        ("lon", COORDINATE_DEGREES_LON_WIDTH, 180, "W"),
    ):
        value = mo.group(group)
        minutes = float(value[width:])
        degrees = int(value[:width]) + minutes / MINUTES_PER_DEGREE
        if minutes >= MINUTES_PER_DEGREE or degrees > limit:
            return None
        coordinates.append(-degrees if mo.group(f"{group}_dir").upper() == negative else degrees)
    return coordinates[0], coordinates[1]


def parse_heading(text: str) -> float | None:
    if re.fullmatch(HEADING_REGEX_PATTERN, text):
        return float(text)
    return None


def parse_speed(text: str) -> float | None:
    if re.fullmatch(SPEED_REGEX_PATTERN, text):
        return float(text)
    return None


def parse_timer(text: str) -> tuple[bool, int] | None:
    """Parse a timer interval; 0 disables the timer."""
    if text == "0":
        return False, DEFAULT_TIMER_INTERVAL_SEC
    if text.isdigit() and int(text) in TIMER_INTERVALS_SEC:
        return True, int(text)
    return None


def endpoint_input() -> Endpoint:
    """Ask for the address of the NMEA receiver."""
    return prompt(
        "Enter remote host and port number (e.g. 192.168.10.10:10110 or plotter.local:10110)",
        parse_endpoint,
        f"Invalid address. Use host:port with a port between {MIN_PORT} and {MAX_PORT}",
        default=f"{DEFAULT_REMOTE_IP}:{DEFAULT_NMEA_PORT}",
    )


def position_input() -> tuple[float, float]:
    """Ask for the simulated unit's start position.

    Returns:
        Tuple containing (latitude, longitude) in signed degrees

    """
    return prompt(
        "Enter unit position (format: 5430N 01920E)",
        parse_position,
        "Invalid position format. Use: 5430N 01920E",
        default=DEFAULT_POSITION,
    )


def heading_input() -> float:
    """Ask for the unit's course in degrees (0-359)."""
    return prompt(
        "Enter unit course (0-359 degrees)",
        parse_heading,
        "Invalid heading. Enter a value between 0 and 359 degrees",
        default=f"{int(DEFAULT_HEADING):03d}",
    )


def speed_input() -> float:
    """Ask for the unit's speed in knots (0-999)."""
    return prompt(
        "Enter unit speed (0-999 knots)",
        parse_speed,
        "Invalid speed. Enter a value between 0 and 999 knots",
        default=str(DEFAULT_SPEED),
    )


def heading_mode_input() -> HeadingMode:
    """Ask whether GPHDT (true) or GPHDM (magnetic) is sent."""
    return prompt(
        "Enter heading type (TRUE or MAGNETIC)",
        lambda text: HEADING_MODES.get(text.lower()),
        "Invalid heading type. Enter 'true' or 'magnetic'",
        default="true",
    )


def timer_input() -> tuple[bool, int]:
    """Ask for the periodic send interval.

    Returns:
        Tuple containing (timer enabled, interval in seconds)

    """
    allowed = ", ".join(str(interval) for interval in TIMER_INTERVALS_SEC)
    return prompt(
        f"Enter timer interval in seconds ({allowed}) or 0 to disable",
        parse_timer,
        f"Invalid interval. Enter one of {allowed} or 0",
        default="0",
    )


def yes_no_input(question: str, default: bool = False) -> bool:
    return prompt(
        f"{question} (y/n)",
        lambda text: YES_NO.get(text.lower()),
        "Invalid answer. Enter 'y' or 'n'",
        default="y" if default else "n",
    )


def heading_speed_input() -> tuple[float, float]:
    """Ask for a new course and speed while sending.

    Returns:
        Tuple containing (new_heading, new_speed) in degrees and knots

    """
    while True:
        heading_new = parse_heading(safe_input("New course (0-359 degrees) > ").strip())
        if heading_new is not None:
            break
        print("[ERROR] Invalid heading. Enter a value between 0 and 359 degrees")

    while True:
        speed_new = parse_speed(safe_input("New speed (0-999 knots) > ").strip())
        if speed_new is not None:
            break
        print("[ERROR] Invalid speed. Enter a value between 0 and 999 knots")

    return heading_new, speed_new
