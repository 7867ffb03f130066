"""Constants used throughout the NMEA Location Sender."""

# Network
DEFAULT_NMEA_PORT: int = 10110
DEFAULT_REMOTE_IP: str = "192.168.1.1"
MIN_PORT: int = 1
MAX_PORT: int = 65535

# Timing
RECONNECT_DELAY_SEC: float = 5.0
HEADING_THROTTLE_SEC: float = 0.1
BUSY_WINDOW_FACTOR: float = 1.1
TIMER_INTERVALS_SEC: tuple[int, ...] = (1, 3, 5, 10)
DEFAULT_TIMER_INTERVAL_SEC: int = 1
SIMULATOR_POSITION_INTERVAL_SEC: float = 1.0
SIMULATOR_HEADING_INTERVAL_SEC: float = 0.25
THREAD_STARTUP_DELAY_SEC: float = 0.5

# Timing precision and safety
MIN_SLEEP_TIME_SEC: float = 0.0
TIMING_PRECISION_TOLERANCE: float = 0.001  # 1ms tolerance for timing calculations
MAX_LOOP_EXECUTION_SHARE: float = 0.9  # Share of the interval a tick may take before warning

# Navigation
HEADING_INCREMENT_DEG: int = 3
SPEED_INCREMENT_KNOTS: int = 3
MAX_HEADING_DEG: int = 360
DEGREES_HALF_CIRCLE: int = 180
MS_TO_KNOTS_CONVERSION: float = 1.94384
MS_TO_KMHR_CONVERSION: float = 3.6
KNOTS_TO_MS_CONVERSION: float = 0.514444
MINUTES_PER_DEGREE: int = 60

# Unknown speed/course/heading substitute
UNKNOWN_VALUE: float = -1.0

# Placeholder fix data
GPS_FIX_QUALITY_VALID: int = 1
DEFAULT_SATELLITES: int = 8
DEFAULT_HDOP: float = 1.0
DEFAULT_GEOID_SEPARATION: float = 0.0
FIX_STATUS_VALID: str = "A"

# NMEA sentence configuration
CHECKSUM_HEX_LENGTH: int = 2
NMEA_LINE_TERMINATOR: str = "\n"
COORDINATE_DEGREES_LAT_WIDTH: int = 2
COORDINATE_DEGREES_LON_WIDTH: int = 3
COORDINATE_MINUTES_WIDTH: int = 6
COORDINATE_MINUTES_PRECISION: int = 3
HEADING_PRECISION: int = 3

# Session status
ERROR_HISTORY_SIZE: int = 4
ERROR_TIMESTAMP_FORMAT: str = "%H:%M:%S"

# Default simulated position (Baltic Sea)
DEFAULT_POSITION: str = "5430N 01920E"
DEFAULT_HEADING: float = 90.0
DEFAULT_SPEED: float = 10.5
DEFAULT_ALTITUDE_AMSL: float = 15.2
DEFAULT_MAGNETIC_VARIATION: float = 0.0

# Interactive loop commands
COMMAND_TOGGLE: str = ""
COMMAND_CHANGE_COURSE: str = "c"
COMMAND_STATUS: str = "s"
