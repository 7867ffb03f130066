"""NMEA 0183 sentence generation from position and heading samples."""

from __future__ import annotations

import datetime

from .constants import (
    CHECKSUM_HEX_LENGTH,
    COORDINATE_DEGREES_LAT_WIDTH,
    COORDINATE_DEGREES_LON_WIDTH,
    COORDINATE_MINUTES_PRECISION,
    COORDINATE_MINUTES_WIDTH,
    DEFAULT_GEOID_SEPARATION,
    DEFAULT_HDOP,
    DEFAULT_SATELLITES,
    FIX_STATUS_VALID,
    GPS_FIX_QUALITY_VALID,
    HEADING_PRECISION,
    MINUTES_PER_DEGREE,
    MS_TO_KMHR_CONVERSION,
    MS_TO_KNOTS_CONVERSION,
    NMEA_LINE_TERMINATOR,
)
from .models import HeadingMode, HeadingSample, PositionSample


def check_sum(data: str) -> str:
    """Calculate NMEA checksum for given data string.

    Performs XOR operation on all bytes between $ and * delimiters
    and returns checksum in hexadecimal notation.

    Args:
        data: NMEA sentence data (without $ prefix and * suffix)

    Returns:
        Two-character uppercase hexadecimal checksum string

    """
    checksum: int = 0
    for num in data.encode("ascii"):
        # XOR operation.
        checksum ^= num
    return f"{checksum:0{CHECKSUM_HEX_LENGTH}X}"


def to_wire(data: str) -> str:
    """Wrap a sentence body into its transmitted form: $<body>*<checksum><terminator>."""
    return f"${data}*{check_sum(data)}{NMEA_LINE_TERMINATOR}"


def degrees_minutes(value: float, positive: str, negative: str) -> tuple[int, float, str]:
    """Split a signed coordinate into degrees, decimal minutes and hemisphere.

    Degrees are truncated toward zero and both components are returned as
    magnitudes; the sign is carried only by the hemisphere letter. Minutes
    that round up to a full 60 carry into the degrees.

    Args:
        value: Signed coordinate in degrees
        positive: Hemisphere letter for values >= 0 ('N' or 'E')
        negative: Hemisphere letter for negative values ('S' or 'W')

    Returns:
        Tuple of (degrees, minutes, hemisphere)

    """
    degrees = int(value)
    minutes = round(abs(value - degrees) * MINUTES_PER_DEGREE, COORDINATE_MINUTES_PRECISION)
    degrees = abs(degrees)
    if minutes >= MINUTES_PER_DEGREE:
        degrees += 1
        minutes = 0.0
    hemisphere = positive if value >= 0 else negative
    return degrees, minutes, hemisphere


def knots(speed_ms: float) -> float:
    """Convert m/s to knots."""
    return speed_ms * MS_TO_KNOTS_CONVERSION


def kmh(speed_ms: float) -> float:
    """Convert m/s to km/h."""
    return speed_ms * MS_TO_KMHR_CONVERSION


def nmea_time(value: datetime.datetime) -> str:
    """Return UTC time as hhmmss.sss."""
    value = _as_utc(value)
    return f"{value.strftime('%H%M%S')}.{value.microsecond // 1000:03d}"


def nmea_date(value: datetime.datetime) -> str:
    """Return UTC date as ddmmyy."""
    return _as_utc(value).strftime("%d%m%y")


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    # Naive timestamps are taken as UTC already
    if value.tzinfo is None:
        return value
    return value.astimezone(datetime.UTC)


def _position_fields(latitude: float, longitude: float) -> str:
    lat_deg, lat_min, lat_dir = degrees_minutes(latitude, "N", "S")
    lon_deg, lon_min, lon_dir = degrees_minutes(longitude, "E", "W")
    minutes_fmt = f"0{COORDINATE_MINUTES_WIDTH}.{COORDINATE_MINUTES_PRECISION}f"
    return (
        f"{lat_deg:0{COORDINATE_DEGREES_LAT_WIDTH}d}{lat_min:{minutes_fmt}},{lat_dir},"
        f"{lon_deg:0{COORDINATE_DEGREES_LON_WIDTH}d}{lon_min:{minutes_fmt}},{lon_dir}"
    )


class NmeaSentence:
    """Common behaviour of the emitted sentences.

    Subclasses build the body (the text between '$' and '*'); str() gives the
    complete line ready for the wire.
    """

    sentence_id: str = ""

    def body(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return to_wire(self.body())


class Gprmc(NmeaSentence):
    """Recommended minimum specific GPS/Transit data.

    Contains the most essential navigation information: time, fix status,
    position, speed over ground, course over ground and date.

    Example: $GPRMC,120944.855,A,4807.038,N,12228.698,W,19.4,84.4,090321,,*12
    """

    sentence_id: str = "GPRMC"

    def __init__(
        self,
        utc_date_time: datetime.datetime,
        latitude: float,
        longitude: float,
        sog_knots: float,
        cog: float,
        data_status: str = FIX_STATUS_VALID,
    ) -> None:
        """Initialize GPRMC sentence with position, speed, and course data.

        Args:
            utc_date_time: Time of the fix
            latitude: Signed latitude in degrees
            longitude: Signed longitude in degrees
            sog_knots: Speed over ground in knots
            cog: Course over ground in degrees true
            data_status: Data validity status ('A'=valid, 'V'=invalid)

        """
        self.utc_date_time: datetime.datetime = utc_date_time
        self.latitude: float = latitude
        self.longitude: float = longitude
        self.sog_knots: float = sog_knots
        self.cog: float = cog
        self.data_status: str = data_status

    def body(self) -> str:
        return (
            f"{self.sentence_id},{nmea_time(self.utc_date_time)},{self.data_status},"
            f"{_position_fields(self.latitude, self.longitude)},"
            f"{self.sog_knots:.1f},{self.cog:.1f},{nmea_date(self.utc_date_time)},,"
        )


class Gpgga(NmeaSentence):
    """Global Positioning System Fix Data.

    Fix quality, satellite count, HDOP and geoid separation are fixed
    placeholders; only time, position and altitude come from the sample.

    Example: $GPGGA,120944.855,4807.038,N,12228.698,W,1,08,1.0,15.2,M,0.0,M,,*4F
    """

    sentence_id: str = "GPGGA"

    def __init__(
        self,
        utc_date_time: datetime.datetime,
        latitude: float,
        longitude: float,
        altitude: float,
        fix_quality: int = GPS_FIX_QUALITY_VALID,
        sats_count: int = DEFAULT_SATELLITES,
        hdop: float = DEFAULT_HDOP,
        geoid_separation: float = DEFAULT_GEOID_SEPARATION,
    ) -> None:
        self.utc_date_time: datetime.datetime = utc_date_time
        self.latitude: float = latitude
        self.longitude: float = longitude
        self.altitude: float = altitude
        self.fix_quality: int = fix_quality
        self.sats_count: int = sats_count
        self.hdop: float = hdop
        self.geoid_separation: float = geoid_separation

    def body(self) -> str:
        return (
            f"{self.sentence_id},{nmea_time(self.utc_date_time)},"
            f"{_position_fields(self.latitude, self.longitude)},{self.fix_quality},"
            f"{self.sats_count:02d},{self.hdop:.1f},{self.altitude:.1f},M,"
            f"{self.geoid_separation:.1f},M,,"
        )


class Gpvtg(NmeaSentence):
    """Track Made Good and Ground Speed.

    The magnetic track mirrors the true track; no variation is applied.

    Example: $GPVTG,84.4,T,84.4,M,19.4,N,36.0,K,*6B
    """

    sentence_id: str = "GPVTG"

    def __init__(self, cog: float, speed_ms: float) -> None:
        self.cog: float = cog
        self.speed_ms: float = speed_ms

    def body(self) -> str:
        return (
            f"{self.sentence_id},{self.cog:.1f},T,{self.cog:.1f},M,"
            f"{knots(self.speed_ms):.1f},N,{kmh(self.speed_ms):.1f},K,"
        )


class Gphdt(NmeaSentence):
    """Heading, True.

    Example: $GPHDT,274.070,T*33
    """

    sentence_id: str = "GPHDT"
    suffix: str = "T"

    def __init__(self, heading: float) -> None:
        self.heading: float = heading

    def body(self) -> str:
        return f"{self.sentence_id},{self.heading:.{HEADING_PRECISION}f},{self.suffix}"


class Gphdm(Gphdt):
    """Heading, Magnetic.

    Example: $GPHDM,274.070,M*33
    """

    sentence_id: str = "GPHDM"
    suffix: str = "M"


def position_sentences(sample: PositionSample) -> list[NmeaSentence]:
    """Build RMC, GGA and VTG sentences (in that order) for one position sample."""
    sample = sample.resolved()
    return [
        Gprmc(
            utc_date_time=sample.timestamp,
            latitude=sample.latitude,
            longitude=sample.longitude,
            sog_knots=knots(sample.speed),
            cog=sample.course,
        ),
        Gpgga(
            utc_date_time=sample.timestamp,
            latitude=sample.latitude,
            longitude=sample.longitude,
            altitude=sample.altitude,
        ),
        Gpvtg(cog=sample.course, speed_ms=sample.speed),
    ]


def encode_position(sample: PositionSample) -> list[str]:
    """Return the three sentence bodies derived from a position sample."""
    return [sentence.body() for sentence in position_sentences(sample)]


def heading_value(sample: HeadingSample, mode: HeadingMode, swap_fields: bool = False) -> float:
    """Return the heading value carried by the sentence for the given mode.

    With swap_fields the true-heading sentence carries the magnetic reading and
    the magnetic-heading sentence carries the true reading.
    """
    sample = sample.resolved()
    use_true = (mode is HeadingMode.TRUE) != swap_fields
    return sample.true_heading if use_true else sample.magnetic_heading


def heading_sentence(sample: HeadingSample, mode: HeadingMode, swap_fields: bool = False) -> Gphdt:
    """Build the GPHDT (true mode) or GPHDM (magnetic mode) sentence."""
    value = heading_value(sample, mode, swap_fields)
    if mode is HeadingMode.TRUE:
        return Gphdt(heading=value)
    return Gphdm(heading=value)


def encode_heading(sample: HeadingSample, mode: HeadingMode, swap_fields: bool = False) -> str:
    """Return the single heading sentence body for a heading sample."""
    return heading_sentence(sample, mode, swap_fields).body()
