"""Stream device position and heading as NMEA 0183 sentences over UDP."""

__version__ = "0.1.0"
