"""Command line entry point: python -m nmea_location_sender."""

import argparse
import logging

from nmea_location_sender import __version__
from nmea_location_sender.main import Menu

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nmea-location-sender",
        description="Stream a unit's position and heading as NMEA 0183 sentences over UDP",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only show errors and prompts",
    )
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every sentence sent and every channel transition",
    )
    parser.add_argument(
        "--no-heading",
        dest="heading_enabled",
        action="store_false",
        help="Send position sentences only, no GPHDT/GPHDM",
    )
    parser.add_argument(
        "--swap-heading-fields",
        action="store_true",
        help="Put the magnetic reading in GPHDT and the true reading in GPHDM",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.INFO
    logging.basicConfig(format=LOG_FORMAT, level=level, datefmt=LOG_DATE_FORMAT)


def main(argv: list[str] | None = None) -> None:
    """Run the NMEA Location Sender."""
    args = parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)
    Menu(
        quiet=args.quiet,
        heading_enabled=args.heading_enabled,
        swap_heading_fields=args.swap_heading_fields,
    ).run()


if __name__ == "__main__":
    main()
