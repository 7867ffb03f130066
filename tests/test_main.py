"""Tests for the command line and the console status output."""

import datetime
import io
import unittest
from unittest.mock import patch

from nmea_location_sender.__main__ import main, parse_args
from nmea_location_sender.main import format_status
from nmea_location_sender.models import ConnectionStatus
from nmea_location_sender.session import SessionStatus


class TestFormatStatus(unittest.TestCase):
    def test_nothing_sent_yet(self) -> None:
        """Test placeholders are shown before anything is sent."""
        text = format_status(SessionStatus())
        self.assertEqual(
            text.splitlines(),
            [
                "Sending:   no",
                "Status:    Disconnected",
                "Time:      --:--:--",
                "Latitude:  -",
                "Longitude: -",
                "Heading:   -",
            ],
        )

    def test_last_sent_values(self) -> None:
        """Test the last sent values are formatted."""
        status = SessionStatus(
            is_sending=True,
            connection_status=ConnectionStatus.CONNECTED,
            last_sent_time=datetime.datetime(2025, 1, 1, 12, 0, 5),
            last_sent_latitude=54.5,
            last_sent_longitude=-19.25,
            last_sent_heading=274.07,
            errors=("[12:00:01] Network is unreachable",),
        )
        lines = format_status(status).splitlines()
        self.assertEqual(lines[0], "Sending:   yes")
        self.assertEqual(lines[1], "Status:    Connected")
        self.assertEqual(lines[2], "Time:      12:00:05")
        self.assertEqual(lines[3], "Latitude:  54.500000°")
        self.assertEqual(lines[4], "Longitude: -19.250000°")
        self.assertEqual(lines[5], "Heading:   274.1°")
        self.assertNotIn("Errors:", lines)

    def test_error_history(self) -> None:
        """Test the error history is listed on request."""
        status = SessionStatus(errors=("[12:00:01] first", "[12:00:06] second"))
        lines = format_status(status, show_errors=True).splitlines()
        self.assertEqual(lines[-3:], ["Errors:", "  [12:00:01] first", "  [12:00:06] second"])


class TestCommandLine(unittest.TestCase):
    def test_defaults(self) -> None:
        """Test default command line options."""
        args = parse_args([])
        self.assertFalse(args.quiet)
        self.assertFalse(args.verbose)
        self.assertTrue(args.heading_enabled)
        self.assertFalse(args.swap_heading_fields)

    def test_session_options(self) -> None:
        """Test session related command line options."""
        args = parse_args(["--no-heading", "--swap-heading-fields", "-v"])
        self.assertFalse(args.heading_enabled)
        self.assertTrue(args.swap_heading_fields)
        self.assertTrue(args.verbose)

    def test_quiet_and_verbose_conflict(self) -> None:
        """Test quiet and verbose cannot be combined."""
        with patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit) as context:
                parse_args(["-q", "-v"])
        self.assertEqual(context.exception.code, 2)

    def test_options_reach_the_menu(self) -> None:
        """Test command line options are passed to the menu."""
        with patch("nmea_location_sender.__main__.Menu") as menu, patch(
            "nmea_location_sender.__main__.configure_logging"
        ) as configure:
            main(["-q", "--no-heading"])
        configure.assert_called_once_with(verbose=False, quiet=True)
        menu.assert_called_once_with(quiet=True, heading_enabled=False, swap_heading_fields=False)
        menu.return_value.run.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
