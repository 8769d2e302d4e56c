"""Unit tests for report -- threshold formatting, console lines, JSON creation."""

import io
import unittest
from unittest import mock

from rich.console import Console

from cfclient.stats import LatencyStats
from report.console import (
    format_latency_result,
    format_result,
    format_speed_result,
    is_warning,
    print_download_speed,
    print_info,
    print_latency,
    print_preset_result,
    print_upload_speed,
)
from report.output import create_result_json


class TestFormatResult(unittest.TestCase):
    def test_latency_ok(self):
        self.assertEqual(format_latency_result(20.0, 65.0), "[green]20.00 ms[/green]")

    def test_latency_warn(self):
        self.assertEqual(
            format_latency_result(70.0, 65.0), "[bold red]70.00 ms (WARN)[/bold red]"
        )

    def test_speed_warn_below(self):
        self.assertIn("(WARN)", format_speed_result(2.5, 3.0))

    def test_speed_ok(self):
        self.assertEqual(format_speed_result(3.0, 3.0), "[green]3.00 Mbps[/green]")

    def test_threshold_is_exclusive(self):
        self.assertFalse(is_warning(65.0, 65.0, lower_better=True))
        self.assertFalse(is_warning(1.0, 1.0, lower_better=False))

    def test_generic(self):
        self.assertIn("(WARN)", format_result(11.0, "ms", 10.0, True))


class TestConsoleLines(unittest.TestCase):
    def _capture(self, fn, *args):
        buf = io.StringIO()
        fake = Console(file=buf, force_terminal=False, width=120)
        with mock.patch("report.console.console", fake):
            fn(*args)
        return buf.getvalue()

    def test_info_alignment(self):
        out = self._capture(print_info, "Your IP", "1.2.3.4 (DE)")
        self.assertEqual(out, "         Your IP: 1.2.3.4 (DE)\n")

    def test_info_escapes_markup(self):
        out = self._capture(print_info, "Server location", "[weird] (FRA)")
        self.assertIn("[weird] (FRA)", out)

    def test_latency_block(self):
        stats = LatencyStats.from_samples([20.0, 22.0, 90.0])
        out = self._capture(print_latency, stats)
        lines = out.splitlines()
        self.assertEqual(len(lines), 4)
        self.assertTrue(lines[0].startswith("   Latency (avg): 44.00 ms"))
        self.assertIn("(WARN)", lines[1])      # p99 above 85 ms
        self.assertIn("Jitter (avg)", lines[2])

    def test_speed_lines(self):
        self.assertIn("Download speed: 12.50 Mbps", self._capture(print_download_speed, 12.5))
        self.assertIn("(WARN)", self._capture(print_upload_speed, 0.5))

    def test_preset_line(self):
        self.assertIn("101kB speed: 20.00 Mbps", self._capture(print_preset_result, 101_000, [10.0, 30.0]))
        self.assertIn("no samples", self._capture(print_preset_result, 1_001_000, []))

    def test_preset_line_gbps(self):
        out = self._capture(print_preset_result, 100_001_000, [1200.0, 1300.0, 1400.0])
        self.assertIn("100MB speed: 1.30 Gbps", out)

    def test_latency_avg_is_mean(self):
        stats = LatencyStats.from_samples([10.0, 10.0, 10.0, 300.0])
        first = self._capture(print_latency, stats).splitlines()[0]
        self.assertIn("82.50 ms (WARN)", first)


class TestCreateResultJson(unittest.TestCase):
    def _make(self, **overrides):
        defaults = dict(
            server_colo="FRA",
            server_city="Frankfurt",
            client_info={"ip": "1.2.3.4", "loc": "DE", "colo": "FRA"},
            latency_results={"mean": 20.0, "p99": 30.0, "jitter": 2.0, "jitter_p99": 4.0},
            download_results={"speed_mbps": 100.0},
            upload_results={"speed_mbps": 0.5},
        )
        defaults.update(overrides)
        return create_result_json(**defaults)

    def test_basic_structure(self):
        r = self._make()
        for key in ("timestamp", "server", "client", "latency", "download", "upload", "warnings"):
            self.assertIn(key, r)
        self.assertEqual(r["server"], {"colo": "FRA", "city": "Frankfurt"})

    def test_warnings(self):
        w = self._make()["warnings"]
        self.assertFalse(w["latency_avg"])
        self.assertFalse(w["download"])
        self.assertTrue(w["upload"])

    def test_warnings_match_console_thresholds(self):
        w = self._make(
            latency_results={"mean": 65.0, "p99": 85.01, "jitter": 10.0, "jitter_p99": 15.0},
            download_results={"speed_mbps": 3.0},
            upload_results={"speed_mbps": 1.0},
        )["warnings"]
        self.assertEqual(
            w,
            {
                "latency_avg": False,
                "latency_p99": True,
                "jitter_avg": False,
                "jitter_p99": False,
                "download": False,
                "upload": False,
            },
        )


if __name__ == "__main__":
    unittest.main()
