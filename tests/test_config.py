"""Tests for cfclient.config -- configuration persistence."""

import os
import tempfile
import unittest
from unittest import mock

from cfclient.config import (
    DEFAULTS,
    get_config_value,
    load_config,
    parse_presets,
    save_config,
    set_config_value,
)


class TestConfigDefaults(unittest.TestCase):
    def test_defaults_have_required_keys(self):
        for key in ("hostname", "latency_count", "latency_bytes",
                    "download_presets", "upload_presets", "request_timeout"):
            self.assertIn(key, DEFAULTS)

    def test_no_deadline_by_default(self):
        self.assertIsNone(DEFAULTS["request_timeout"])

    def test_reference_presets(self):
        self.assertEqual(parse_presets(DEFAULTS["download_presets"]), [(101_000, 2)])
        self.assertEqual(parse_presets(DEFAULTS["upload_presets"]), [(11_000, 2)])


class TestLoadSaveConfig(unittest.TestCase):
    def test_load_defaults_when_missing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("cfclient.config._config_path", return_value=path):
                cfg = load_config()
                self.assertEqual(cfg["latency_count"], 100)
                self.assertEqual(cfg["hostname"], "speed.cloudflare.com")

    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("cfclient.config._config_path", return_value=path):
                save_config({"latency_count": 20, "request_timeout": 15})
                cfg = load_config()
                self.assertEqual(cfg["latency_count"], 20)
                self.assertEqual(cfg["request_timeout"], 15)
                # Defaults still present
                self.assertEqual(cfg["latency_bytes"], 200)

    def test_corrupt_file_returns_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with open(path, "w") as f:
                f.write("NOT JSON")
            with mock.patch("cfclient.config._config_path", return_value=path):
                with self.assertLogs("cfclient.config", level="WARNING"):
                    cfg = load_config()
                self.assertEqual(cfg["latency_count"], 100)

    def test_get_set_value(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "sub", "config.json")
            with mock.patch("cfclient.config._config_path", return_value=path):
                set_config_value("latency_bytes", 500)
                self.assertEqual(get_config_value("latency_bytes"), 500)


class TestParsePresets(unittest.TestCase):
    def test_valid(self):
        self.assertEqual(parse_presets([[1000, 2], (2000, 1)]), [(1000, 2), (2000, 1)])

    def test_empty(self):
        with self.assertRaises(ValueError):
            parse_presets([])

    def test_not_pairs(self):
        with self.assertRaises(ValueError):
            parse_presets([[1000]])

    def test_non_positive(self):
        with self.assertRaises(ValueError):
            parse_presets([[1000, 0]])

    def test_non_numeric(self):
        with self.assertRaises(ValueError):
            parse_presets([["big", 2]])


if __name__ == "__main__":
    unittest.main()
