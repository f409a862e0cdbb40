"""Tests for config persistence and settings sanitization.

Malformed config data must fall back to defaults on load, and writes must
replace the file atomically while preserving unrelated keys.
"""

from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazynav import config
from lazynav.errors import PersistenceFailure


class ConfigBehaviorTests(unittest.TestCase):
    def test_missing_or_malformed_config_loads_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("lazynav.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_config(), {})
                config_path.write_text("{not json", encoding="utf-8")
                self.assertEqual(config.load_config(), {})
                config_path.write_text("[1, 2]", encoding="utf-8")
                self.assertEqual(config.load_config(), {})

    def test_settings_fall_back_to_defaults_for_invalid_values(self) -> None:
        settings = config.load_settings(
            {
                "debounce_seconds": -1,
                "fetch_timeout_seconds": True,
                "search_timeout_seconds": "fast",
                "search_join_policy": "whatever",
                "max_workers": 0,
                "show_hidden": "yes",
                "local_roots": ["/tmp/a", 3, ""],
            }
        )

        self.assertEqual(settings.debounce_seconds, config.DEFAULT_DEBOUNCE_SECONDS)
        self.assertEqual(settings.fetch_timeout_seconds, config.DEFAULT_FETCH_TIMEOUT_SECONDS)
        self.assertEqual(settings.search_timeout_seconds, config.DEFAULT_SEARCH_TIMEOUT_SECONDS)
        self.assertEqual(settings.search_join_policy, "fail_fast")
        self.assertEqual(settings.max_workers, config.DEFAULT_MAX_WORKERS)
        self.assertFalse(settings.show_hidden)
        self.assertEqual(settings.local_roots, (Path("/tmp/a"),))

    def test_settings_accept_valid_values(self) -> None:
        settings = config.load_settings(
            {
                "debounce_seconds": 0.5,
                "fetch_timeout_seconds": 3,
                "search_join_policy": "partial",
                "max_workers": 8,
                "show_hidden": True,
            }
        )

        self.assertEqual(settings.debounce_seconds, 0.5)
        self.assertEqual(settings.fetch_timeout_seconds, 3.0)
        self.assertEqual(settings.search_join_policy, "partial")
        self.assertEqual(settings.max_workers, 8)
        self.assertTrue(settings.show_hidden)

    def test_expanded_node_ids_round_trip_and_preserve_other_keys(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "nested" / "config.json"
            with mock.patch("lazynav.config.CONFIG_PATH", config_path):
                config.save_config({"show_hidden": True})
                config.save_expanded_node_ids(["local", "local/work"])

                self.assertEqual(config.load_expanded_node_ids(), ["local", "local/work"])
                self.assertTrue(config.load_config()["show_hidden"])
                self.assertEqual(
                    [name for name in os.listdir(config_path.parent) if name != "config.json"],
                    [],
                )

    def test_load_expanded_node_ids_sanitizes_entries(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text(
                json.dumps({"expanded_nodes": ["a", 1, "", "b", "a", None]}),
                encoding="utf-8",
            )
            with mock.patch("lazynav.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_expanded_node_ids(), ["a", "b"])

    def test_unwritable_config_raises_persistence_failure(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "blocker"
            blocker.write_text("not a directory", encoding="utf-8")
            with mock.patch("lazynav.config.CONFIG_PATH", blocker / "config.json"):
                with self.assertRaises(PersistenceFailure):
                    config.save_expanded_node_ids(["local"])

    def test_unserializable_payload_raises_persistence_failure(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("lazynav.config.CONFIG_PATH", config_path):
                with self.assertRaises(PersistenceFailure):
                    config.save_config({"bad": object()})
                self.assertFalse(config_path.exists())


if __name__ == "__main__":
    unittest.main()
