"""Tests for config persistence and input sanitization.

Validates tag-file lists, search parameters, and history round-tripping.
Ensures malformed config data is safely normalized on load.
"""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from tagjump import config
from tagjump.index.search import DEFAULT_SEARCH_PARAMS, SearchParams
from tagjump.navigation import LocationRef, NavigationHistory


class ConfigBehaviorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name).resolve()
        self._patches = [
            mock.patch("tagjump.config.CONFIG_PATH", self.root / "config.json"),
            mock.patch("tagjump.config.HISTORY_PATH", self.root / "history.json"),
        ]
        for patch in self._patches:
            patch.start()

    def tearDown(self) -> None:
        for patch in reversed(self._patches):
            patch.stop()
        self._tmpdir.cleanup()

    def test_missing_or_malformed_config_uses_defaults(self) -> None:
        self.assertEqual(config.load_config(), {})
        self.assertEqual(config.load_tag_files(), [Path("tags")])
        self.assertFalse(config.load_case_fold())
        self.assertEqual(config.load_search_params(), DEFAULT_SEARCH_PARAMS)
        self.assertEqual(config.load_style_name(), "monokai")

        (self.root / "config.json").write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(config.load_config(), {})

        (self.root / "config.json").write_text("{not json", encoding="utf-8")
        self.assertEqual(config.load_config(), {})

    def test_tag_files_round_trip_and_sanitize(self) -> None:
        config.save_tag_files([Path("tags"), Path("/usr/include/tags")])
        self.assertEqual(config.load_tag_files(), [Path("tags"), Path("/usr/include/tags")])

        config.save_config({"tag_files": ["", 3, "TAGS", None]})
        self.assertEqual(config.load_tag_files(), [Path("TAGS")])

    def test_case_fold_only_accepts_booleans(self) -> None:
        config.save_case_fold(True)
        self.assertTrue(config.load_case_fold())

        config.save_config({"case_fold": "yes"})
        self.assertFalse(config.load_case_fold())

    def test_search_params_are_validated(self) -> None:
        config.save_config({"block_size": 512, "chunk_size": 2048, "max_chunk_size": 100})
        self.assertEqual(
            config.load_search_params(),
            SearchParams(block_size=512, chunk_size=2048, max_chunk_size=2048),
        )

        config.save_config({"block_size": True, "chunk_size": -1, "max_chunk_size": 1.5})
        self.assertEqual(config.load_search_params(), DEFAULT_SEARCH_PARAMS)

    def test_history_round_trip(self) -> None:
        history = NavigationHistory()
        history.record(LocationRef(self.root / "a.c", 10))
        history.record(LocationRef(self.root / "b.c"))
        history.back()

        config.save_history(history)
        restored = config.load_history(NavigationHistory())

        self.assertEqual(restored.entries(), history.entries())
        self.assertEqual(restored.current(), history.current())

    def test_load_history_sanitizes_invalid_entries(self) -> None:
        (self.root / "history.json").write_text(
            json.dumps(
                {
                    "current": True,
                    "entries": [
                        {"key": 1, "path": "/tmp/a.c", "offset": 5},
                        {"key": 2, "path": "/tmp/b.c", "offset": -3},
                        {"key": 3, "path": 42, "offset": 1},
                        {"key": "4", "path": "/tmp/d.c"},
                        "bad-shape",
                    ],
                }
            ),
            encoding="utf-8",
        )

        history = config.load_history(NavigationHistory())

        self.assertEqual([entry.sequence_key for entry in history.entries()], [1, 2])
        self.assertEqual(history.entries()[0].location, LocationRef(Path("/tmp/a.c"), 5))
        self.assertIsNone(history.entries()[1].location.offset)
        self.assertEqual(history.current().sequence_key, 2)


if __name__ == "__main__":
    unittest.main()
