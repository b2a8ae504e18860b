"""Tests for the filesystem-backed text host.

Verifies line/offset bookkeeping, forward pattern search landing on line
starts, and open failures for missing files.
"""

from __future__ import annotations

import re
import tempfile
import unittest
from pathlib import Path

from tagjump.errors import DocumentOpenError
from tagjump.host import TextDocument, TextDocumentHost
from tagjump.navigation import LocationRef


class TextDocumentTests(unittest.TestCase):
    def test_line_offsets_and_lookup(self) -> None:
        document = TextDocument(Path("x.c"), "one\ntwo\nthree\n")

        self.assertEqual(document.line_count, 3)
        self.assertEqual(document.offset_of_line(1), 0)
        self.assertEqual(document.offset_of_line(3), 8)
        self.assertEqual(document.offset_of_line(99), 8)
        self.assertEqual(document.offset_of_line(0), 0)
        self.assertEqual(document.line_of_offset(5), 2)
        self.assertEqual(document.line_text(2), "two")
        self.assertEqual(document.line_text(3), "three")

    def test_empty_document_has_one_line(self) -> None:
        document = TextDocument(Path("empty"), "")

        self.assertEqual(document.line_count, 1)
        self.assertEqual(document.line_text(1), "")


class TextDocumentHostTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name).resolve()
        self.path = self.root / "main.c"
        self.path.write_text("#include <stdio.h>\n\nint main(void)\n{\n  return 0;\n}\n", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_goto_line_moves_cursor(self) -> None:
        host = TextDocumentHost()
        handle = host.open_document(self.path)

        position = host.goto_line(handle, 3)

        self.assertEqual(position, handle.offset_of_line(3))
        self.assertEqual(host.current_cursor_reference(), LocationRef(self.path, position))
        self.assertEqual(host.current_line(), 3)

    def test_search_forward_lands_on_line_start(self) -> None:
        host = TextDocumentHost()
        handle = host.open_document(self.path)

        position = host.search_forward(handle, re.compile(r"return"))

        self.assertEqual(position, handle.offset_of_line(5))
        self.assertEqual(host.current_line(), 5)

    def test_search_forward_reports_missing_pattern(self) -> None:
        host = TextDocumentHost(cursor=LocationRef(self.path, 0))
        handle = host.open_document(self.path)

        self.assertIsNone(host.search_forward(handle, re.compile(r"^missing$", re.MULTILINE)))
        self.assertEqual(host.current_cursor_reference(), LocationRef(self.path, 0))

    def test_open_missing_document_raises(self) -> None:
        host = TextDocumentHost()

        with self.assertRaises(DocumentOpenError):
            host.open_document(self.root / "gone.c")
        with self.assertRaises(DocumentOpenError):
            host.open_document(self.root)

    def test_record_cursor_reference_normalizes(self) -> None:
        host = TextDocumentHost()
        handle = host.open_document(self.path)

        reference = host.record_cursor_reference(handle, 7)

        self.assertEqual(reference, LocationRef(self.path.resolve(), 7))


if __name__ == "__main__":
    unittest.main()
