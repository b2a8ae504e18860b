"""Tests for source loading and highlighted location previews."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from tagjump.highlight import colorize_source, format_location_line, read_text, sanitize_terminal_text


class HighlightPreviewTests(unittest.TestCase):
    def test_read_text_falls_back_to_latin1(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "legacy.c"
            path.write_bytes(b"char *s = \"caf\xe9\";\n")

            self.assertEqual(read_text(path), "char *s = \"café\";\n")

    def test_control_bytes_are_escaped(self) -> None:
        self.assertEqual(sanitize_terminal_text("a\x1b[2Jb\tc"), "a\\x1b[2Jb\tc")

    def test_plain_location_line(self) -> None:
        line = format_location_line(Path("src/main.c"), 12, "int main(void)", no_color=True)

        self.assertEqual(line, "src/main.c:12: int main(void)")

    def test_colorized_location_line_keeps_text(self) -> None:
        rendered = colorize_source("int main(void)", Path("main.c"), style="no-such-style")

        self.assertIn("\x1b[", rendered)
        self.assertFalse(rendered.endswith("\n"))
        self.assertIn("main", rendered)


if __name__ == "__main__":
    unittest.main()
