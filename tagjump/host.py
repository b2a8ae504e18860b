"""Host collaborator interface and a plain-text filesystem host.

The lookup core only needs to open documents, move a cursor to a line or
offset, search forward for a compiled pattern, and turn cursor positions
into ``LocationRef`` values. ``TextDocumentHost`` does this over files read
from disk and is what the command-line front end drives.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from .errors import DocumentOpenError
from .highlight import read_text
from .navigation import LocationRef


class DocumentHost(Protocol):
    def open_document(self, path: Path) -> object: ...

    def goto_line(self, handle: object, line: int) -> int: ...

    def goto_position(self, handle: object, position: int) -> int: ...

    def search_forward(self, handle: object, pattern: re.Pattern[str], start: int = 0) -> int | None: ...

    def record_cursor_reference(self, handle: object, position: int) -> LocationRef: ...

    def current_cursor_reference(self) -> LocationRef | None: ...


@dataclass
class TextDocument:
    """Loaded document text with a lazily built line-start table."""

    path: Path
    text: str
    _line_starts: list[int] = field(default_factory=list, repr=False)

    def line_starts(self) -> list[int]:
        if not self._line_starts:
            starts = [0]
            for index, ch in enumerate(self.text):
                if ch == "\n" and index + 1 < len(self.text):
                    starts.append(index + 1)
            self._line_starts = starts
        return self._line_starts

    @property
    def line_count(self) -> int:
        return len(self.line_starts())

    def offset_of_line(self, line: int) -> int:
        """Return the offset where 1-based ``line`` starts, clamped to the text."""
        starts = self.line_starts()
        index = max(0, min(len(starts) - 1, line - 1))
        return starts[index]

    def line_of_offset(self, offset: int) -> int:
        """Return the 1-based line containing ``offset``."""
        offset = max(0, min(len(self.text), offset))
        return bisect.bisect_right(self.line_starts(), offset)

    def line_text(self, line: int) -> str:
        start = self.offset_of_line(line)
        end = self.text.find("\n", start)
        return self.text[start:] if end < 0 else self.text[start:end]


class TextDocumentHost:
    """Filesystem host: documents are files, the cursor is one ``LocationRef``."""

    def __init__(self, cursor: LocationRef | None = None) -> None:
        self.cursor = cursor
        self.document: TextDocument | None = None

    def open_document(self, path: Path) -> TextDocument:
        if not path.is_file():
            raise DocumentOpenError(path, "no such file")
        try:
            text = read_text(path)
        except OSError as exc:
            raise DocumentOpenError(path, exc.strerror or str(exc)) from exc
        self.document = TextDocument(path=path, text=text)
        return self.document

    def goto_position(self, handle: TextDocument, position: int) -> int:
        position = max(0, min(len(handle.text), position))
        self.document = handle
        self.cursor = LocationRef(handle.path, position)
        return position

    def goto_line(self, handle: TextDocument, line: int) -> int:
        return self.goto_position(handle, handle.offset_of_line(line))

    def search_forward(self, handle: TextDocument, pattern: re.Pattern[str], start: int = 0) -> int | None:
        """Find ``pattern`` at or after ``start`` and land on its line start."""
        match = pattern.search(handle.text, start)
        if match is None:
            return None
        line_start = handle.text.rfind("\n", 0, match.start()) + 1
        return self.goto_position(handle, line_start)

    def record_cursor_reference(self, handle: TextDocument, position: int) -> LocationRef:
        return LocationRef(handle.path, position).normalized()

    def current_cursor_reference(self) -> LocationRef | None:
        return self.cursor

    def current_line(self) -> int | None:
        """Return the 1-based cursor line in the current document."""
        if self.document is None or self.cursor is None or self.cursor.offset is None:
            return None
        return self.document.line_of_offset(self.cursor.offset)
