"""Typed failures raised by tag lookup, record resolution, and history moves.

Every error derives from ``TagJumpError`` so hosts can report any of them
with one ``except`` clause. Malformed records are the only kind recovered
locally (the offending line is dropped during scans).
"""

from __future__ import annotations

from pathlib import Path


class TagJumpError(Exception):
    """Base class for all tagjump failures."""


class IndexFileError(TagJumpError):
    """Index file could not be opened or read."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot read tag file {path}: {reason}")
        self.path = path
        self.reason = reason


class UnsortedIndexError(TagJumpError):
    """Binary search requested on a file whose header declares it unsorted."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Tag file {path} is not sorted; binary search is not possible.")
        self.path = path


class ChunkTooSmallError(TagJumpError):
    """Probe could not sample a full line even at the maximum chunk size."""

    def __init__(self, path: Path, query: str, max_chunk_size: int) -> None:
        super().__init__(
            f"Cannot sample {path} for {query!r} within {max_chunk_size} bytes; "
            "increase the block parameters."
        )
        self.path = path
        self.query = query
        self.max_chunk_size = max_chunk_size


class MalformedRecordError(TagJumpError):
    """Tag line lacks the separators or location field a record needs."""

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"Malformed tag record ({reason}): {line!r}")
        self.line = line
        self.reason = reason


class DocumentOpenError(TagJumpError):
    """Host could not open the target document."""

    def __init__(self, path: Path, reason: str = "") -> None:
        message = f"Cannot open {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.path = path
        self.reason = reason


class PatternNotFoundError(TagJumpError):
    """Search-pattern location did not match any line of the target file."""

    def __init__(self, path: Path, pattern: str) -> None:
        super().__init__(f"Pattern {pattern!r} not found in {path}")
        self.path = path
        self.pattern = pattern


class HistoryAtBeginningError(TagJumpError):
    def __init__(self) -> None:
        super().__init__("Already at the oldest location.")


class HistoryAtEndError(TagJumpError):
    def __init__(self) -> None:
        super().__init__("Already at the newest location.")


class HistoryEmptyError(TagJumpError):
    def __init__(self) -> None:
        super().__init__("No locations recorded yet.")
