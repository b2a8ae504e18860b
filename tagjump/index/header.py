"""Tag-file header parsing and per-path header cache.

Only the first ``HEADER_READ_BYTES`` of a file are inspected for
``!_TAG_<FIELD><whitespace><value>`` lines. Missing headers are not an
error; every field keeps a documented default.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from ..errors import IndexFileError

logger = logging.getLogger(__name__)

HEADER_READ_BYTES = 1024
UNKNOWN_PROGRAM = "unknown"

_HEADER_LINE_RE = re.compile(
    rb"^!_TAG_(FILE_FORMAT|FILE_SORTED|PROGRAM_AUTHOR|PROGRAM_NAME|PROGRAM_URL|PROGRAM_VERSION)"
    rb"[ \t]+([^\t\r\n]*)",
    re.MULTILINE,
)


class SortMode(enum.IntEnum):
    """Declared ordering of records, as written in ``!_TAG_FILE_SORTED``."""

    UNSORTED = 0
    SORTED = 1
    SORTED_FOLD_CASE = 2


@dataclass(frozen=True)
class TagFileHeader:
    path: Path
    size_bytes: int
    format_version: int | None = None
    sorted_mode: SortMode = SortMode.SORTED
    program_author: str = UNKNOWN_PROGRAM
    program_name: str = UNKNOWN_PROGRAM
    program_url: str = UNKNOWN_PROGRAM
    program_version: str = UNKNOWN_PROGRAM

    @property
    def generator_name(self) -> str:
        return self.program_name

    @property
    def generator_version(self) -> str:
        return self.program_version

    @property
    def is_sorted(self) -> bool:
        return self.sorted_mode != SortMode.UNSORTED

    def folds_case(self, case_fold: bool) -> bool:
        """Return effective case folding: fold-case files always fold."""
        return case_fold or self.sorted_mode == SortMode.SORTED_FOLD_CASE


def _leading_int(value: str) -> int | None:
    match = re.match(r"\d+", value)
    return int(match.group(0)) if match else None


def parse_header(path: Path) -> TagFileHeader:
    """Parse header metadata from the start of ``path``.

    Raises ``IndexFileError`` when the file cannot be opened or stat'ed.
    Unrecognized or malformed field values keep their defaults.
    """
    try:
        size_bytes = path.stat().st_size
        with path.open("rb") as handle:
            head = handle.read(HEADER_READ_BYTES)
    except OSError as exc:
        raise IndexFileError(path, exc.strerror or str(exc)) from exc

    fields: dict[str, str] = {}
    for match in _HEADER_LINE_RE.finditer(head):
        name = match.group(1).decode("ascii")
        # First occurrence wins; later duplicates are ignored.
        fields.setdefault(name, match.group(2).decode("utf-8", errors="replace").strip())

    format_version = _leading_int(fields.get("FILE_FORMAT", ""))

    sorted_mode = SortMode.SORTED
    raw_sorted = _leading_int(fields.get("FILE_SORTED", ""))
    if raw_sorted is not None:
        try:
            sorted_mode = SortMode(raw_sorted)
        except ValueError:
            logger.debug("ignoring unknown sort mode %s in %s", raw_sorted, path)

    header = TagFileHeader(
        path=path,
        size_bytes=size_bytes,
        format_version=format_version,
        sorted_mode=sorted_mode,
        program_author=fields.get("PROGRAM_AUTHOR") or UNKNOWN_PROGRAM,
        program_name=fields.get("PROGRAM_NAME") or UNKNOWN_PROGRAM,
        program_url=fields.get("PROGRAM_URL") or UNKNOWN_PROGRAM,
        program_version=fields.get("PROGRAM_VERSION") or UNKNOWN_PROGRAM,
    )
    logger.debug(
        "parsed header for %s: format=%s sorted=%s generator=%s %s",
        path,
        header.format_version,
        header.sorted_mode.name,
        header.program_name,
        header.program_version,
    )
    return header


_HEADER_CACHE: dict[Path, TagFileHeader] = {}


def _cache_key(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path.absolute()


def load_header(path: Path, reload: bool = False) -> TagFileHeader:
    """Return the cached header for ``path``, parsing it on first use."""
    key = _cache_key(path)
    if not reload:
        cached = _HEADER_CACHE.get(key)
        if cached is not None:
            return cached
    header = parse_header(path)
    _HEADER_CACHE[key] = header
    return header


def clear_header_cache() -> None:
    """Forget every cached header."""
    _HEADER_CACHE.clear()
