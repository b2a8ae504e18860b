"""Tag index file access: header metadata, binary search, record parsing."""

from __future__ import annotations

from .header import SortMode, TagFileHeader, clear_header_cache, load_header, parse_header
from .record import (
    LineNumber,
    Location,
    SearchPattern,
    TagRecord,
    escape_pattern_text,
    parse_record,
    try_parse_record,
    unescape_pattern_text,
)
from .search import DEFAULT_SEARCH_PARAMS, SearchParams, complete, locate_block, search

__all__ = [
    "DEFAULT_SEARCH_PARAMS",
    "LineNumber",
    "Location",
    "SearchParams",
    "SearchPattern",
    "SortMode",
    "TagFileHeader",
    "TagRecord",
    "clear_header_cache",
    "complete",
    "escape_pattern_text",
    "load_header",
    "locate_block",
    "parse_header",
    "parse_record",
    "search",
    "try_parse_record",
    "unescape_pattern_text",
]
