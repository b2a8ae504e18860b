"""Binary search over sorted tag files using bounded positioned reads.

Lookup runs in two phases. A block-level binary search samples the first
full line after each probed block boundary to find the single block that
must hold the start of any matching run. A linear scan then walks lines
forward from that block, collecting matches until a line sorts after the
query.

No file bytes are cached between calls; each search opens the file, reads
what it needs, and closes it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from ..errors import ChunkTooSmallError, IndexFileError, UnsortedIndexError
from .header import TagFileHeader

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_SIZE = 4096
DEFAULT_CHUNK_SIZE = 1024
DEFAULT_MAX_CHUNK_SIZE = 16384

PSEUDO_TAG_PREFIX = b"!_TAG_"


@dataclass(frozen=True)
class SearchParams:
    """Block and probe sizes (in bytes) used while searching one file."""

    block_size: int = DEFAULT_BLOCK_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE


DEFAULT_SEARCH_PARAMS = SearchParams()


def _fold(data: bytes, fold: bool) -> bytes:
    # ctags --sort=foldcase orders as if every letter were uppercase.
    return data.upper() if fold else data


def _sample_line_prefix(
    handle: BinaryIO,
    offset: int,
    length: int,
    params: SearchParams,
) -> tuple[bytes, bool] | None:
    """Read the first ``length`` bytes of the first full line after ``offset``.

    Returns ``(sample, found)`` where ``found`` is false when no line starts
    after ``offset``. Chunks are doubled up to ``params.max_chunk_size`` while
    the partial line plus the sampled line do not fit; ``None`` means the
    ceiling was reached without a usable sample.
    """
    chunk_size = params.chunk_size
    while True:
        handle.seek(offset)
        chunk = handle.read(chunk_size)
        at_eof = len(chunk) < chunk_size

        if offset == 0:
            start = 0
        else:
            first_break = chunk.find(b"\n")
            start = first_break + 1 if first_break >= 0 else -1

        if start < 0:
            if at_eof:
                return b"", False
        elif start >= len(chunk) and at_eof:
            return b"", False
        else:
            line_end = chunk.find(b"\n", start)
            if line_end >= 0 or at_eof or len(chunk) - start >= length:
                if line_end < 0:
                    line_end = len(chunk)
                return chunk[start : min(line_end, start + length)], True

        if chunk_size >= params.max_chunk_size:
            return None
        chunk_size = min(chunk_size * 2, params.max_chunk_size)
        logger.debug("probe at %d needs a larger chunk; retrying with %d bytes", offset, chunk_size)


def _file_size(handle: BinaryIO) -> int:
    return os.fstat(handle.fileno()).st_size


def _locate_block(
    handle: BinaryIO,
    header: TagFileHeader,
    query: str,
    query_key: bytes,
    fold: bool,
    params: SearchParams,
) -> tuple[int, int]:
    """Narrow ``[low, high)`` block bounds around the first possible match.

    A sample equal to the query counts as not-less and narrows ``high``.
    """
    block_size = params.block_size
    size = _file_size(handle)
    low = 0
    high = max(1, -(-size // block_size))
    while high > low + 1:
        mid = (low + high) // 2
        probe = _sample_line_prefix(handle, mid * block_size, len(query_key), params)
        if probe is None:
            raise ChunkTooSmallError(header.path, query, params.max_chunk_size)
        sample, found = probe
        if found and _fold(sample, fold) < query_key:
            low = mid
        else:
            high = mid
        logger.debug("probe block %d of %s: sample=%r -> [%d, %d)", mid, header.path, sample, low, high)
    return low, high


def _iter_lines(handle: BinaryIO, offset: int, block_size: int) -> Iterator[bytes]:
    """Yield complete lines starting after ``offset``.

    Reads two blocks first (a run of matches may straddle a block boundary),
    then one block at a time. The line containing ``offset`` is skipped unless
    ``offset`` is the start of the file.
    """
    handle.seek(offset)
    read_size = 2 * block_size
    skip_partial = offset > 0
    pending = b""
    while True:
        chunk = handle.read(read_size)
        read_size = block_size
        pending += chunk
        lines = pending.split(b"\n")
        pending = lines.pop()
        for line in lines:
            if skip_partial:
                skip_partial = False
                continue
            yield line[:-1] if line.endswith(b"\r") else line
        if not chunk:
            if pending and not skip_partial:
                yield pending
            return


def _tag_name(line: bytes) -> bytes | None:
    """Return the tag-name field, or ``None`` for lines that are not records."""
    tab = line.find(b"\t")
    if tab <= 0:
        return None
    return line[:tab]


def _check_query(header: TagFileHeader, query: str, params: SearchParams) -> None:
    if not header.is_sorted:
        raise UnsortedIndexError(header.path)
    if len(query.encode("utf-8")) > params.max_chunk_size:
        raise ChunkTooSmallError(header.path, query, params.max_chunk_size)


def locate_block(
    header: TagFileHeader,
    query: str,
    case_fold: bool = False,
    params: SearchParams = DEFAULT_SEARCH_PARAMS,
) -> tuple[int, int]:
    """Run only the binary-search phase and return ``(low_block, high_block)``."""
    _check_query(header, query, params)
    fold = header.folds_case(case_fold)
    query_key = _fold(query.encode("utf-8"), fold)
    try:
        with header.path.open("rb") as handle:
            return _locate_block(handle, header, query, query_key, fold, params)
    except OSError as exc:
        raise IndexFileError(header.path, exc.strerror or str(exc)) from exc


def search(
    header: TagFileHeader,
    query: str,
    case_fold: bool = False,
    exact: bool = True,
    params: SearchParams = DEFAULT_SEARCH_PARAMS,
) -> list[str]:
    """Return matching record lines of ``header.path`` in file order.

    With ``exact`` the tag-name field must equal ``query``; otherwise every
    record whose line starts with ``query`` is returned. Comparisons fold
    case when ``case_fold`` is set or the file was sorted with folded case.

    Raises ``UnsortedIndexError`` before any I/O for unsorted files and
    ``ChunkTooSmallError`` when a probe cannot be sampled.
    """
    _check_query(header, query, params)
    if not query:
        return []

    fold = header.folds_case(case_fold)
    query_key = _fold(query.encode("utf-8"), fold)
    key_len = len(query_key)
    matches: list[str] = []
    try:
        with header.path.open("rb") as handle:
            low, high = _locate_block(handle, header, query, query_key, fold, params)
            logger.debug("scanning %s from block %d (high %d) for %r", header.path, low, high, query)
            for line in _iter_lines(handle, low * params.block_size, params.block_size):
                if len(line) < key_len:
                    continue
                prefix = _fold(line[:key_len], fold)
                if prefix > query_key:
                    break
                if prefix != query_key or line.startswith(PSEUDO_TAG_PREFIX):
                    continue
                name = _tag_name(line)
                if name is None:
                    logger.debug("dropping malformed line in %s: %r", header.path, line[:80])
                    continue
                if exact and _fold(name, fold) != query_key:
                    continue
                matches.append(line.decode("utf-8", errors="replace"))
    except OSError as exc:
        raise IndexFileError(header.path, exc.strerror or str(exc)) from exc
    return matches


def complete(
    header: TagFileHeader,
    prefix: str,
    case_fold: bool = False,
    params: SearchParams = DEFAULT_SEARCH_PARAMS,
) -> list[str]:
    """Return distinct tag names starting with ``prefix`` in file order."""
    names: list[str] = []
    seen: set[str] = set()
    for line in search(header, prefix, case_fold=case_fold, exact=False, params=params):
        name = line.split("\t", 1)[0]
        if name in seen:
            continue
        seen.add(name)
        names.append(name)
    return names
