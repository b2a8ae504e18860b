"""Tag lookup orchestration: search, disambiguate, navigate, record history.

``TagLookup`` is the surface a host drives. ``find_tag`` searches every
configured index file in order and either jumps straight to a single match
or hands the ordered candidates back for the host to choose from.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import MalformedRecordError, PatternNotFoundError
from .host import DocumentHost
from .index.header import load_header
from .index.record import LineNumber, TagRecord, parse_record
from .index.search import DEFAULT_SEARCH_PARAMS, SearchParams, complete, search
from .navigation import Direction, LocationRef, NavigationEntry, NavigationHistory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagMatch:
    """One parsed record plus the index file it was found in."""

    record: TagRecord
    index_path: Path

    @property
    def target_path(self) -> Path:
        return self.record.target_path(self.index_path.parent)


@dataclass(frozen=True)
class ResolvedTarget:
    match: TagMatch
    location: LocationRef


@dataclass(frozen=True)
class SingleMatch:
    target: ResolvedTarget


@dataclass(frozen=True)
class MultipleMatches:
    matches: tuple[TagMatch, ...]


@dataclass(frozen=True)
class NotFound:
    query: str


FindOutcome = SingleMatch | MultipleMatches | NotFound


class TagLookup:
    """Ties index search, record resolution, host navigation and history together."""

    def __init__(
        self,
        host: DocumentHost,
        history: NavigationHistory | None = None,
        case_fold: bool = False,
        params: SearchParams = DEFAULT_SEARCH_PARAMS,
    ) -> None:
        self.host = host
        self.history = history if history is not None else NavigationHistory()
        self.case_fold = case_fold
        self.params = params

    def search_index_files(self, query: str, index_files: list[Path]) -> list[TagMatch]:
        """Collect valid records for ``query`` from each file, in the given order."""
        matches: list[TagMatch] = []
        for index_path in index_files:
            header = load_header(index_path)
            for line in search(header, query, case_fold=self.case_fold, params=self.params):
                try:
                    record = parse_record(line)
                except MalformedRecordError as exc:
                    logger.debug("skipping record in %s: %s", index_path, exc)
                    continue
                matches.append(TagMatch(record=record, index_path=index_path))
        return matches

    def complete(self, prefix: str, index_files: list[Path]) -> list[str]:
        """Return distinct tag names starting with ``prefix`` across all files."""
        names: list[str] = []
        seen: set[str] = set()
        for index_path in index_files:
            header = load_header(index_path)
            for name in complete(header, prefix, case_fold=self.case_fold, params=self.params):
                if name not in seen:
                    seen.add(name)
                    names.append(name)
        return names

    def find_tag(self, name: str, index_files: list[Path]) -> FindOutcome:
        matches = self.search_index_files(name, index_files)
        if not matches:
            return NotFound(name)
        if len(matches) == 1:
            return SingleMatch(self.select(matches[0]))
        return MultipleMatches(tuple(matches))

    def select(self, match: TagMatch) -> ResolvedTarget:
        """Jump to ``match`` and record departure then arrival in history."""
        departure = self.host.current_cursor_reference()
        target = self.resolve_and_navigate(match)
        if departure is not None:
            self.history.record(departure)
        self.history.record(target.location)
        return target

    def resolve_and_navigate(self, match: TagMatch) -> ResolvedTarget:
        """Open the record's file and move the host cursor to its location.

        Raises ``DocumentOpenError`` when the file cannot be opened and
        ``PatternNotFoundError`` when a search pattern matches no line and the
        record carries no ``line:`` field to fall back on.
        """
        record = match.record
        path = match.target_path
        handle = self.host.open_document(path)
        location = record.location
        if isinstance(location, LineNumber):
            position = self.host.goto_line(handle, location.line)
        else:
            position = self.host.search_forward(handle, location.compile(), 0)
            if position is None:
                hint = record.line_hint
                if hint is None:
                    raise PatternNotFoundError(path, location.raw_text)
                logger.debug("pattern for %s not found in %s; using line %d", record.tag_name, path, hint)
                position = self.host.goto_line(handle, hint)
        arrival = self.host.record_cursor_reference(handle, position)
        return ResolvedTarget(match=match, location=arrival)

    def _visit(self, entry: NavigationEntry) -> NavigationEntry:
        handle = self.host.open_document(entry.location.path)
        self.host.goto_position(handle, entry.location.offset or 0)
        return entry

    def _move(self, direction: Direction) -> NavigationEntry:
        # Navigate before committing so a failed jump leaves ``current`` alone.
        self._visit(self.history.peek(direction))
        return self.history.jump(direction)

    def history_back(self) -> NavigationEntry:
        return self._move(Direction.BACK)

    def history_forward(self) -> NavigationEntry:
        return self._move(Direction.FORWARD)

    def history_current(self) -> NavigationEntry:
        return self._move(Direction.STAY)

    def history_reset(self) -> None:
        self.history.reset()
