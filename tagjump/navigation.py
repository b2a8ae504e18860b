"""Navigation primitives: location references and the jump history.

This module intentionally has no host concerns.
Entries are addressed by a dense, monotonically increasing sequence key;
"back" and "forward" step the current key by one.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import HistoryAtBeginningError, HistoryAtEndError, HistoryEmptyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocationRef:
    """Place in a document; ``offset`` is ``None`` for a file-only reference."""

    path: Path
    offset: int | None = None

    @property
    def is_resolved(self) -> bool:
        return self.offset is not None

    def normalized(self) -> LocationRef:
        try:
            resolved = self.path.resolve()
        except OSError:
            resolved = self.path
        offset = None if self.offset is None else max(0, self.offset)
        return LocationRef(path=resolved, offset=offset)


@dataclass(frozen=True)
class NavigationEntry:
    sequence_key: int
    location: LocationRef


class Direction(enum.Enum):
    BACK = "back"
    FORWARD = "forward"
    STAY = "stay"


class NavigationHistory:
    """Append-only jump history with a movable ``current`` pointer.

    ``record`` always appends a new newest entry and makes it current, even
    when ``current`` was moved back first. The history is unbounded unless
    ``max_entries`` is given, in which case the oldest entries are dropped
    once it is exceeded; keys are never reused within a run.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        self.max_entries = None if max_entries is None else max(1, max_entries)
        self._entries: list[NavigationEntry] = []
        self._current_key: int | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def _entry_for_key(self, key: int) -> NavigationEntry | None:
        if not self._entries:
            return None
        index = key - self._entries[0].sequence_key
        if 0 <= index < len(self._entries):
            return self._entries[index]
        return None

    def record(self, location: LocationRef) -> int:
        """Append ``location`` as the newest entry and return its key."""
        key = self._entries[-1].sequence_key + 1 if self._entries else 1
        self._entries.append(NavigationEntry(key, location.normalized()))
        if self.max_entries is not None:
            overflow = len(self._entries) - self.max_entries
            if overflow > 0:
                del self._entries[:overflow]
        self._current_key = key
        logger.debug("recorded history entry %d: %s", key, location)
        return key

    def current(self) -> NavigationEntry | None:
        if self._current_key is None:
            return None
        return self._entry_for_key(self._current_key)

    def peek(self, direction: Direction) -> NavigationEntry:
        """Return the entry ``jump(direction)`` would land on without moving."""
        current = self.current()
        if current is None:
            raise HistoryEmptyError()
        if direction is Direction.STAY:
            return current
        if direction is Direction.BACK:
            target = self._entry_for_key(current.sequence_key - 1)
            if target is None:
                raise HistoryAtBeginningError()
            return target
        target = self._entry_for_key(current.sequence_key + 1)
        if target is None:
            raise HistoryAtEndError()
        return target

    def jump(self, direction: Direction) -> NavigationEntry:
        target = self.peek(direction)
        self._current_key = target.sequence_key
        if direction is not Direction.STAY:
            logger.debug("history %s to entry %d", direction.value, target.sequence_key)
        return target

    def back(self) -> NavigationEntry:
        return self.jump(Direction.BACK)

    def forward(self) -> NavigationEntry:
        return self.jump(Direction.FORWARD)

    def reset(self) -> None:
        self._entries.clear()
        self._current_key = None

    def entries(self) -> list[NavigationEntry]:
        """Return all entries, oldest first."""
        return list(self._entries)

    def restore(self, entries: list[NavigationEntry], current_key: int | None) -> None:
        """Replace contents with previously saved entries.

        Only the newest run of consecutive keys is kept. ``current_key`` falls
        back to the newest entry when it does not name a kept entry.
        """
        ordered = sorted(entries, key=lambda entry: entry.sequence_key)
        kept: list[NavigationEntry] = []
        for entry in reversed(ordered):
            if kept and entry.sequence_key != kept[-1].sequence_key - 1:
                break
            kept.append(entry)
        kept.reverse()
        if self.max_entries is not None:
            kept = kept[-self.max_entries :]
        self._entries = kept
        self._current_key = None
        if not self._entries:
            return
        if current_key is not None and self._entry_for_key(current_key) is not None:
            self._current_key = current_key
        else:
            self._current_key = self._entries[-1].sequence_key
