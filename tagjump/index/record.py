"""Tag record parsing and search-pattern compilation.

A record line is ``NAME<TAB>FILE<TAB>LOCATION[;"<TAB>FIELDS...]`` where
LOCATION is a decimal line number or a ``/pattern/`` (``?pattern?``) search
command. Pattern text is stored escaped by the tag generator and is turned
into a literal-match regular expression here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import MalformedRecordError

_LEADING_DIGITS_RE = re.compile(r"\d+")
_FIELD_SEPARATOR = ';"'

# Characters the tag-generator escaping convention may put after a backslash
# to stand for themselves.
_SELF_ESCAPED = {"\\"}


@dataclass(frozen=True)
class LineNumber:
    line: int  # 1-based

    def describe(self) -> str:
        return str(self.line)


@dataclass(frozen=True)
class SearchPattern:
    raw_text: str
    anchored_at_start: bool = False
    anchored_at_end: bool = False
    delimiter: str = "/"

    def literal_text(self) -> str:
        """Return the source text the escaped pattern denotes."""
        return unescape_pattern_text(self.raw_text, self.delimiter)

    def to_regex(self) -> str:
        body = escape_pattern_text(self.raw_text, self.delimiter)
        prefix = "^" if self.anchored_at_start else ""
        suffix = "$" if self.anchored_at_end else ""
        return prefix + body + suffix

    def compile(self) -> re.Pattern[str]:
        """Compile a multiline regex matching the denoted line literally."""
        return re.compile(self.to_regex(), re.MULTILINE)

    def describe(self) -> str:
        return self.delimiter + ("^" if self.anchored_at_start else "") + self.raw_text + (
            "$" if self.anchored_at_end else ""
        ) + self.delimiter


Location = LineNumber | SearchPattern


@dataclass(frozen=True)
class TagRecord:
    tag_name: str
    file_path: str
    location: Location
    kind: str | None = None
    fields: dict[str, str] = field(default_factory=dict, compare=False, hash=False)
    line: str = field(default="", compare=False)

    def target_path(self, base_dir: Path | None = None) -> Path:
        """Resolve the record's file path, relative paths against ``base_dir``."""
        path = Path(self.file_path)
        if path.is_absolute() or base_dir is None:
            return path
        return base_dir / path

    @property
    def line_hint(self) -> int | None:
        """Return the ``line:`` extension field as an int, if present."""
        value = self.fields.get("line", "")
        return int(value) if value.isdecimal() else None


def _is_regex_meta(ch: str) -> bool:
    return re.escape(ch) != ch


def unescape_pattern_text(raw_text: str, delimiter: str = "/") -> str:
    """Decode generator escapes: ``\\/`` is ``/`` and ``\\\\`` is one backslash.

    A backslash before any other character stands for itself.
    """
    out: list[str] = []
    escaped = False
    for ch in raw_text:
        if escaped:
            escaped = False
            if ch == delimiter or ch in _SELF_ESCAPED:
                out.append(ch)
            else:
                out.append("\\")
                out.append(ch)
            continue
        if ch == "\\":
            escaped = True
            continue
        out.append(ch)
    if escaped:
        out.append("\\")
    return "".join(out)


def escape_pattern_text(raw_text: str, delimiter: str = "/") -> str:
    """Turn escaped pattern text into a regex matching it literally.

    Walks the text tracking whether the previous character was an unescaped
    backslash. Regex metacharacters are backslash-prefixed. ``\\/`` collapses
    to the delimiter, ``\\\\`` to one literal backslash (so ``\\\\/`` is a
    backslash followed by ``/``), and any other backslash pair is kept as a
    literal backslash followed by the character.
    """
    out: list[str] = []
    escaped = False
    for ch in raw_text:
        if escaped:
            escaped = False
            if ch == delimiter:
                out.append(re.escape(ch))
                continue
            # Previous backslash was literal: emit it escaped.
            out.append("\\\\")
            if ch == "\\":
                continue
            out.append("\\" + ch if _is_regex_meta(ch) else ch)
            continue
        if ch == "\\":
            escaped = True
            continue
        out.append("\\" + ch if _is_regex_meta(ch) else ch)
    if escaped:
        out.append("\\\\")
    return "".join(out)


def _parse_fields(text: str) -> tuple[str | None, dict[str, str]]:
    """Parse tab-separated extension fields after the ``;"`` marker."""
    kind: str | None = None
    fields: dict[str, str] = {}
    for token in text.split("\t"):
        if not token:
            continue
        key, sep, value = token.partition(":")
        if not sep:
            if kind is None:
                kind = token
            continue
        if key == "kind":
            kind = value
        fields.setdefault(key, value)
    return kind, fields


def _find_closing_delimiter(location_text: str, delimiter: str) -> int:
    """Return the index of the delimiter closing the pattern, or -1.

    Backslash pairs are skipped as a unit. The first unescaped delimiter
    followed by ``;`` or the end of the text closes the body; a bare one
    elsewhere belongs to the body.
    """
    index = 1
    end = len(location_text)
    while index < end:
        ch = location_text[index]
        if ch == "\\":
            index += 2
            continue
        if ch == delimiter and (index == end - 1 or location_text[index + 1] == ";"):
            return index
        index += 1
    return -1


def _split_pattern(location_text: str, line: str) -> tuple[SearchPattern, str]:
    """Split ``/body/;"fields`` into a pattern and the trailing field text."""
    delimiter = location_text[0]
    close = _find_closing_delimiter(location_text, delimiter)
    if close < 0:
        raise MalformedRecordError(line, "unterminated search pattern")

    body = location_text[1:close]
    anchored_at_start = body.startswith("^")
    if anchored_at_start:
        body = body[1:]
    anchored_at_end = False
    if body.endswith("$"):
        backslashes = len(body) - 1 - len(body[:-1].rstrip("\\"))
        if backslashes % 2 == 0:
            anchored_at_end = True
            body = body[:-1]

    rest = location_text[close + 1 :]
    if rest.startswith(";"):
        rest = rest[1:]
    if rest.startswith('"'):
        rest = rest[1:]
    return SearchPattern(body, anchored_at_start, anchored_at_end, delimiter), rest


def parse_record(line: str) -> TagRecord:
    """Parse one raw tag line.

    Raises ``MalformedRecordError`` when the line lacks a tag name, a file
    path, or a recognizable location field.
    """
    text = line.rstrip("\r\n")
    name, tab, rest = text.partition("\t")
    if not tab or not name:
        raise MalformedRecordError(line, "missing tag name")
    file_path, tab, location_text = rest.partition("\t")
    if not tab or not file_path:
        raise MalformedRecordError(line, "missing file path")
    if not location_text:
        raise MalformedRecordError(line, "missing location")

    location: Location
    match = _LEADING_DIGITS_RE.match(location_text)
    if match is not None:
        location = LineNumber(int(match.group(0)))
        tail = location_text[match.end() :]
        _before, sep, field_text = tail.partition(_FIELD_SEPARATOR)
        if not sep:
            field_text = ""
    elif location_text[0] in "/?":
        location, field_text = _split_pattern(location_text, line)
    else:
        raise MalformedRecordError(line, "location is neither a line number nor a pattern")

    kind, fields = _parse_fields(field_text)
    return TagRecord(
        tag_name=name,
        file_path=file_path,
        location=location,
        kind=kind,
        fields=fields,
        line=text,
    )


def try_parse_record(line: str) -> TagRecord | None:
    """Parse ``line``, returning ``None`` for malformed records."""
    try:
        return parse_record(line)
    except MalformedRecordError:
        return None
