"""Command-line front door for tagjump.

Parses CLI options, loads config and saved history, and dispatches one
lookup or history command against a filesystem-backed host. Failures are
reported as ``SystemExit`` messages.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .editor import launch_editor
from .errors import TagJumpError
from .highlight import format_location_line
from .host import TextDocumentHost
from .index.header import load_header
from .lookup import MultipleMatches, NotFound, SingleMatch, TagLookup, TagMatch
from .navigation import LocationRef, NavigationHistory


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tagjump",
        description="Look up symbols in sorted ctags files and keep a jump history.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log search and history details.")
    parser.add_argument(
        "-f",
        "--tag-file",
        dest="tag_files",
        action="append",
        type=Path,
        default=None,
        help="Tag file to search (repeatable). Defaults to the configured list.",
    )
    parser.add_argument("--fold-case", action="store_true", help="Compare tag names ignoring case.")
    parser.add_argument("--style", default=None, help="Pygments style name for previews.")
    parser.add_argument("--no-color", action="store_true", help="Disable colored previews.")

    commands = parser.add_subparsers(dest="command", required=True)

    find = commands.add_parser("find", help="Jump to a tag or list its candidates.")
    find.add_argument("name")
    find.add_argument("--select", type=_positive_int, default=None, help="Pick candidate N (1-based).")
    find.add_argument("--from", dest="origin", default=None, help="Departure location as PATH or PATH:LINE.")
    find.add_argument("--edit", action="store_true", help="Open the target in $EDITOR.")

    complete = commands.add_parser("complete", help="List tag names starting with a prefix.")
    complete.add_argument("prefix")

    header = commands.add_parser("header", help="Show tag-file header metadata.")
    header.add_argument("tag_file", type=Path)

    for name, help_text in (
        ("back", "Jump to the previous recorded location."),
        ("forward", "Jump to the next recorded location."),
        ("current", "Show the current recorded location."),
    ):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("--edit", action="store_true", help="Open the location in $EDITOR.")

    commands.add_parser("reset", help="Forget all recorded locations.")
    commands.add_parser("history", help="List recorded locations, oldest first.")
    return parser


def _departure(host: TextDocumentHost, origin: str | None) -> LocationRef | None:
    """Parse ``PATH[:LINE]`` into a location, file-only when no line is given."""
    if not origin:
        return None
    raw_path, sep, raw_line = origin.rpartition(":")
    if not sep or not raw_line.isdecimal():
        return LocationRef(Path(origin)).normalized()
    handle = host.open_document(Path(raw_path))
    position = host.goto_line(handle, int(raw_line))
    return host.record_cursor_reference(handle, position)


def _describe_match(index: int, match: TagMatch) -> str:
    record = match.record
    kind = f" [{record.kind}]" if record.kind else ""
    return f"{index:>3}) {record.tag_name}{kind}  {match.target_path}  {record.location.describe()}\n"


def _show_cursor(host: TextDocumentHost, args: argparse.Namespace, style: str) -> None:
    """Print ``path:line: text`` for the host cursor and optionally open an editor."""
    document = host.document
    line = host.current_line()
    if document is None or line is None:
        return
    sys.stdout.write(
        format_location_line(document.path, line, document.line_text(line), style=style, no_color=args.no_color)
        + "\n"
    )
    if getattr(args, "edit", False):
        error = launch_editor(document.path, line)
        if error:
            raise SystemExit(error)


def _run_find(lookup: TagLookup, args: argparse.Namespace, tag_files: list[Path], style: str) -> None:
    host = lookup.host
    assert isinstance(host, TextDocumentHost)
    host.cursor = _departure(host, args.origin)

    outcome = lookup.find_tag(args.name, tag_files)
    if isinstance(outcome, NotFound):
        raise SystemExit(f"Tag not found: {outcome.query}")
    if isinstance(outcome, SingleMatch):
        _show_cursor(host, args, style)
        return

    assert isinstance(outcome, MultipleMatches)
    if args.select is None:
        for index, match in enumerate(outcome.matches, start=1):
            sys.stdout.write(_describe_match(index, match))
        return
    if args.select > len(outcome.matches):
        raise SystemExit(f"--select must be between 1 and {len(outcome.matches)}.")
    lookup.select(outcome.matches[args.select - 1])
    _show_cursor(host, args, style)


def _run_history(lookup: TagLookup, args: argparse.Namespace, style: str) -> None:
    if args.command == "reset":
        lookup.history_reset()
        return
    if args.command == "history":
        current = lookup.history.current()
        for entry in lookup.history.entries():
            marker = "*" if current is not None and entry.sequence_key == current.sequence_key else " "
            offset = "" if entry.location.offset is None else f"@{entry.location.offset}"
            sys.stdout.write(f"{marker}{entry.sequence_key:>4} {entry.location.path}{offset}\n")
        return
    if args.command == "back":
        lookup.history_back()
    elif args.command == "forward":
        lookup.history_forward()
    else:
        lookup.history_current()
    assert isinstance(lookup.host, TextDocumentHost)
    _show_cursor(lookup.host, args, style)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run one tagjump command."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "header":
        try:
            header = load_header(args.tag_file)
        except TagJumpError as exc:
            raise SystemExit(str(exc)) from exc
        version = "unknown" if header.format_version is None else str(header.format_version)
        sys.stdout.write(
            f"path: {header.path}\n"
            f"size: {header.size_bytes}\n"
            f"format: {version}\n"
            f"sorted: {header.sorted_mode.name.lower()}\n"
            f"generator: {header.generator_name} {header.generator_version}\n"
        )
        return

    tag_files = args.tag_files or config.load_tag_files()
    style = args.style or config.load_style_name()
    history = config.load_history(NavigationHistory())
    lookup = TagLookup(
        TextDocumentHost(),
        history=history,
        case_fold=args.fold_case or config.load_case_fold(),
        params=config.load_search_params(),
    )

    try:
        if args.command == "complete":
            for name in lookup.complete(args.prefix, tag_files):
                sys.stdout.write(name + "\n")
            return
        if args.command == "find":
            _run_find(lookup, args, tag_files, style)
        else:
            _run_history(lookup, args, style)
    except TagJumpError as exc:
        raise SystemExit(str(exc)) from exc
    finally:
        config.save_history(lookup.history)


if __name__ == "__main__":
    main()
