"""Persistent JSON config and navigation-history helpers.

Stores the tag files to search, the case-folding preference, block/probe
sizes, and the preview style. History lives in its own file next to it.
Malformed or missing files fall back to defaults.
"""

from __future__ import annotations

import json
from pathlib import Path

from platformdirs import user_config_dir

from .highlight import DEFAULT_STYLE
from .index.search import DEFAULT_SEARCH_PARAMS, SearchParams
from .navigation import LocationRef, NavigationEntry, NavigationHistory

APP_NAME = "tagjump"
CONFIG_FILENAME = "config.json"
HISTORY_FILENAME = "history.json"
CONFIG_DIR = Path(user_config_dir(APP_NAME, appauthor=False))
CONFIG_PATH = CONFIG_DIR / CONFIG_FILENAME
HISTORY_PATH = CONFIG_DIR / HISTORY_FILENAME
DEFAULT_TAG_FILES = ("tags",)


def _load_json(path: Path) -> dict[str, object]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def _save_json(path: Path, data: dict[str, object]) -> None:
    # Write failures are ignored; a missing config only loses preferences.
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError:
        pass


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    return _load_json(CONFIG_PATH)


def save_config(data: dict[str, object]) -> None:
    _save_json(CONFIG_PATH, data)


def _coerce_positive_int(value: object, default: int) -> int:
    """Booleans, non-integers and values below 1 fall back to ``default``."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return default
    return value


def load_tag_files() -> list[Path]:
    """Return configured tag files in search order.

    Non-string and empty entries are dropped; an empty or invalid list falls
    back to ``DEFAULT_TAG_FILES``.
    """
    value = load_config().get("tag_files")
    paths: list[Path] = []
    if isinstance(value, list):
        paths = [Path(item) for item in value if isinstance(item, str) and item.strip()]
    return paths or [Path(name) for name in DEFAULT_TAG_FILES]


def save_tag_files(paths: list[Path]) -> None:
    config = load_config()
    config["tag_files"] = [str(path) for path in paths]
    save_config(config)


def load_case_fold() -> bool:
    value = load_config().get("case_fold")
    return value if isinstance(value, bool) else False


def save_case_fold(case_fold: bool) -> None:
    config = load_config()
    config["case_fold"] = bool(case_fold)
    save_config(config)


def load_search_params() -> SearchParams:
    """Build ``SearchParams`` from config, keeping ``max_chunk_size >= chunk_size``."""
    config = load_config()
    block_size = _coerce_positive_int(config.get("block_size"), DEFAULT_SEARCH_PARAMS.block_size)
    chunk_size = _coerce_positive_int(config.get("chunk_size"), DEFAULT_SEARCH_PARAMS.chunk_size)
    max_chunk_size = _coerce_positive_int(config.get("max_chunk_size"), DEFAULT_SEARCH_PARAMS.max_chunk_size)
    return SearchParams(
        block_size=block_size,
        chunk_size=chunk_size,
        max_chunk_size=max(chunk_size, max_chunk_size),
    )


def load_style_name() -> str:
    """Load persisted Pygments style name, defaulting when unset/invalid."""
    value = load_config().get("style")
    if not isinstance(value, str) or not value.strip():
        return DEFAULT_STYLE
    return value.strip()


def load_history(history: NavigationHistory) -> NavigationHistory:
    """Restore saved entries into ``history`` with strict validation.

    Entries with a non-positive or non-integer key, or a missing path, are
    dropped. Offsets that are not non-negative integers become file-only.
    """
    data = _load_json(HISTORY_PATH)
    raw_entries = data.get("entries")
    entries: list[NavigationEntry] = []
    if isinstance(raw_entries, list):
        for raw in raw_entries:
            if not isinstance(raw, dict):
                continue
            key = _coerce_positive_int(raw.get("key"), 0)
            raw_path = raw.get("path")
            if key == 0 or not isinstance(raw_path, str) or not raw_path:
                continue
            offset = raw.get("offset")
            if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
                offset = None
            entries.append(NavigationEntry(key, LocationRef(Path(raw_path), offset)))

    current_key = data.get("current")
    if isinstance(current_key, bool) or not isinstance(current_key, int):
        current_key = None
    history.restore(entries, current_key)
    return history


def save_history(history: NavigationHistory) -> None:
    current = history.current()
    _save_json(
        HISTORY_PATH,
        {
            "current": current.sequence_key if current is not None else None,
            "entries": [
                {
                    "key": entry.sequence_key,
                    "path": str(entry.location.path),
                    "offset": entry.location.offset,
                }
                for entry in history.entries()
            ],
        },
    )
