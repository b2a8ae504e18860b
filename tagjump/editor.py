"""Editor launch helper for opening a resolved tag location.

Runs ``$EDITOR +LINE path`` (the convention vi, emacs, nano and most
terminal editors accept). Returns an error message string instead of
raising so the CLI can report it uniformly.
"""

from __future__ import annotations

import os
import shlex
import subprocess
from pathlib import Path


def editor_command(target: Path, line: int | None = None) -> list[str] | None:
    """Build the editor argv for ``target``, or ``None`` when ``$EDITOR`` is unusable."""
    editor_env = os.environ.get("EDITOR", "").strip()
    if not editor_env:
        return None
    cmd = shlex.split(editor_env)
    if not cmd:
        return None
    if line is not None and line > 0:
        cmd.append(f"+{line}")
    cmd.append(str(target))
    return cmd


def launch_editor(target: Path, line: int | None = None) -> str | None:
    cmd = editor_command(target, line)
    if cmd is None:
        return "Cannot edit: $EDITOR is not set."
    try:
        subprocess.run(cmd, check=False)
    except OSError as exc:
        return f"Failed to launch editor: {exc}"
    return None
