"""Location of the REPL's command history file."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

_PROJECT_DIR = "rdbms"


def resolve_history_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the history file path, following XDG_STATE_HOME, then HOME."""
    env = os.environ if environ is None else environ
    if "XDG_STATE_HOME" in env:
        return Path(env["XDG_STATE_HOME"]) / _PROJECT_DIR / "history"
    if "HOME" in env:
        return Path(env["HOME"]) / ".local" / "state" / _PROJECT_DIR / "history"
    return Path(".rdbms_history")