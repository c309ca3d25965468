"""Recognition of the REPL's meta commands."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class MetaCommandKind(enum.Enum):
    QUIT = "quit"
    HELP = "help"
    TABLES = "tables"
    SCHEMA = "schema"


@dataclass(frozen=True)
class MetaCommand:
    """A meta command; ``table`` is set only for SCHEMA."""

    kind: MetaCommandKind
    table: Optional[str] = None

    def __str__(self) -> str:
        if self.kind is MetaCommandKind.SCHEMA:
            return f"schema {self.table}"
        return self.kind.value


_KEYWORDS = {
    "\\q": MetaCommandKind.QUIT,
    "\\quit": MetaCommandKind.QUIT,
    ".quit": MetaCommandKind.QUIT,
    ".exit": MetaCommandKind.QUIT,
    "quit": MetaCommandKind.QUIT,
    "exit": MetaCommandKind.QUIT,
    "\\help": MetaCommandKind.HELP,
    ".help": MetaCommandKind.HELP,
    "help": MetaCommandKind.HELP,
    "\\tables": MetaCommandKind.TABLES,
    ".tables": MetaCommandKind.TABLES,
}
_SCHEMA_PREFIXES = ("\\schema ", ".schema ")


def parse_meta_command(text: str) -> Optional[MetaCommand]:
    """Return the meta command ``text`` spells, or None if it is not one."""
    trimmed = text.strip()
    if not trimmed:
        return None
    lower = trimmed.rstrip(";").strip().lower()

    kind = _KEYWORDS.get(lower)
    if kind is not None:
        return MetaCommand(kind)

    for prefix in _SCHEMA_PREFIXES:
        if lower.startswith(prefix):
            return MetaCommand(MetaCommandKind.SCHEMA, lower[len(prefix):].strip())
    return None