"""Interactive read-eval-print loop over a database engine."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Optional, Protocol

from rdbms.commands import MetaCommand, MetaCommandKind, parse_meta_command
from rdbms.history import resolve_history_path
from rdbms.printer import ReplOutput, print_output, schema_to_description, tables_to_output
from rdbms.splitter import split_statements
from rdbms.values import Schema

PRIMARY_PROMPT = "rdbms> "
CONTINUATION_PROMPT = "...> "

_HELP_LINES = (
    "Commands:",
    "  \\q, exit, quit    Exit the REPL",
    "  \\help            Show this message",
    "  \\tables          List tables",
    "  \\schema <table>  Show table schema",
    "\nEnter SQL statements terminated by ';'.",
)


class _Engine(Protocol):
    def execute_sql(self, sql: str) -> ReplOutput: ...

    def list_tables(self) -> list[str]: ...

    def table_schema(self, table_name: str) -> Optional[Schema]: ...


def print_help() -> None:
    """Print the list of meta commands."""
    for line in _HELP_LINES:
        print(line)


def handle_meta_command(engine: _Engine, command: MetaCommand) -> bool:
    """Carry out a meta command; return True when the REPL should stop."""
    if command.kind is MetaCommandKind.QUIT:
        return True
    if command.kind is MetaCommandKind.HELP:
        print_help()
    elif command.kind is MetaCommandKind.TABLES:
        print_output(tables_to_output(engine.list_tables()))
    elif command.kind is MetaCommandKind.SCHEMA:
        schema = engine.table_schema(command.table)
        if schema is None:
            print(f"Error: table {command.table} not found", file=sys.stderr)
        else:
            print_output(schema_to_description(schema))
    return False


def _load_history(path: Path) -> list[str]:
    try:
        return [line for line in path.read_text(encoding="utf-8").splitlines() if line]
    except (OSError, UnicodeDecodeError):
        return []


def _save_history(path: Path, entries: list[str]) -> None:
    lines = (entry.replace("\n", " ") for entry in entries)
    try:
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    except OSError:
        pass


def _line_editor_hook(entries: list[str]) -> Optional[Callable[[str], None]]:
    """Feed history into the terminal line editor when one is available."""
    try:
        import readline
    except ImportError:
        return None
    for entry in entries:
        readline.add_history(entry)
    return readline.add_history


def run_repl(
    engine: _Engine,
    history_path: Optional[Path] = None,
    read_line: Optional[Callable[[str], str]] = None,
) -> None:
    """Read statements until end of input or a quit command, executing each.

    ``read_line`` receives the prompt and returns one line; it raises
    EOFError at the end of input and KeyboardInterrupt to discard the
    statement being typed.
    """
    path = Path(history_path) if history_path is not None else resolve_history_path()
    if path.parent != Path(""):
        path.parent.mkdir(parents=True, exist_ok=True)

    history = _load_history(path)
    remember: Optional[Callable[[str], None]] = None
    if read_line is None:
        read_line = input
        remember = _line_editor_hook(history)

    buffer = ""
    while True:
        prompt = PRIMARY_PROMPT if not buffer.strip() else CONTINUATION_PROMPT
        try:
            line = read_line(prompt)
        except KeyboardInterrupt:
            buffer = ""
            print("^C")
            continue
        except EOFError:
            break

        if not buffer and not line.strip():
            continue

        buffer += line + "\n"
        entered = buffer
        split = split_statements(buffer)
        should_exit = False

        for statement in split.statements:
            command = parse_meta_command(statement)
            if command is not None:
                if handle_meta_command(engine, command):
                    should_exit = True
                    break
                continue
            try:
                output = engine.execute_sql(statement)
            except Exception as err:  # engine errors of any kind are reported, not fatal
                print(f"Error: {err}", file=sys.stderr)
            else:
                print_output(output)

        if should_exit:
            break

        if not split.remainder and not split.in_string:
            entry = entered.strip()
            if entry:
                history.append(entry)
                if remember is not None:
                    remember(entry)
            buffer = ""
        else:
            buffer = split.remainder

    _save_history(path, history)