"""Results of statements and their rendering as text tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence, Union

from rdbms.expressions import value_to_string
from rdbms.values import DataType, Field, Schema, Timestamp, Value

MAX_DISPLAY_ROWS = 100
_BLOB_PREVIEW_BYTES = 16
_KB = 1024
_MB = 1024 * 1024


@dataclass
class Rows:
    """A result set: a schema and the rows it describes."""

    schema: Schema
    rows: list = field(default_factory=list)

    def __str__(self) -> str:
        return format_output(self)


@dataclass
class Message:
    """A plain status message such as ``OK`` or ``INSERT 0 1``."""

    text: str

    def __str__(self) -> str:
        return self.text


ReplOutput = Union[Rows, Message]


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def format_blob_size(length: int) -> str:
    """Return a short size label, rounding up to whole KB or MB."""
    if length >= _MB:
        return f"{_ceil_div(length, _MB)}MB"
    if length >= _KB:
        return f"{_ceil_div(length, _KB)}KB"
    return f"{length}B"


def format_blob_preview(data: bytes) -> str:
    """Describe a blob by its first bytes in hex and its size."""
    data = bytes(data)
    preview = data[:_BLOB_PREVIEW_BYTES].hex().upper()
    suffix = "…" if len(data) > _BLOB_PREVIEW_BYTES else ""
    size_label = format_blob_size(len(data))
    if not preview:
        return f"<BLOB size={size_label}>"
    return f"<BLOB 0x{preview}{suffix} size={size_label}>"


def format_value(value: Value) -> str:
    """Render one value for display in a table cell."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return format_blob_preview(bytes(value))
    return value_to_string(value)


def _border(widths: Sequence[int], fill: str) -> str:
    return "+" + "+".join(fill * (width + 2) for width in widths) + "+"


def _content_lines(cells: Sequence[list[str]], widths: Sequence[int]) -> list[str]:
    height = max((len(lines) for lines in cells), default=1)
    rendered = []
    for line_no in range(height):
        parts = [
            " " + (lines[line_no] if line_no < len(lines) else "").ljust(width) + " "
            for lines, width in zip(cells, widths)
        ]
        rendered.append("|" + "|".join(parts) + "|")
    return rendered


def _render_table(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    if not headers:
        return ""
    header_cells = [header.splitlines() or [""] for header in headers]
    body = [[text.splitlines() or [""] for text in row] for row in rows]
    widths = [max(len(line) for line in lines) for lines in header_cells]
    for row in body:
        for column, lines in enumerate(row[: len(widths)]):
            widths[column] = max(widths[column], max(len(line) for line in lines))

    lines = [_border(widths, "-")]
    lines.extend(_content_lines(header_cells, widths))
    for position, row in enumerate(body):
        lines.append(_border(widths, "=" if position == 0 else "-"))
        lines.extend(_content_lines(row, widths))
    lines.append(_border(widths, "-"))
    return "\n".join(lines)


def _format_table(schema: Schema, rows: Sequence[Sequence[Value]]) -> str:
    total = len(rows)
    headers = [f.name for f in schema.fields]
    shown = ([format_value(value) for value in row] for row in rows[:MAX_DISPLAY_ROWS])
    output = _render_table(headers, shown) + f"\n({total} rows)"
    hidden = max(total - MAX_DISPLAY_ROWS, 0)
    if hidden:
        output += f"\n... ({hidden} rows hidden)"
    return output


def format_output(output: ReplOutput) -> str:
    """Render a statement result as text."""
    if isinstance(output, Rows):
        return _format_table(output.schema, list(output.rows))
    return output.text


def print_output(output: ReplOutput) -> None:
    """Print a statement result to standard output."""
    print(format_output(output))


def to_serializable(value: Value) -> dict[str, Any]:
    """Return a JSON-ready ``{"type": ..., "value": ...}`` form of a value."""
    if value is None:
        return {"type": "Null"}
    if isinstance(value, bool):
        return {"type": "bool", "value": value}
    if isinstance(value, Timestamp):
        return {"type": "int", "value": value.value}
    if isinstance(value, int):
        return {"type": "int", "value": value}
    if isinstance(value, float):
        return {"type": "float", "value": value}
    if isinstance(value, str):
        return {"type": "text", "value": value}
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"type": "blob", "value": list(bytes(value))}
    raise TypeError(f"cannot serialize value {value!r}")


def _text_field(name: str) -> Field:
    return Field(name=name, data_type=DataType.TEXT, table=None, nullable=False, visible=True)


def schema_to_description(schema: Schema) -> Rows:
    """Describe the visible columns of a schema as a result set."""
    output_schema = Schema([_text_field("column"), _text_field("type"), _text_field("nullable")])
    rows = [
        (f.name, str(f.data_type), "true" if f.nullable else "false")
        for f in schema.visible_fields()
    ]
    return Rows(output_schema, rows)


def tables_to_output(tables: Iterable[str]) -> Rows:
    """List table names as a one-column result set."""
    return Rows(Schema([_text_field("table")]), [(name,) for name in tables])