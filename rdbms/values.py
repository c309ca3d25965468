"""Column types, runtime values and row schemas."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union


class DataType(enum.Enum):
    """The column types a table can declare."""

    INTEGER = "Integer"
    BIGINT = "BigInt"
    TEXT = "Text"
    BOOLEAN = "Boolean"
    REAL = "Real"
    TIMESTAMP = "Timestamp"
    BLOB = "Blob"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, order=True)
class Timestamp:
    """A timestamp held as a plain integer count."""

    value: int

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


# A runtime value: None is SQL NULL, bytes is a BLOB.
Value = Union[None, bool, int, float, str, bytes, Timestamp]


@dataclass(frozen=True)
class Field:
    """One column of a row schema."""

    name: str
    data_type: DataType
    table: Optional[str] = None
    nullable: bool = True
    visible: bool = True


@dataclass
class Schema:
    """An ordered list of fields describing the values of a row."""

    fields: list[Field] = field(default_factory=list)

    def visible_fields(self) -> Iterator[Field]:
        """Yield the fields that are not hidden."""
        return (f for f in self.fields if f.visible)

    def visible_schema(self) -> Schema:
        """Return a schema holding only the visible fields."""
        return Schema(list(self.visible_fields()))

    def field_index(self, name: str) -> Optional[int]:
        """Return the position of the visible field called ``name``, or None."""
        wanted = name.lower()
        return next(
            (
                index
                for index, candidate in enumerate(self.fields)
                if candidate.visible and candidate.name.lower() == wanted
            ),
            None,
        )

    @classmethod
    def empty(cls) -> Schema:
        """Return a schema without fields."""
        return cls([])

    def __len__(self) -> int:
        return len(self.fields)