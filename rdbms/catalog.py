"""Table definitions and their on-disk catalog file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence, Union

from rdbms.values import DataType, Field, Schema

_UNIT_DEFAULTS = ("Null", "CurrentTimestamp")
_VALUE_DEFAULTS = ("Integer", "Real", "Text", "Boolean")


@dataclass(frozen=True)
class DefaultValue:
    """A column default: ``kind`` names it, ``value`` holds its payload if any."""

    kind: str
    value: Union[None, int, float, str, bool] = None

    def __post_init__(self) -> None:
        if self.kind in _UNIT_DEFAULTS:
            if self.value is not None:
                raise ValueError(f"default {self.kind} takes no value")
            return
        if self.kind not in _VALUE_DEFAULTS:
            raise ValueError(f"unknown default kind {self.kind!r}")
        value = self.value
        if self.kind == "Integer":
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Integer default needs an integer, got {value!r}")
        elif self.kind == "Real":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Real default needs a number, got {value!r}")
            object.__setattr__(self, "value", float(value))
        elif self.kind == "Text":
            if not isinstance(value, str):
                raise ValueError(f"Text default needs a string, got {value!r}")
        elif not isinstance(value, bool):
            raise ValueError(f"Boolean default needs a boolean, got {value!r}")


@dataclass
class ColumnDef:
    """A declared column of a table."""

    name: str
    data_type: DataType
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
    default_value: Optional[DefaultValue] = None
    auto_increment: bool = False


@dataclass
class IndexDef:
    """An index over one or more columns of a table."""

    name: str
    columns: list[str]
    unique: bool = False
    is_primary: bool = False


@dataclass
class TableDef:
    """A table as the catalog records it."""

    name: str
    first_page_id: int = 0
    columns: list[ColumnDef] = field(default_factory=list)
    indexes: list[IndexDef] = field(default_factory=list)

    def schema(self) -> Schema:
        """Return the row schema of the table's columns."""
        return Schema(
            [
                Field(
                    name=column.name,
                    data_type=column.data_type,
                    table=self.name,
                    nullable=column.nullable,
                    visible=True,
                )
                for column in self.columns
            ]
        )


def parse_data_type(name: str) -> DataType:
    """Return the data type spelled ``name`` as the catalog writes it."""
    try:
        return DataType(name)
    except ValueError:
        raise ValueError(f"unknown data type '{name}'") from None


def _default_to_json(default: DefaultValue) -> Any:
    if default.kind in _UNIT_DEFAULTS:
        return default.kind
    return {default.kind: default.value}


def _default_from_json(raw: Any) -> DefaultValue:
    if isinstance(raw, str) and raw in _UNIT_DEFAULTS:
        return DefaultValue(raw)
    if isinstance(raw, dict) and len(raw) == 1:
        ((kind, value),) = raw.items()
        if kind in _VALUE_DEFAULTS:
            return DefaultValue(kind, value)
    raise ValueError(f"invalid default value {raw!r}")


def _column_to_json(column: ColumnDef) -> dict[str, Any]:
    return {
        "name": column.name,
        "data_type": column.data_type.value,
        "nullable": column.nullable,
        "primary_key": column.primary_key,
        "unique": column.unique,
        "default_value": (
            None if column.default_value is None else _default_to_json(column.default_value)
        ),
        "auto_increment": column.auto_increment,
    }


def _index_to_json(index: IndexDef) -> dict[str, Any]:
    return {
        "name": index.name,
        "columns": list(index.columns),
        "unique": index.unique,
        "is_primary": index.is_primary,
    }


def dump_catalog(tables: Iterable[TableDef], path: Union[str, Path]) -> None:
    """Write the table definitions to ``path`` as pretty-printed JSON."""
    document = {
        "tables": [
            {
                "name": table.name,
                "first_page_id": table.first_page_id,
                "columns": [_column_to_json(column) for column in table.columns],
                "indexes": [_index_to_json(index) for index in table.indexes],
            }
            for table in tables
        ]
    }
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(document, handle, indent=2)


def _require(mapping: Any, key: str, kinds: tuple, where: str) -> Any:
    if not isinstance(mapping, dict) or key not in mapping:
        raise ValueError(f"parse catalog: missing field '{key}' in {where}")
    value = mapping[key]
    if not isinstance(value, kinds) or (isinstance(value, bool) and bool not in kinds):
        raise ValueError(f"parse catalog: invalid field '{key}' in {where}")
    return value


def _load_column(raw: Any, table_name: str) -> ColumnDef:
    where = f"column of table '{table_name}'"
    name = _require(raw, "name", (str,), where)
    type_name = _require(raw, "data_type", (str,), where)
    try:
        data_type = parse_data_type(type_name)
    except ValueError:
        raise ValueError(
            f"failed to parse column definitions: unknown data type '{type_name}' "
            f"for column '{name}' in table '{table_name}'"
        ) from None
    if "default_value" not in raw:
        raise ValueError(f"parse catalog: missing field 'default_value' in {where}")
    raw_default = raw["default_value"]
    try:
        default = None if raw_default is None else _default_from_json(raw_default)
    except ValueError as err:
        raise ValueError(f"parse catalog: {err}") from err
    auto_increment = raw.get("auto_increment", False)
    if not isinstance(auto_increment, bool):
        raise ValueError(f"parse catalog: invalid field 'auto_increment' in {where}")
    return ColumnDef(
        name=name,
        data_type=data_type,
        nullable=_require(raw, "nullable", (bool,), where),
        primary_key=_require(raw, "primary_key", (bool,), where),
        unique=_require(raw, "unique", (bool,), where),
        default_value=default,
        auto_increment=auto_increment,
    )


def _load_index(raw: Any, table_name: str) -> IndexDef:
    where = f"index of table '{table_name}'"
    columns = _require(raw, "columns", (list,), where)
    if not all(isinstance(column, str) for column in columns):
        raise ValueError(f"parse catalog: invalid field 'columns' in {where}")
    return IndexDef(
        name=_require(raw, "name", (str,), where),
        columns=list(columns),
        unique=_require(raw, "unique", (bool,), where),
        is_primary=_require(raw, "is_primary", (bool,), where),
    )


def load_catalog(path: Union[str, Path]) -> list[TableDef]:
    """Read table definitions from ``path``; a missing file holds no tables."""
    catalog_path = Path(path)
    if not catalog_path.exists():
        return []
    try:
        document = json.loads(catalog_path.read_text(encoding="utf-8"))
    except ValueError as err:
        raise ValueError(f"parse catalog: {err}") from err

    tables = []
    for raw in _require(document, "tables", (list,), "catalog"):
        name = _require(raw, "name", (str,), "table")
        where = f"table '{name}'"
        first_page_id = _require(raw, "first_page_id", (int,), where)
        if first_page_id < 0:
            raise ValueError(f"parse catalog: invalid field 'first_page_id' in {where}")
        columns = [_load_column(c, name) for c in _require(raw, "columns", (list,), where)]
        indexes = [_load_index(i, name) for i in _require(raw, "indexes", (list,), where)]
        tables.append(TableDef(name, first_page_id, columns, indexes))
    return tables


def resolve_column_indices(schema: Schema, columns: Optional[Sequence[str]]) -> list[int]:
    """Map INSERT column names to positions; None means every visible column."""
    if columns is None:
        return [index for index, f in enumerate(schema.fields) if f.visible]
    indices: list[int] = []
    for column in columns:
        name = column.split(".")[-1]
        index = schema.field_index(name)
        if index is None:
            raise ValueError(f"column {column} not found")
        if index in indices:
            raise ValueError(f"column {column} specified more than once")
        indices.append(index)
    return indices