# rdbms

Building blocks for a small relational database, in plain Python with no
third-party runtime dependencies.

## Modules

| Module | Purpose |
| --- | --- |
| `rdbms.values` | `DataType`, `Timestamp`, `Field` and `Schema`: the description of a row. |
| `rdbms.expressions` | SQL expression trees (`Column`, `Literal`, `BinaryOp`, `UnaryOp`, `Function`, `Wildcard`, `QualifiedWildcard`, `Cast`, `IsNull`, `Between`, `In`), `evaluate_expr`, `evaluate_predicate`, `cast_value`, `like_match`, `value_to_string` and `ExecutionError`. |
| `rdbms.splitter` | `split_statements`, which cuts typed input into `;`-terminated statements while respecting quotes and comments. |
| `rdbms.commands` | `parse_meta_command` for REPL commands such as `\q`, `.tables` and `\schema users`. |
| `rdbms.history` | `resolve_history_path`, which places the REPL history file under the XDG state directory. |
| `rdbms.printer` | `Rows` and `Message` results, table rendering with `format_output`, and JSON-ready values via `to_serializable`. |
| `rdbms.repl` | `run_repl`, the interactive read-split-execute loop, and `handle_meta_command`. |
| `rdbms.catalog` | `ColumnDef`, `IndexDef`, `TableDef` and `DefaultValue`, with `dump_catalog` and `load_catalog` for the JSON catalog file. |
| `rdbms.server` | A JSON request/response server over TCP (`serve`, `handle_client`, `handle_request`). |

## Installation

From a checkout: `pip install .`, or `pip install ".[test]"` to include the
test tools.

## Examples

Splitting input into statements:

```python
from rdbms.splitter import split_statements

result = split_statements("SELECT 1; /* note; */ SELECT 2; SELECT 'unfinished")
print(result.statements)   # ['SELECT 1', 'SELECT 2']
print(result.in_string)    # True: the last statement is still inside a string
```

Semicolons inside single- or double-quoted strings, `-- line comments` and
`/* block comments */` never end a statement. An incomplete statement is kept
in `result.remainder` so that a REPL can keep reading lines.

Evaluating an expression against a row:

```python
from rdbms.expressions import BinaryOp, BinaryOperator, Column, Literal, evaluate_predicate
from rdbms.values import DataType, Field, Schema

schema = Schema([Field("age", DataType.INTEGER, table="users")])
condition = BinaryOp(Column("age"), BinaryOperator.GT, Literal(18))
evaluate_predicate(condition, (30,), schema)    # True
evaluate_predicate(condition, (None,), schema)  # False: NULL filters the row out
```

SQL `LIKE` matching, where `%` matches any run of characters and `_` exactly
one:

```python
from rdbms.expressions import like_match

like_match("alice@example.com", "%@example.com")   # True
like_match("bob", "b_")                            # False
```

Recognising meta commands:

```python
from rdbms.commands import parse_meta_command

parse_meta_command("\\q")            # MetaCommand(kind=MetaCommandKind.QUIT)
parse_meta_command(".schema users")  # a SCHEMA command with table "users"
parse_meta_command("SELECT 1")       # None: this is SQL, not a meta command
```

Rendering results:

```python
from rdbms.printer import Message, Rows, format_output
from rdbms.values import DataType, Field, Schema

print(format_output(Message("OK")))
print(format_output(Rows(Schema([Field("name", DataType.TEXT)]), [("Ada",)])))
```

Row results render as a bordered table followed by a `(N rows)` footer; at
most 100 rows are shown and the rest are reported as `... (N rows hidden)`.
Binary values are shown as a hexadecimal preview of up to 16 bytes with their
size, for example `<BLOB 0x89504E47 size=4B>`.

## Semantics worth knowing

- Comparisons and arithmetic involving `NULL` yield `NULL`; a predicate that
  evaluates to `NULL` counts as false.
- `AND` and `OR` follow three-valued logic: `FALSE AND NULL` is `FALSE`,
  `TRUE OR NULL` is `TRUE`.
- Arithmetic on two integers stays integral and saturates at the 64-bit
  range; division always produces a real number. Division or modulo by zero
  raises `ExecutionError`, and modulo requires integer operands.
- Binary values support no comparison, arithmetic, boolean, string or cast
  operations.
- Column references match case-insensitively; a name that matches more than
  one visible column raises `ExecutionError`.

## The REPL and the server

Both work against an engine object you supply. `run_repl(engine,
history_path=None, read_line=None)` needs `execute_sql(sql)`,
`list_tables()` and `table_schema(name)`; `read_line` defaults to `input`,
and history is kept in the file `resolve_history_path()` names.

`serve(engine, host="0.0.0.0", port=5432)` needs only `execute_sql(sql)`.
Each read of up to 4096 bytes is decoded as one JSON request:

- `{"method": "execute", "params": ["SELECT 1"]}` (or `"params": "SELECT 1"`)
  runs the SQL and answers `{"status": "ok", "result": ..., "error": null}`,
  where `result` is `{"columns": [...], "rows": [...]}` or
  `{"message": "..."}`; engine failures answer with `"status": "error"`.
- `{"method": "ping"}` answers with the server version.
- Any other method answers `unknown method: <name>`.

Requests from all clients are run one at a time.

## What the package does not do

There is no engine here: no SQL parser, query planner, physical operators,
table storage, indexes, write-ahead log or transactions. The REPL and the
server only drive an engine passed in to them, and the package installs no
command-line programs. `rdbms.catalog` reads and writes the catalog file's
table definitions but keeps no table data.

## Running the tests

Install the `test` extra and run `pytest` from the project root.