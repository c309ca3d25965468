"""Expression trees and their evaluation against rows."""

from __future__ import annotations

import enum
import math
import re
import string
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Union

from rdbms.values import DataType, Schema, Timestamp, Value

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class ExecutionError(Exception):
    """Raised when a plan or an expression cannot be evaluated."""

    _TEMPLATES = {
        "storage": "storage error: {}",
        "table_not_found": "table not found: {}",
        "constraint_violation": "constraint violation on {}",
        "expression": "expression error: {}",
        "schema": "schema error: {}",
        "unsupported_plan": "unsupported plan: {}",
        "unsupported_expression": "unsupported expression: {}",
        "execution": "execution error: {}",
    }

    def __init__(self, detail: str, kind: str = "expression") -> None:
        if kind not in self._TEMPLATES:
            raise ValueError(f"unknown error kind {kind!r}")
        self.kind = kind
        self.detail = detail
        super().__init__(self._TEMPLATES[kind].format(detail))


class BinaryOperator(enum.Enum):
    PLUS = "+"
    MINUS = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"
    EQ = "="
    NOT_EQ = "<>"
    LT = "<"
    LT_EQ = "<="
    GT = ">"
    GT_EQ = ">="
    AND = "AND"
    OR = "OR"
    CONCAT = "||"
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"


class UnaryOperator(enum.Enum):
    NOT = "NOT"
    MINUS = "-"
    PLUS = "+"


@dataclass(frozen=True)
class Column:
    name: str
    table: Optional[str] = None


@dataclass(frozen=True)
class Literal:
    value: Value


@dataclass(frozen=True)
class BinaryOp:
    left: "Expr"
    op: BinaryOperator
    right: "Expr"


@dataclass(frozen=True)
class UnaryOp:
    op: UnaryOperator
    expr: "Expr"


@dataclass(frozen=True)
class Function:
    name: str
    args: tuple = ()


@dataclass(frozen=True)
class Wildcard:
    pass


@dataclass(frozen=True)
class QualifiedWildcard:
    table: str


@dataclass(frozen=True)
class Cast:
    expr: "Expr"
    target_type: DataType


@dataclass(frozen=True)
class IsNull:
    expr: "Expr"
    negated: bool = False


@dataclass(frozen=True)
class Between:
    expr: "Expr"
    low: "Expr"
    high: "Expr"
    negated: bool = False


@dataclass(frozen=True)
class In:
    expr: "Expr"
    items: tuple
    negated: bool = False


Expr = Union[
    Column, Literal, BinaryOp, UnaryOp, Function, Wildcard,
    QualifiedWildcard, Cast, IsNull, Between, In,
]

_ARITHMETIC = {
    BinaryOperator.PLUS, BinaryOperator.MINUS, BinaryOperator.MULTIPLY,
    BinaryOperator.DIVIDE, BinaryOperator.MODULO,
}
_COMPARISONS = {
    BinaryOperator.EQ: lambda order: order == 0,
    BinaryOperator.NOT_EQ: lambda order: order != 0,
    BinaryOperator.LT: lambda order: order < 0,
    BinaryOperator.LT_EQ: lambda order: order <= 0,
    BinaryOperator.GT: lambda order: order > 0,
    BinaryOperator.GT_EQ: lambda order: order >= 0,
}
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")


# --- value inspection -------------------------------------------------------

def _kind(value: Value) -> str:
    if value is None:
        return "Null"
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, Timestamp):
        return "Timestamp"
    if isinstance(value, int):
        return "Integer"
    if isinstance(value, float):
        return "Float"
    if isinstance(value, str):
        return "String"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "Blob"
    raise ExecutionError(f"unsupported value {value!r}")


def _debug(value: Value) -> str:
    kind = _kind(value)
    if kind == "Null":
        return "Null"
    if kind == "Boolean":
        return f"Boolean({'true' if value else 'false'})"
    if kind == "Timestamp":
        return f"Timestamp({value.value})"
    if kind == "String":
        return f'String("{value}")'
    if kind == "Blob":
        return f"Blob({list(bytes(value))})"
    return f"{kind}({value!r})"


def _ascii_eq(left: str, right: str) -> bool:
    return left.translate(_ASCII_LOWER) == right.translate(_ASCII_LOWER)


def _to_i64(number: float) -> int:
    """Convert a float to a 64-bit integer, truncating and saturating."""
    if math.isnan(number):
        return 0
    if number >= _I64_MAX:
        return _I64_MAX
    if number <= _I64_MIN:
        return _I64_MIN
    return int(number)


def _format_float(number: float) -> str:
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"
    if number == 0:
        return "-0" if math.copysign(1.0, number) < 0 else "0"
    if number.is_integer():
        return str(int(number))
    text = repr(number)
    if "e" in text:
        text = format(Decimal(text), "f")
    return text


def value_to_string(value: Value) -> str:
    """Render a value as text the way string operators see it."""
    kind = _kind(value)
    if kind == "Null":
        return "NULL"
    if kind == "Boolean":
        return "true" if value else "false"
    if kind == "Timestamp":
        return str(value.value)
    if kind == "Float":
        return _format_float(value)
    if kind == "Blob":
        raise ExecutionError("BLOB columns do not support string operations")
    return str(value)


def _numeric(value: Value) -> Union[None, int, float]:
    kind = _kind(value)
    if kind == "Null":
        return None
    if kind in ("Integer", "Float"):
        return value
    if kind == "Timestamp":
        return value.value
    if kind == "Blob":
        raise ExecutionError("BLOB columns do not support numeric operators")
    raise ExecutionError(f"expected numeric value, found {_debug(value)}")


def _numeric_pair(left: Value, right: Value) -> Optional[tuple[float, float, bool]]:
    left_number = _numeric(left)
    right_number = _numeric(right)
    if left_number is None or right_number is None:
        return None
    both_integer = isinstance(left_number, int) and isinstance(right_number, int)
    return float(left_number), float(right_number), both_integer


def _boolean(value: Value) -> Optional[bool]:
    kind = _kind(value)
    if kind == "Boolean":
        return value
    if kind == "Null":
        return None
    if kind == "Blob":
        raise ExecutionError("BLOB columns do not support boolean operators")
    raise ExecutionError(f"expected boolean value, found {_debug(value)}")


# --- operators --------------------------------------------------------------

def _apply_numeric(op: BinaryOperator, left: Value, right: Value) -> Value:
    pair = _numeric_pair(left, right)
    if pair is None:
        return None
    a, b, both_integer = pair

    def result(number: float) -> Value:
        return _to_i64(number) if both_integer else number

    if op is BinaryOperator.PLUS:
        return result(a + b)
    if op is BinaryOperator.MINUS:
        return result(a - b)
    if op is BinaryOperator.MULTIPLY:
        return result(a * b)
    if op is BinaryOperator.DIVIDE:
        if b == 0.0:
            raise ExecutionError("division by zero")
        return a / b
    if op is BinaryOperator.MODULO:
        if not both_integer:
            raise ExecutionError("modulo requires integer operands")
        dividend, divisor = _to_i64(a), _to_i64(b)
        if divisor == 0:
            raise ExecutionError("modulo by zero")
        remainder = abs(dividend) % abs(divisor)
        return -remainder if dividend < 0 else remainder
    raise ExecutionError("invalid numeric operator")


def _compare(left: Value, right: Value) -> Optional[int]:
    if left is None or right is None:
        return None
    kinds = {_kind(left), _kind(right)}
    if "Blob" in kinds:
        raise ExecutionError("BLOB columns do not support comparison operators")
    if kinds in ({"String"}, {"Boolean"}):
        return (left > right) - (left < right)
    pair = _numeric_pair(left, right)
    if pair is None:
        return None
    a, b, _ = pair
    if math.isnan(a) or math.isnan(b):
        raise ExecutionError("comparison failed")
    return (a > b) - (a < b)


def _apply_comparison(op: BinaryOperator, left: Value, right: Value) -> Value:
    if left is None or right is None:
        return None
    order = _compare(left, right)
    if order is None:
        return None
    check = _COMPARISONS.get(op)
    if check is None:
        raise ExecutionError("invalid comparison operator")
    return check(order)


def _tri_and(left: Optional[bool], right: Optional[bool]) -> Optional[bool]:
    if left is False or right is False:
        return False
    if left is True and right is True:
        return True
    return None


def _tri_or(left: Optional[bool], right: Optional[bool]) -> Optional[bool]:
    if left is True or right is True:
        return True
    if left is False and right is False:
        return False
    return None


def _apply_logic(op: BinaryOperator, left: Value, right: Value) -> Value:
    left_flag, right_flag = _boolean(left), _boolean(right)
    if op is BinaryOperator.AND:
        return _tri_and(left_flag, right_flag)
    if op is BinaryOperator.OR:
        return _tri_or(left_flag, right_flag)
    return None


def like_match(value: str, pattern: str) -> bool:
    """Match ``value`` against a SQL LIKE pattern using ``%`` and ``_``."""
    # row[j] tells whether the value consumed so far matches pattern[:j].
    row = [True]
    for symbol in pattern:
        row.append(row[-1] and symbol == "%")
    for char in value:
        current = [False]
        for j, symbol in enumerate(pattern, start=1):
            if symbol == "%":
                current.append(current[j - 1] or row[j])
            elif symbol == "_":
                current.append(row[j - 1])
            else:
                current.append(row[j - 1] and char == symbol)
        row = current
    return row[-1]


def _apply_binary(op: BinaryOperator, left: Value, right: Value) -> Value:
    if op in _ARITHMETIC:
        return _apply_numeric(op, left, right)
    if op in _COMPARISONS:
        return _apply_comparison(op, left, right)
    if op in (BinaryOperator.AND, BinaryOperator.OR):
        return _apply_logic(op, left, right)
    if left is None or right is None:
        return None
    left_text, right_text = value_to_string(left), value_to_string(right)
    if op is BinaryOperator.CONCAT:
        return left_text + right_text
    matches = like_match(left_text, right_text)
    return matches if op is BinaryOperator.LIKE else not matches


def _apply_unary(op: UnaryOperator, value: Value) -> Value:
    if op is UnaryOperator.NOT:
        flag = _boolean(value)
        return None if flag is None else not flag
    number = _numeric(value)
    if number is None:
        return None
    return -number if op is UnaryOperator.MINUS else number


# --- casts ------------------------------------------------------------------

def _parse_i64(text: str) -> Optional[int]:
    if not _INTEGER_TEXT.fullmatch(text):
        return None
    number = int(text)
    return number if _I64_MIN <= number <= _I64_MAX else None


def _parse_f64(text: str) -> Optional[float]:
    if not text or not text.isascii() or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def cast_value(value: Value, target_type: DataType) -> Value:
    """Convert a value to ``target_type`` following CAST semantics."""
    if value is None:
        return None
    kind = _kind(value)
    if target_type is DataType.BLOB or kind == "Blob":
        raise ExecutionError("BLOB columns do not support CAST")

    if target_type in (DataType.INTEGER, DataType.BIGINT):
        if kind == "Integer":
            return value
        if kind == "Timestamp":
            return value.value
        if kind == "Float":
            return _to_i64(value)
        if kind == "Boolean":
            return int(value)
        parsed = _parse_i64(value)
        if parsed is None:
            raise ExecutionError(f"cannot cast '{value}' to integer")
        return parsed

    if target_type is DataType.REAL:
        if kind == "Integer":
            return float(value)
        if kind == "Timestamp":
            return float(value.value)
        if kind == "Float":
            return value
        if kind == "Boolean":
            return 1.0 if value else 0.0
        parsed_float = _parse_f64(value)
        if parsed_float is None:
            raise ExecutionError(f"cannot cast '{value}' to real")
        return parsed_float

    if target_type is DataType.TEXT:
        return value_to_string(value)

    if target_type is DataType.BOOLEAN:
        if kind == "Boolean":
            return value
        if kind == "Integer":
            return value != 0
        if kind == "Timestamp":
            return value.value != 0
        if kind == "Float":
            return value != 0.0
        normalized = value.strip().lower()
        if normalized == "true":
            return True
        if normalized == "false":
            return False
        raise ExecutionError(f"cannot cast '{value}' to boolean")

    # DataType.TIMESTAMP
    if kind == "Timestamp":
        return value
    if kind == "Integer":
        return Timestamp(value)
    if kind == "Float":
        return Timestamp(_to_i64(value))
    if kind == "String":
        parsed = _parse_i64(value)
        if parsed is None:
            raise ExecutionError(f"cannot cast '{value}' to timestamp")
        return Timestamp(parsed)
    raise ExecutionError(f"cannot cast {_debug(value)} to timestamp")


# --- evaluation -------------------------------------------------------------

def _resolve_column_index(schema: Schema, table: Optional[str], name: str) -> int:
    qualified = f"{table}.{name}" if table is not None else None
    matches = []
    for index, candidate in enumerate(schema.fields):
        if not candidate.visible:
            continue
        base = _ascii_eq(candidate.name, name) or _ascii_eq(
            candidate.name.rsplit(".", 1)[-1], name
        )
        full = qualified is not None and _ascii_eq(candidate.name, qualified)
        if table is None:
            same_table = True
        else:
            same_table = candidate.table is not None and _ascii_eq(candidate.table, table)
        if (base or full) and same_table:
            matches.append(index)

    label = qualified or name
    if not matches:
        raise ExecutionError(f"column {label} not found", kind="schema")
    if len(matches) > 1:
        raise ExecutionError(f"column reference {label} is ambiguous", kind="schema")
    return matches[0]


def evaluate_expr(expr: Expr, row: Sequence[Value], schema: Schema) -> Value:
    """Evaluate ``expr`` against ``row``, whose layout ``schema`` describes."""
    match expr:
        case Column(name=name, table=table):
            index = _resolve_column_index(schema, table, name)
            if index >= len(row):
                raise ExecutionError(f"column index {index} out of range", kind="schema")
            return row[index]
        case Literal(value=value):
            return value
        case BinaryOp(left=left, op=op, right=right):
            return _apply_binary(
                op, evaluate_expr(left, row, schema), evaluate_expr(right, row, schema)
            )
        case UnaryOp(op=op, expr=inner):
            return _apply_unary(op, evaluate_expr(inner, row, schema))
        case Function(name=name):
            raise ExecutionError(
                f"function {name} is not supported", kind="unsupported_expression"
            )
        case Wildcard():
            raise ExecutionError(
                "wildcard expression must be expanded in projection",
                kind="unsupported_expression",
            )
        case QualifiedWildcard(table=table):
            raise ExecutionError(
                f"qualified wildcard {table} must be expanded in projection",
                kind="unsupported_expression",
            )
        case Cast(expr=inner, target_type=target_type):
            return cast_value(evaluate_expr(inner, row, schema), target_type)
        case IsNull(expr=inner, negated=negated):
            is_null = evaluate_expr(inner, row, schema) is None
            return not is_null if negated else is_null
        case Between(expr=inner, low=low, high=high, negated=negated):
            value = evaluate_expr(inner, row, schema)
            lower = evaluate_expr(low, row, schema)
            upper = evaluate_expr(high, row, schema)
            combined = _apply_logic(
                BinaryOperator.AND,
                _apply_comparison(BinaryOperator.GT_EQ, value, lower),
                _apply_comparison(BinaryOperator.LT_EQ, value, upper),
            )
            if combined is None:
                return None
            return not combined if negated else combined
        case In(expr=inner, items=items, negated=negated):
            value = evaluate_expr(inner, row, schema)
            saw_null = False
            for item in items:
                outcome = _apply_comparison(
                    BinaryOperator.EQ, value, evaluate_expr(item, row, schema)
                )
                if outcome is True:
                    return not negated
                if outcome is None:
                    saw_null = True
            return None if saw_null else negated
    raise ExecutionError(f"unknown expression {expr!r}", kind="unsupported_expression")


def evaluate_predicate(expr: Expr, row: Sequence[Value], schema: Schema) -> bool:
    """Evaluate ``expr`` as a filter condition; NULL counts as false."""
    value = evaluate_expr(expr, row, schema)
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    raise ExecutionError(f"predicate returned non-boolean value: {_debug(value)}")