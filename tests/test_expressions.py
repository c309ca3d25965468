import math

import pytest

from rdbms.expressions import (
    Between,
    BinaryOp,
    BinaryOperator,
    Cast,
    Column,
    ExecutionError,
    Function,
    In,
    IsNull,
    Literal,
    QualifiedWildcard,
    UnaryOp,
    UnaryOperator,
    Wildcard,
    cast_value,
    evaluate_expr,
    evaluate_predicate,
    like_match,
    value_to_string,
)
from rdbms.values import DataType, Field, Schema, Timestamp

USERS = Schema(
    [
        Field("id", DataType.INTEGER, table="users"),
        Field("name", DataType.TEXT, table="users"),
    ]
)
JOINED = Schema(
    [
        Field("id", DataType.INTEGER, table="users"),
        Field("id", DataType.INTEGER, table="orders"),
    ]
)


def evaluate(expr):
    return evaluate_expr(expr, (), Schema.empty())


def binop(left, op, right):
    return evaluate(BinaryOp(Literal(left), op, Literal(right)))


def test_column_lookup_is_case_insensitive():
    assert evaluate_expr(Column("NAME"), (7, "Ada"), USERS) == "Ada"


def test_qualified_column_resolves_ambiguity():
    row = (1, 2)
    assert evaluate_expr(Column("id", table="orders"), row, JOINED) == 2
    assert evaluate_expr(Column("id", table="USERS"), row, JOINED) == 1
    with pytest.raises(ExecutionError, match="ambiguous") as info:
        evaluate_expr(Column("id"), row, JOINED)
    assert info.value.kind == "schema"


def test_missing_column_is_reported_with_qualifier():
    with pytest.raises(ExecutionError, match="column users.missing not found"):
        evaluate_expr(Column("missing", table="users"), (1, "x"), USERS)


def test_hidden_field_is_skipped():
    schema = Schema(
        [Field("name", DataType.TEXT, visible=False), Field("name", DataType.TEXT)]
    )
    assert evaluate_expr(Column("name"), ("old", "new"), schema) == "new"


def test_short_row_is_a_schema_error():
    with pytest.raises(ExecutionError, match="out of range"):
        evaluate_expr(Column("name"), (1,), USERS)


@pytest.mark.parametrize("a,b", [(5, 3), (-4, 9), (0, 12)])
def test_integer_arithmetic_round_trips(a, b):
    total = binop(a, BinaryOperator.PLUS, b)
    assert isinstance(total, int) and not isinstance(total, bool)
    assert binop(total, BinaryOperator.MINUS, b) == a
    assert binop(a, BinaryOperator.MULTIPLY, 1) == a


def test_mixed_arithmetic_gives_float():
    product = binop(2, BinaryOperator.MULTIPLY, 1.5)
    assert isinstance(product, float)
    assert binop(product, BinaryOperator.DIVIDE, 1.5) == 2.0


def test_division_is_always_float():
    assert binop(7, BinaryOperator.DIVIDE, 2) == 3.5


def test_modulo_truncates_toward_zero():
    assert binop(-7, BinaryOperator.MODULO, 3) == -1
    assert binop(7, BinaryOperator.MODULO, -3) == 1


@pytest.mark.parametrize(
    "left,op,right,message",
    [
        (1, BinaryOperator.DIVIDE, 0, "division by zero"),
        (1, BinaryOperator.MODULO, 0, "modulo by zero"),
        (1.5, BinaryOperator.MODULO, 1, "modulo requires integer operands"),
        ("1", BinaryOperator.EQ, 1, "expected numeric value"),
        (b"\x00", BinaryOperator.LT, b"\x01", "BLOB columns do not support comparison"),
        (b"\x00", BinaryOperator.PLUS, 1, "BLOB columns do not support numeric"),
        (math.nan, BinaryOperator.LT, 1.0, "comparison failed"),
        (1, BinaryOperator.AND, True, "expected boolean value"),
        (b"ab", BinaryOperator.CONCAT, "x", "BLOB columns do not support string"),
    ],
)
def test_operator_errors(left, op, right, message):
    with pytest.raises(ExecutionError, match=message):
        binop(left, op, right)


def test_division_error_message_prefix():
    with pytest.raises(ExecutionError) as info:
        binop(1, BinaryOperator.DIVIDE, 0)
    assert str(info.value) == "expression error: division by zero"


@pytest.mark.parametrize(
    "op",
    [BinaryOperator.PLUS, BinaryOperator.EQ, BinaryOperator.LT, BinaryOperator.CONCAT,
     BinaryOperator.LIKE],
)
def test_null_propagates(op):
    assert binop(None, op, 1) is None


def test_comparisons():
    assert binop(1, BinaryOperator.LT, 2) is True
    assert binop(2, BinaryOperator.EQ, 2.0) is True
    assert binop("apple", BinaryOperator.LT, "banana") is True
    assert binop(False, BinaryOperator.LT, True) is True
    assert binop(3, BinaryOperator.GT_EQ, 3) is True
    assert binop(3, BinaryOperator.NOT_EQ, 3) is False
    assert binop(Timestamp(4), BinaryOperator.EQ, 4) is True


@pytest.mark.parametrize(
    "left,op,right,expected",
    [
        (None, BinaryOperator.AND, False, False),
        (None, BinaryOperator.AND, True, None),
        (None, BinaryOperator.OR, True, True),
        (None, BinaryOperator.OR, False, None),
        (True, BinaryOperator.AND, True, True),
        (False, BinaryOperator.OR, False, False),
    ],
)
def test_three_valued_logic(left, op, right, expected):
    assert binop(left, op, right) is expected


def test_concat_uses_text_forms():
    assert binop("ab", BinaryOperator.CONCAT, "cd") == "ab" + "cd"
    assert binop("n", BinaryOperator.CONCAT, 42) == "n" + value_to_string(42)


@pytest.mark.parametrize(
    "value,pattern,expected",
    [
        ("hello", "h%o", True),
        ("hello", "h_llo", True),
        ("hello", "%", True),
        ("", "", True),
        ("", "%", True),
        ("hello", "h_o", False),
        ("hello", "", False),
        ("a%b", "a%b", True),
        ("abc", "%c%", True),
    ],
)
def test_like_match(value, pattern, expected):
    assert like_match(value, pattern) is expected


def test_like_and_not_like_are_opposites():
    for pattern in ("A%", "%z", "_da"):
        like = binop("Ada", BinaryOperator.LIKE, pattern)
        not_like = binop("Ada", BinaryOperator.NOT_LIKE, pattern)
        assert like is (not not_like)


def test_unary_operators():
    for number in (5, -2.5):
        negated = evaluate(UnaryOp(UnaryOperator.MINUS, Literal(number)))
        assert evaluate(UnaryOp(UnaryOperator.MINUS, Literal(negated))) == number
    assert evaluate(UnaryOp(UnaryOperator.NOT, Literal(True))) is False
    assert evaluate(UnaryOp(UnaryOperator.NOT, Literal(None))) is None
    plus = evaluate(UnaryOp(UnaryOperator.PLUS, Literal(Timestamp(9))))
    assert plus == 9 and not isinstance(plus, Timestamp)
    with pytest.raises(ExecutionError, match="expected numeric value"):
        evaluate(UnaryOp(UnaryOperator.MINUS, Literal("x")))


def test_timestamp_arithmetic_yields_integer():
    result = binop(Timestamp(5), BinaryOperator.PLUS, 0)
    assert result == 5 and type(result) is int


def test_is_null():
    assert evaluate(IsNull(Literal(None))) is True
    assert evaluate(IsNull(Literal(1))) is False
    assert evaluate(IsNull(Literal(None), negated=True)) is False


def test_between():
    assert evaluate(Between(Literal(5), Literal(1), Literal(10))) is True
    assert evaluate(Between(Literal(5), Literal(1), Literal(10), negated=True)) is False
    assert evaluate(Between(Literal(11), Literal(1), Literal(10))) is False
    assert evaluate(Between(Literal(None), Literal(1), Literal(10))) is None


def test_in_list():
    items = (Literal(1), Literal(2))
    assert evaluate(In(Literal(2), items)) is True
    assert evaluate(In(Literal(2), items, negated=True)) is False
    assert evaluate(In(Literal(3), items)) is False
    assert evaluate(In(Literal(3), items, negated=True)) is True
    assert evaluate(In(Literal(3), items + (Literal(None),))) is None


def test_unsupported_expressions():
    with pytest.raises(ExecutionError, match="function upper is not supported") as info:
        evaluate(Function("upper", (Literal("a"),)))
    assert info.value.kind == "unsupported_expression"
    with pytest.raises(ExecutionError, match="wildcard expression must be expanded"):
        evaluate(Wildcard())
    with pytest.raises(ExecutionError, match="qualified wildcard users must be expanded"):
        evaluate(QualifiedWildcard("users"))


def test_predicate_evaluation():
    row = (7, "Ada")
    condition = BinaryOp(Column("id"), BinaryOperator.EQ, Literal(7))
    assert evaluate_predicate(condition, row, USERS) is True
    assert evaluate_predicate(Literal(None), row, USERS) is False
    with pytest.raises(ExecutionError, match="predicate returned non-boolean value"):
        evaluate_predicate(Column("id"), row, USERS)


def test_cast_to_integer():
    assert cast_value("42", DataType.INTEGER) == 42
    assert cast_value(-3.9, DataType.BIGINT) == math.trunc(-3.9)
    assert cast_value(Timestamp(8), DataType.INTEGER) == 8
    assert evaluate(Cast(Literal("12"), DataType.INTEGER)) == 12
    with pytest.raises(ExecutionError, match="cannot cast 'abc' to integer"):
        cast_value("abc", DataType.INTEGER)
    for text in (" 42", "9223372036854775808", "4_2"):
        with pytest.raises(ExecutionError):
            cast_value(text, DataType.INTEGER)


@pytest.mark.parametrize("number", [0.1, 1e20, -2.5, 1.5e-7, 123456.789])
def test_float_text_round_trip(number):
    text = cast_value(number, DataType.TEXT)
    assert "e" not in text
    assert cast_value(text, DataType.REAL) == number


def test_integral_floats_print_like_integers():
    assert value_to_string(2.0) == value_to_string(2)
    assert value_to_string(None) == "NULL"
    assert value_to_string(True) == "true"


def test_cast_to_boolean():
    assert cast_value(" TRUE ", DataType.BOOLEAN) is True
    assert cast_value("false", DataType.BOOLEAN) is False
    assert cast_value(0, DataType.BOOLEAN) is False
    with pytest.raises(ExecutionError, match="cannot cast 'maybe' to boolean"):
        cast_value("maybe", DataType.BOOLEAN)


def test_cast_to_timestamp():
    assert cast_value(5, DataType.TIMESTAMP) == Timestamp(5)
    assert cast_value("17", DataType.TIMESTAMP) == Timestamp(17)
    with pytest.raises(ExecutionError, match="to timestamp"):
        cast_value(True, DataType.TIMESTAMP)


def test_cast_null_and_blob():
    assert cast_value(None, DataType.BLOB) is None
    with pytest.raises(ExecutionError, match="BLOB columns do not support CAST"):
        cast_value(1, DataType.BLOB)
    with pytest.raises(ExecutionError, match="BLOB columns do not support CAST"):
        cast_value(b"\x01", DataType.TEXT)