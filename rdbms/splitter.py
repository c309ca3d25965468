"""Splitting of SQL input into complete statements."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


@dataclass
class SplitResult:
    """Complete statements, the unfinished tail, and whether it is inside a quote or comment."""

    statements: list[str] = field(default_factory=list)
    remainder: str = ""
    in_string: bool = False


class _State(enum.Enum):
    NORMAL = enum.auto()
    SINGLE_QUOTE = enum.auto()
    DOUBLE_QUOTE = enum.auto()
    LINE_COMMENT = enum.auto()
    BLOCK_COMMENT = enum.auto()


_OPEN_STATES = {_State.SINGLE_QUOTE, _State.DOUBLE_QUOTE, _State.BLOCK_COMMENT}
_QUOTES = {"'": _State.SINGLE_QUOTE, '"': _State.DOUBLE_QUOTE}


def split_statements(text: str) -> SplitResult:
    """Split ``text`` on semicolons outside quotes and comments; comments are dropped."""
    statements: list[str] = []
    current: list[str] = []
    state = _State.NORMAL
    statement_start = 0
    chars = enumerate(text)

    for idx, ch in chars:
        following = text[idx + 1 : idx + 2]

        if state is _State.NORMAL:
            if ch in _QUOTES:
                current.append(ch)
                state = _QUOTES[ch]
            elif ch == "-" and following == "-":
                next(chars)
                state = _State.LINE_COMMENT
            elif ch == "/" and following == "*":
                next(chars)
                state = _State.BLOCK_COMMENT
            elif ch == ";":
                statement = "".join(current).strip()
                if statement:
                    statements.append(statement)
                current.clear()
                statement_start = idx + 1
            else:
                current.append(ch)

        elif state in (_State.SINGLE_QUOTE, _State.DOUBLE_QUOTE):
            current.append(ch)
            if _QUOTES.get(ch) is state:
                if following == ch:
                    current.append(following)
                    next(chars)
                else:
                    state = _State.NORMAL

        elif state is _State.LINE_COMMENT:
            if ch == "\n":
                current.append(ch)
                state = _State.NORMAL

        elif ch == "*" and following == "/":
            next(chars)
            if current and not current[-1].isspace():
                current.append(" ")
            state = _State.NORMAL

    final_state = _State.NORMAL if state is _State.LINE_COMMENT else state
    pending = "".join(current)
    in_string = final_state in _OPEN_STATES

    if not pending.strip() and not in_string:
        remainder = ""
    elif final_state is _State.BLOCK_COMMENT:
        remainder = text[statement_start:]
    else:
        remainder = pending

    return SplitResult(statements, remainder, in_string)