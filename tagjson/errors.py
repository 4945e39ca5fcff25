"""Errors raised while reading JSON, with their categories and positions."""

from __future__ import annotations

import enum
import math
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any, Optional


class Category(enum.Enum):
    """Broad cause of a :class:`JsonError`."""

    IO = "io"
    SYNTAX = "syntax"
    DATA = "data"
    EOF = "eof"


class ErrorCode(enum.Enum):
    """Specific reason for a :class:`JsonError`; the value is its description."""

    MESSAGE = "custom message"
    IO = "io error"
    EOF_WHILE_PARSING_LIST = "EOF while parsing a list"
    EOF_WHILE_PARSING_OBJECT = "EOF while parsing an object"
    EOF_WHILE_PARSING_STRING = "EOF while parsing a string"
    EOF_WHILE_PARSING_VALUE = "EOF while parsing a value"
    EXPECTED_COLON = "expected `:`"
    EXPECTED_LIST_COMMA_OR_END = "expected `,` or `]`"
    EXPECTED_OBJECT_COMMA_OR_END = "expected `,` or `}`"
    EXPECTED_SOME_IDENT = "expected ident"
    EXPECTED_SOME_VALUE = "expected value"
    INVALID_ESCAPE = "invalid escape"
    INVALID_NUMBER = "invalid number"
    NUMBER_OUT_OF_RANGE = "number out of range"
    INVALID_UNICODE_CODE_POINT = "invalid unicode code point"
    CONTROL_CHARACTER_WHILE_PARSING_STRING = (
        "control character (\\u0000-\\u001F) found while parsing a string"
    )
    KEY_MUST_BE_A_STRING = "key must be a string"
    LONE_LEADING_SURROGATE_IN_HEX_ESCAPE = "lone leading surrogate in hex escape"
    TRAILING_COMMA = "trailing comma"
    TRAILING_CHARACTERS = "trailing characters"
    UNEXPECTED_END_OF_HEX_ESCAPE = "unexpected end of hex escape"
    RECURSION_LIMIT_EXCEEDED = "recursion limit exceeded"

    @property
    def category(self) -> Category:
        if self is ErrorCode.MESSAGE:
            return Category.DATA
        if self is ErrorCode.IO:
            return Category.IO
        if self in _EOF_CODES:
            return Category.EOF
        return Category.SYNTAX


_EOF_CODES = frozenset(
    {
        ErrorCode.EOF_WHILE_PARSING_LIST,
        ErrorCode.EOF_WHILE_PARSING_OBJECT,
        ErrorCode.EOF_WHILE_PARSING_STRING,
        ErrorCode.EOF_WHILE_PARSING_VALUE,
    }
)


class JsonError(Exception):
    """An error met while reading JSON.

    ``line`` and ``column`` are one-based; a ``line`` of 0 means the position
    is unknown.
    """

    def __init__(
        self,
        code: ErrorCode,
        line: int = 0,
        column: int = 0,
        message: Optional[str] = None,
    ) -> None:
        self.code = code
        self.line = line
        self.column = column
        self.message = code.value if message is None else message
        super().__init__(self._render())

    def _render(self) -> str:
        if self.line == 0:
            return self.message
        return f"{self.message} at line {self.line} column {self.column}"

    def __str__(self) -> str:
        return self._render()

    def __repr__(self) -> str:
        return f"JsonError({self.message!r}, line={self.line}, column={self.column})"

    @property
    def source(self) -> Optional[BaseException]:
        """The underlying I/O error, if this error wraps one."""
        return self.__cause__ if self.code is ErrorCode.IO else None

    def classify(self) -> Category:
        return self.code.category

    def is_io(self) -> bool:
        return self.classify() is Category.IO

    def is_syntax(self) -> bool:
        return self.classify() is Category.SYNTAX

    def is_data(self) -> bool:
        return self.classify() is Category.DATA

    def is_eof(self) -> bool:
        return self.classify() is Category.EOF

    def fix_position(self, make: Callable[[ErrorCode], "JsonError"]) -> "JsonError":
        """Fill in an unknown position using ``make``, which maps a code to a
        positioned error; errors that already have a position are returned as is."""
        if self.line != 0:
            return self
        located = make(self.code)
        fixed = JsonError(self.code, located.line, located.column, self.message)
        fixed.__cause__ = self.__cause__
        return fixed

    @classmethod
    def syntax(cls, code: ErrorCode, line: int, column: int) -> "JsonError":
        return cls(code, line, column)

    @classmethod
    def io(cls, error: BaseException) -> "JsonError":
        err = cls(ErrorCode.IO, 0, 0, str(error))
        err.__cause__ = error
        return err


_LINE_MARK = " at line "
_COLUMN_MARK = " column "


def _digits_end(text: str, start: int) -> int:
    end = start
    while end < len(text) and "0" <= text[end] <= "9":
        end += 1
    return end


def parse_line_col(msg: str) -> Optional[tuple[str, int, int]]:
    """Split a trailing ``" at line L column C"`` off ``msg``.

    Returns ``(message, line, column)`` or ``None`` if the suffix is absent.
    """
    start_of_suffix = msg.rfind(_LINE_MARK)
    if start_of_suffix < 0:
        return None
    start_of_line = start_of_suffix + len(_LINE_MARK)
    end_of_line = _digits_end(msg, start_of_line)
    if not msg.startswith(_COLUMN_MARK, end_of_line):
        return None
    start_of_column = end_of_line + len(_COLUMN_MARK)
    end_of_column = _digits_end(msg, start_of_column)
    if end_of_column < len(msg):
        return None
    line_text = msg[start_of_line:end_of_line]
    column_text = msg[start_of_column:end_of_column]
    if not line_text or not column_text:
        return None
    return msg[:start_of_suffix], int(line_text), int(column_text)


def make_error(msg: str) -> JsonError:
    """Build a data error from a message, recovering any position it names."""
    parsed = parse_line_col(msg)
    if parsed is None:
        return JsonError(ErrorCode.MESSAGE, 0, 0, msg)
    text, line, column = parsed
    return JsonError(ErrorCode.MESSAGE, line, column, text)


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." not in text:
        text += ".0"
    return text


_STR_ESCAPES = {"\t": "\\t", "\r": "\\r", "\n": "\\n", "\\": "\\\\", '"': '\\"', "\0": "\\0"}


def _quote(text: str) -> str:
    parts = []
    for ch in text:
        if ch in _STR_ESCAPES:
            parts.append(_STR_ESCAPES[ch])
        elif ch.isprintable():
            parts.append(ch)
        else:
            parts.append(f"\\u{{{ord(ch):x}}}")
    return '"' + "".join(parts) + '"'


def _describe(value: Any) -> str:
    if isinstance(value, bool):
        return f"boolean `{'true' if value else 'false'}`"
    if isinstance(value, int):
        return f"integer `{value}`"
    if isinstance(value, float):
        return f"floating point `{_format_float(value)}`"
    if isinstance(value, str):
        return f"string {_quote(value)}"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "byte array"
    if isinstance(value, Mapping):
        return "map"
    if isinstance(value, (list, tuple)):
        return "sequence"
    return type(value).__name__


def invalid_type(unexpected: Any, expected: Any) -> JsonError:
    """Data error for a parsed value whose type does not match ``expected``."""
    if unexpected is None:
        return make_error(f"invalid type: null, expected {expected}")
    return make_error(f"invalid type: {_describe(unexpected)}, expected {expected}")