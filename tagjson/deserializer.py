"""Reading JSON text into Python values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from tagjson.errors import ErrorCode, JsonError, invalid_type
from tagjson.numbers import NumberParser
from tagjson.reader import ByteReader

_RECURSION_LIMIT = 128

_WHITESPACE = frozenset(b" \n\t\r")
_QUOTE = 0x22
_BACKSLASH = 0x5C
_COMMA = 0x2C
_COLON = 0x3A
_MINUS = 0x2D
_LBRACKET = 0x5B
_RBRACKET = 0x5D
_LBRACE = 0x7B
_RBRACE = 0x7D
_LOWER_N = 0x6E
_LOWER_T = 0x74
_LOWER_F = 0x66
_LOWER_U = 0x75

_SIMPLE_ESCAPES = {
    _QUOTE: _QUOTE,
    _BACKSLASH: _BACKSLASH,
    ord("/"): ord("/"),
    ord("b"): 0x08,
    ord("f"): 0x0C,
    ord("n"): 0x0A,
    ord("r"): 0x0D,
    ord("t"): 0x09,
}

_HEX = {ord(c): int(c, 16) for c in "0123456789abcdefABCDEF"}

_OPENED = object()


def _is_digit(byte: Optional[int]) -> bool:
    return byte is not None and 0x30 <= byte <= 0x39


@dataclass
class _Frame:
    """An array or object that is still being filled."""

    container: Union[list, dict]
    is_map: bool
    first: bool = True
    key: Optional[str] = field(default=None)

    def add(self, value: Any) -> None:
        if self.is_map:
            self.container[self.key] = value
        else:
            self.container.append(value)


class Deserializer:
    """Reads JSON values from a :class:`ByteReader`.

    Arrays and objects may nest at most 127 levels deep unless
    :meth:`disable_recursion_limit` is called.
    """

    def __init__(self, reader: Any) -> None:
        if not isinstance(reader, ByteReader):
            reader = ByteReader(reader)
        self.reader = reader
        self._numbers = NumberParser(reader)
        self._remaining_depth = _RECURSION_LIMIT
        self._recursion_limited = True

    @classmethod
    def from_str(cls, text: str) -> "Deserializer":
        return cls(ByteReader(text))

    @classmethod
    def from_slice(cls, data: Union[bytes, bytearray, memoryview]) -> "Deserializer":
        return cls(ByteReader(data))

    @classmethod
    def from_reader(cls, stream: Any) -> "Deserializer":
        return cls(ByteReader(stream))

    def disable_recursion_limit(self) -> None:
        """Allow arbitrarily deep nesting of arrays and objects."""
        self._recursion_limited = False

    # -- low level ---------------------------------------------------------

    def _eat(self) -> None:
        self.reader.discard()

    def _error(self, code: ErrorCode) -> JsonError:
        pos = self.reader.position()
        return JsonError.syntax(code, pos.line, pos.column)

    def _peek_error(self, code: ErrorCode) -> JsonError:
        pos = self.reader.peek_position()
        return JsonError.syntax(code, pos.line, pos.column)

    def _relocate(self, err: JsonError) -> JsonError:
        return err.fix_position(self._error)

    def parse_whitespace(self) -> Optional[int]:
        """Skip whitespace; return the next byte without consuming it, or None."""
        while True:
            byte = self.reader.peek()
            if byte is None or byte not in _WHITESPACE:
                return byte
            self._eat()

    def end(self) -> None:
        """Check that only whitespace remains in the input."""
        if self.parse_whitespace() is not None:
            raise self._peek_error(ErrorCode.TRAILING_CHARACTERS)

    def _parse_ident(self, ident: bytes) -> None:
        for expected in ident:
            byte = self.reader.next()
            if byte is None:
                raise self._error(ErrorCode.EOF_WHILE_PARSING_VALUE)
            if byte != expected:
                raise self._error(ErrorCode.EXPECTED_SOME_IDENT)

    def _parse_object_colon(self) -> None:
        byte = self.parse_whitespace()
        if byte == _COLON:
            self._eat()
            return
        if byte is None:
            raise self._peek_error(ErrorCode.EOF_WHILE_PARSING_OBJECT)
        raise self._peek_error(ErrorCode.EXPECTED_COLON)

    def _enter(self) -> None:
        if self._recursion_limited:
            self._remaining_depth -= 1
            if self._remaining_depth == 0:
                raise self._peek_error(ErrorCode.RECURSION_LIMIT_EXCEEDED)

    def _leave(self) -> None:
        if self._recursion_limited:
            self._remaining_depth += 1

    # -- strings -----------------------------------------------------------

    def _next_or_eof(self) -> int:
        byte = self.reader.next()
        if byte is None:
            raise self._error(ErrorCode.EOF_WHILE_PARSING_STRING)
        return byte

    def _decode_hex_escape(self) -> int:
        value = 0
        for _ in range(4):
            digit = _HEX.get(self._next_or_eof())
            if digit is None:
                raise self._error(ErrorCode.INVALID_ESCAPE)
            value = value * 16 + digit
        return value

    def _parse_escape(self, buf: bytearray) -> None:
        byte = self._next_or_eof()
        simple = _SIMPLE_ESCAPES.get(byte)
        if simple is not None:
            buf.append(simple)
            return
        if byte != _LOWER_U:
            raise self._error(ErrorCode.INVALID_ESCAPE)
        code = self._decode_hex_escape()
        if 0xDC00 <= code <= 0xDFFF:
            raise self._error(ErrorCode.LONE_LEADING_SURROGATE_IN_HEX_ESCAPE)
        if 0xD800 <= code <= 0xDBFF:
            if self._next_or_eof() != _BACKSLASH:
                raise self._error(ErrorCode.UNEXPECTED_END_OF_HEX_ESCAPE)
            if self._next_or_eof() != _LOWER_U:
                raise self._error(ErrorCode.UNEXPECTED_END_OF_HEX_ESCAPE)
            low = self._decode_hex_escape()
            if not 0xDC00 <= low <= 0xDFFF:
                raise self._error(ErrorCode.LONE_LEADING_SURROGATE_IN_HEX_ESCAPE)
            code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
        buf += chr(code).encode("utf-8")

    def _scan_str(self) -> bytearray:
        """Read a string body after its opening quote, resolving escapes."""
        buf = bytearray()
        while True:
            byte = self.reader.next()
            if byte is None:
                raise self._error(ErrorCode.EOF_WHILE_PARSING_STRING)
            if byte == _QUOTE:
                return buf
            if byte == _BACKSLASH:
                self._parse_escape(buf)
            elif byte < 0x20:
                raise self._error(ErrorCode.CONTROL_CHARACTER_WHILE_PARSING_STRING)
            else:
                buf.append(byte)

    def _parse_str(self) -> str:
        raw = self._scan_str()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise self._error(ErrorCode.INVALID_UNICODE_CODE_POINT) from None

    def _peek_invalid_type(self, expected: str) -> JsonError:
        """Read the value ahead and build a type error describing it."""
        peek = self.reader.peek()
        if peek == _LOWER_N:
            self._eat()
            self._parse_ident(b"ull")
            unexpected: Any = None
        elif peek == _LOWER_T:
            self._eat()
            self._parse_ident(b"rue")
            unexpected = True
        elif peek == _LOWER_F:
            self._eat()
            self._parse_ident(b"alse")
            unexpected = False
        elif peek == _MINUS:
            self._eat()
            unexpected = self._numbers.parse_any_number(False)
        elif _is_digit(peek):
            unexpected = self._numbers.parse_any_number(True)
        elif peek == _QUOTE:
            self._eat()
            unexpected = self._parse_str()
        elif peek == _LBRACKET:
            unexpected = []
        elif peek == _LBRACE:
            unexpected = {}
        else:
            return self._peek_error(ErrorCode.EXPECTED_SOME_VALUE)
        return self._relocate(invalid_type(unexpected, expected))

    def parse_string(self) -> str:
        """Read a JSON string; any other value is a data error."""
        peek = self.parse_whitespace()
        if peek is None:
            raise self._peek_error(ErrorCode.EOF_WHILE_PARSING_VALUE)
        if peek == _QUOTE:
            self._eat()
            try:
                return self._parse_str()
            except JsonError as err:
                fixed = self._relocate(err)
                if fixed is err:
                    raise
                raise fixed from err.__cause__
        raise self._peek_invalid_type("a string")

    # -- values ------------------------------------------------------------

    def _parse_scalar(self, peek: int) -> Any:
        if peek == _LOWER_N:
            self._eat()
            self._parse_ident(b"ull")
            return None
        if peek == _LOWER_T:
            self._eat()
            self._parse_ident(b"rue")
            return True
        if peek == _LOWER_F:
            self._eat()
            self._parse_ident(b"alse")
            return False
        if peek == _MINUS:
            self._eat()
            return self._numbers.parse_any_number(False)
        if _is_digit(peek):
            return self._numbers.parse_any_number(True)
        if peek == _QUOTE:
            self._eat()
            return self._parse_str()
        raise self._peek_error(ErrorCode.EXPECTED_SOME_VALUE)

    def _start_value(self, stack: list) -> Any:
        peek = self.parse_whitespace()
        if peek is None:
            raise self._peek_error(ErrorCode.EOF_WHILE_PARSING_VALUE)
        if peek in (_LBRACKET, _LBRACE):
            self._enter()
            self._eat()
            is_map = peek == _LBRACE
            stack.append(_Frame({} if is_map else [], is_map))
            return _OPENED
        return self._parse_scalar(peek)

    def _next_element(self, frame: _Frame) -> bool:
        """Advance to the next element of ``frame``; False once it is closed."""
        if frame.is_map:
            close = _RBRACE
            comma_error = ErrorCode.EXPECTED_OBJECT_COMMA_OR_END
            eof_error = ErrorCode.EOF_WHILE_PARSING_OBJECT
        else:
            close = _RBRACKET
            comma_error = ErrorCode.EXPECTED_LIST_COMMA_OR_END
            eof_error = ErrorCode.EOF_WHILE_PARSING_LIST

        byte = self.parse_whitespace()
        if byte == close:
            self._eat()
            return False
        if byte == _COMMA and not frame.first:
            self._eat()
            byte = self.parse_whitespace()
        elif byte is None:
            raise self._peek_error(eof_error)
        elif frame.first:
            frame.first = False
        else:
            raise self._peek_error(comma_error)

        if byte == close:
            raise self._peek_error(ErrorCode.TRAILING_COMMA)
        if byte is None:
            raise self._peek_error(ErrorCode.EOF_WHILE_PARSING_VALUE)
        if frame.is_map:
            if byte != _QUOTE:
                raise self._peek_error(ErrorCode.KEY_MUST_BE_A_STRING)
            self._eat()
            frame.key = self._parse_str()
            self._parse_object_colon()
        return True

    def _parse_any(self) -> Any:
        stack: list[_Frame] = []
        value = self._start_value(stack)
        while True:
            if value is not _OPENED:
                if not stack:
                    return value
                stack[-1].add(value)
            frame = stack[-1]
            if self._next_element(frame):
                value = self._start_value(stack)
            else:
                stack.pop()
                self._leave()
                value = frame.container

    def parse_value(self) -> Any:
        """Read one JSON value as dict, list, str, int, float, bool or None."""
        saved_depth = self._remaining_depth
        try:
            return self._parse_any()
        except JsonError as err:
            fixed = self._relocate(err)
            if fixed is err:
                raise
            raise fixed from err.__cause__
        finally:
            self._remaining_depth = saved_depth

    def ignore_value(self) -> None:
        """Validate and skip one JSON value without building it."""
        frames: list[int] = []
        enclosing: Optional[int] = None

        while True:
            peek = self.parse_whitespace()
            if peek is None:
                raise self._peek_error(ErrorCode.EOF_WHILE_PARSING_VALUE)

            frame: Optional[int] = None
            if peek == _LOWER_N:
                self._eat()
                self._parse_ident(b"ull")
            elif peek == _LOWER_T:
                self._eat()
                self._parse_ident(b"rue")
            elif peek == _LOWER_F:
                self._eat()
                self._parse_ident(b"alse")
            elif peek == _MINUS:
                self._eat()
                self._numbers.ignore_integer()
            elif _is_digit(peek):
                self._numbers.ignore_integer()
            elif peek == _QUOTE:
                self._eat()
                self._scan_str()
            elif peek in (_LBRACKET, _LBRACE):
                if enclosing is not None:
                    frames.append(enclosing)
                    enclosing = None
                self._eat()
                frame = peek
            else:
                raise self._peek_error(ErrorCode.EXPECTED_SOME_VALUE)

            if frame is not None:
                accept_comma = False
            elif enclosing is not None:
                frame, enclosing = enclosing, None
                accept_comma = True
            elif frames:
                frame = frames.pop()
                accept_comma = True
            else:
                return

            while True:
                byte = self.parse_whitespace()
                if byte == _COMMA and accept_comma:
                    self._eat()
                    break
                closes = (byte == _RBRACKET and frame == _LBRACKET) or (
                    byte == _RBRACE and frame == _LBRACE
                )
                if not closes:
                    if byte is None:
                        raise self._peek_error(
                            ErrorCode.EOF_WHILE_PARSING_LIST
                            if frame == _LBRACKET
                            else ErrorCode.EOF_WHILE_PARSING_OBJECT
                        )
                    if accept_comma:
                        raise self._peek_error(
                            ErrorCode.EXPECTED_LIST_COMMA_OR_END
                            if frame == _LBRACKET
                            else ErrorCode.EXPECTED_OBJECT_COMMA_OR_END
                        )
                    break
                self._eat()
                if not frames:
                    return
                frame = frames.pop()
                accept_comma = True

            if frame == _LBRACE:
                byte = self.parse_whitespace()
                if byte is None:
                    raise self._peek_error(ErrorCode.EOF_WHILE_PARSING_OBJECT)
                if byte != _QUOTE:
                    raise self._peek_error(ErrorCode.KEY_MUST_BE_A_STRING)
                self._eat()
                self._scan_str()
                byte = self.parse_whitespace()
                if byte is None:
                    raise self._peek_error(ErrorCode.EOF_WHILE_PARSING_OBJECT)
                if byte != _COLON:
                    raise self._peek_error(ErrorCode.EXPECTED_COLON)
                self._eat()

            enclosing = frame


def _read_whole(de: Deserializer) -> Any:
    value = de.parse_value()
    de.end()
    return value


def from_str(text: str) -> Any:
    """Parse a complete JSON document held in a string."""
    return _read_whole(Deserializer.from_str(text))


def from_slice(data: Union[bytes, bytearray, memoryview]) -> Any:
    """Parse a complete JSON document held in bytes."""
    return _read_whole(Deserializer.from_slice(data))


def from_reader(stream: Any) -> Any:
    """Parse a complete JSON document read from a file-like object."""
    return _read_whole(Deserializer.from_reader(stream))