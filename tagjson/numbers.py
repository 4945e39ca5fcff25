"""Parsing of JSON numbers into Python ``int`` and ``float`` values."""

from __future__ import annotations

import math
from typing import Optional, Union

from tagjson.errors import ErrorCode, JsonError
from tagjson.reader import ByteReader

Number = Union[int, float]

_U64_MAX = 2**64 - 1
_I64_MIN_MAGNITUDE = 2**63
_I32_MAX = 2**31 - 1
_I32_MIN = -(2**31)

_POW10 = tuple(float(f"1e{i}") for i in range(309))

_ZERO = 0x30
_NINE = 0x39
_MINUS = 0x2D
_PLUS = 0x2B
_DOT = 0x2E
_LOWER_E = 0x65
_UPPER_E = 0x45


def _is_digit(byte: Optional[int]) -> bool:
    return byte is not None and _ZERO <= byte <= _NINE


def _overflows(acc: int, digit: int, limit: int) -> bool:
    """True if ``acc * 10 + digit`` would exceed ``limit``."""
    return acc >= limit // 10 and (acc > limit // 10 or digit > limit % 10)


def _saturate_i32(value: int) -> int:
    return max(_I32_MIN, min(_I32_MAX, value))


def f64_from_parts(positive: bool, significand: int, exponent: int) -> float:
    """Combine a significand and a power-of-ten exponent into a float.

    Raises a :class:`JsonError` with ``NUMBER_OUT_OF_RANGE`` and no position
    when the result would be infinite.
    """
    f = float(significand)
    while True:
        magnitude = abs(exponent)
        if magnitude < len(_POW10):
            pow10 = _POW10[magnitude]
            if exponent >= 0:
                f *= pow10
                if math.isinf(f):
                    raise JsonError(ErrorCode.NUMBER_OUT_OF_RANGE)
            else:
                f /= pow10
            break
        if f == 0.0:
            break
        if exponent >= 0:
            raise JsonError(ErrorCode.NUMBER_OUT_OF_RANGE)
        f /= 1e308
        exponent += 308
    return f if positive else -f


class NumberParser:
    """Reads JSON numbers from a :class:`ByteReader`.

    The leading ``-`` of a negative number must already have been consumed;
    callers say whether the number is positive.
    """

    def __init__(self, reader: ByteReader) -> None:
        self.reader = reader

    # -- byte access -------------------------------------------------------

    def _peek_or_null(self) -> int:
        byte = self.reader.peek()
        return 0 if byte is None else byte

    def _next_or_null(self) -> int:
        byte = self.reader.next()
        return 0 if byte is None else byte

    def _eat(self) -> None:
        self.reader.discard()

    def _error(self, code: ErrorCode) -> JsonError:
        pos = self.reader.position()
        return JsonError.syntax(code, pos.line, pos.column)

    def _peek_error(self, code: ErrorCode) -> JsonError:
        pos = self.reader.peek_position()
        return JsonError.syntax(code, pos.line, pos.column)

    def _skip_digits(self) -> None:
        while _is_digit(self.reader.peek()):
            self._eat()

    # -- parsing -----------------------------------------------------------

    def parse_integer(self, positive: bool) -> Number:
        """Parse the digits of a number; returns an ``int`` or a ``float``."""
        first = self.reader.next()
        if first is None:
            raise self._error(ErrorCode.EOF_WHILE_PARSING_VALUE)
        if first == _ZERO:
            if _is_digit(self.reader.peek()):
                raise self._peek_error(ErrorCode.INVALID_NUMBER)
            return self._parse_number(positive, 0)
        if not _is_digit(first):
            raise self._error(ErrorCode.INVALID_NUMBER)
        significand = first - _ZERO
        while True:
            byte = self.reader.peek()
            if not _is_digit(byte):
                return self._parse_number(positive, significand)
            digit = byte - _ZERO
            if _overflows(significand, digit, _U64_MAX):
                return self._parse_long_integer(positive, significand)
            self._eat()
            significand = significand * 10 + digit

    def parse_any_number(self, positive: bool) -> Number:
        """Parse any JSON number after its optional sign."""
        return self.parse_integer(positive)

    def _parse_number(self, positive: bool, significand: int) -> Number:
        byte = self._peek_or_null()
        if byte == _DOT:
            return self._parse_decimal(positive, significand, 0)
        if byte in (_LOWER_E, _UPPER_E):
            return self._parse_exponent(positive, significand, 0)
        if positive:
            return significand
        # Zero and magnitudes beyond the signed 64-bit range become floats.
        if significand == 0 or significand > _I64_MIN_MAGNITUDE:
            return -float(significand)
        return -significand

    def _parse_decimal(self, positive: bool, significand: int, exponent: int) -> float:
        self._eat()
        while True:
            byte = self.reader.peek()
            if not _is_digit(byte):
                break
            digit = byte - _ZERO
            if _overflows(significand, digit, _U64_MAX):
                return self._parse_decimal_overflow(positive, significand, exponent)
            self._eat()
            significand = significand * 10 + digit
            exponent -= 1

        if exponent == 0:
            if self.reader.peek() is not None:
                raise self._peek_error(ErrorCode.INVALID_NUMBER)
            raise self._peek_error(ErrorCode.EOF_WHILE_PARSING_VALUE)

        if self._peek_or_null() in (_LOWER_E, _UPPER_E):
            return self._parse_exponent(positive, significand, exponent)
        return self._from_parts(positive, significand, exponent)

    def _parse_exponent(self, positive: bool, significand: int, starting_exp: int) -> float:
        self._eat()
        sign = self._peek_or_null()
        positive_exp = True
        if sign == _PLUS:
            self._eat()
        elif sign == _MINUS:
            self._eat()
            positive_exp = False

        first = self.reader.next()
        if first is None:
            raise self._error(ErrorCode.EOF_WHILE_PARSING_VALUE)
        if not _is_digit(first):
            raise self._error(ErrorCode.INVALID_NUMBER)
        exp = first - _ZERO

        while True:
            byte = self.reader.peek()
            if not _is_digit(byte):
                break
            self._eat()
            digit = byte - _ZERO
            if _overflows(exp, digit, _I32_MAX):
                return self._parse_exponent_overflow(positive, significand == 0, positive_exp)
            exp = exp * 10 + digit

        final_exp = starting_exp + exp if positive_exp else starting_exp - exp
        return self._from_parts(positive, significand, _saturate_i32(final_exp))

    def _parse_long_integer(self, positive: bool, significand: int) -> float:
        exponent = 0
        while True:
            byte = self._peek_or_null()
            if _is_digit(byte):
                self._eat()
                exponent += 1
            elif byte == _DOT:
                return self._parse_decimal(positive, significand, exponent)
            elif byte in (_LOWER_E, _UPPER_E):
                return self._parse_exponent(positive, significand, exponent)
            else:
                return self._from_parts(positive, significand, exponent)

    def _parse_decimal_overflow(self, positive: bool, significand: int, exponent: int) -> float:
        # Further digits cannot change the significand; skip them.
        self._skip_digits()
        if self._peek_or_null() in (_LOWER_E, _UPPER_E):
            return self._parse_exponent(positive, significand, exponent)
        return self._from_parts(positive, significand, exponent)

    def _parse_exponent_overflow(
        self, positive: bool, zero_significand: bool, positive_exp: bool
    ) -> float:
        if not zero_significand and positive_exp:
            raise self._error(ErrorCode.NUMBER_OUT_OF_RANGE)
        self._skip_digits()
        return 0.0 if positive else -0.0

    def _from_parts(self, positive: bool, significand: int, exponent: int) -> float:
        try:
            return f64_from_parts(positive, significand, exponent)
        except JsonError as err:
            raise err.fix_position(self._error) from None

    # -- scanning and skipping ---------------------------------------------

    def scan_integer128(self) -> str:
        """Read the digits of an integer without a fraction or exponent."""
        first = self._next_or_null()
        if first == _ZERO:
            if _is_digit(self.reader.peek()):
                raise self._peek_error(ErrorCode.INVALID_NUMBER)
            return "0"
        if not _is_digit(first):
            raise self._error(ErrorCode.INVALID_NUMBER)
        digits = [chr(first)]
        while _is_digit(self.reader.peek()):
            digits.append(chr(self.reader.next()))
        return "".join(digits)

    def ignore_integer(self) -> None:
        """Validate and skip a number without building its value."""
        first = self._next_or_null()
        if first == _ZERO:
            if _is_digit(self.reader.peek()):
                raise self._peek_error(ErrorCode.INVALID_NUMBER)
        elif _is_digit(first):
            self._skip_digits()
        else:
            raise self._error(ErrorCode.INVALID_NUMBER)

        byte = self._peek_or_null()
        if byte == _DOT:
            self._ignore_decimal()
        elif byte in (_LOWER_E, _UPPER_E):
            self._ignore_exponent()

    def _ignore_decimal(self) -> None:
        self._eat()
        if not _is_digit(self.reader.peek()):
            raise self._peek_error(ErrorCode.INVALID_NUMBER)
        self._skip_digits()
        if self._peek_or_null() in (_LOWER_E, _UPPER_E):
            self._ignore_exponent()

    def _ignore_exponent(self) -> None:
        self._eat()
        if self._peek_or_null() in (_PLUS, _MINUS):
            self._eat()
        if not _is_digit(self._next_or_null()):
            raise self._error(ErrorCode.INVALID_NUMBER)
        self._skip_digits()


def parse_number(text: Union[str, bytes]) -> Number:
    """Parse a whole string as a single JSON number, with an optional ``-``."""
    reader = ByteReader(text)
    parser = NumberParser(reader)
    head = reader.peek()
    if head is None:
        raise parser._peek_error(ErrorCode.EOF_WHILE_PARSING_VALUE)

    failure: Optional[JsonError] = None
    value: Number = 0
    try:
        if head == _MINUS:
            parser._eat()
            value = parser.parse_any_number(False)
        elif _is_digit(head):
            value = parser.parse_any_number(True)
        else:
            raise parser._peek_error(ErrorCode.INVALID_NUMBER)
    except JsonError as err:
        failure = err

    if reader.peek() is not None:
        failure = parser._peek_error(ErrorCode.INVALID_NUMBER)
    if failure is not None:
        raise failure.fix_position(parser._error)
    return value