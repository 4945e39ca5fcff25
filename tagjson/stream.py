"""Iterating over a sequence of JSON values held in one input."""

from __future__ import annotations

from typing import Any

from tagjson.deserializer import Deserializer
from tagjson.errors import ErrorCode, JsonError

_SELF_DELINEATED = frozenset(b'["{')
_VALUE_TERMINATORS = frozenset(b' \n\t\r"[]{},:')


class StreamDeserializer:
    """Yield every JSON value found one after another in an input.

    Values that do not end on a closing delimiter (numbers, ``true``,
    ``false``, ``null``) must be followed by whitespace, the start of another
    self-delineated value or the end of the input.  A parse error is raised
    from the iteration; after a failure the iterator is exhausted.  A value
    followed by trailing characters raises without ending the iteration.
    """

    def __init__(self, source: Any) -> None:
        if isinstance(source, Deserializer):
            self._de = source
        else:
            self._de = Deserializer(source)
        self._offset = self._de.reader.byte_offset()
        self._failed = False

    def __iter__(self) -> "StreamDeserializer":
        return self

    def __next__(self) -> Any:
        if self._failed:
            raise StopIteration

        reader = self._de.reader
        try:
            peek = self._de.parse_whitespace()
        except JsonError:
            self._failed = True
            raise

        if peek is None:
            self._offset = reader.byte_offset()
            raise StopIteration

        self_delineated = peek in _SELF_DELINEATED
        self._offset = reader.byte_offset()
        try:
            value = self._de.parse_value()
        except JsonError:
            self._failed = True
            raise

        self._offset = reader.byte_offset()
        if not self_delineated:
            self._check_end_of_value()
        return value

    def byte_offset(self) -> int:
        """Number of bytes consumed by the values read successfully so far.

        After an end-of-input error, new data can be appended to
        ``old_data[stream.byte_offset():]`` to try again.
        """
        return self._offset

    def _check_end_of_value(self) -> None:
        reader = self._de.reader
        byte = reader.peek()
        if byte is None or byte in _VALUE_TERMINATORS:
            return
        pos = reader.peek_position()
        raise JsonError.syntax(ErrorCode.TRAILING_CHARACTERS, pos.line, pos.column)