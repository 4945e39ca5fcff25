"""Byte sources for the JSON reader, with line and column tracking."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Optional

from tagjson.errors import JsonError

_CHUNK = 8192


@dataclass(frozen=True)
class Position:
    """A one-based line and a column; column 0 means just after a newline."""

    line: int
    column: int


class LineColIterator:
    """Iterate over bytes while tracking the line, column and byte offset."""

    def __init__(self, source: Iterable[int]) -> None:
        self._iter = iter(source)
        self._line = 1
        self._col = 0
        self._start_of_line = 0

    @property
    def line(self) -> int:
        return self._line

    @property
    def col(self) -> int:
        return self._col

    def __iter__(self) -> "LineColIterator":
        return self

    def __next__(self) -> int:
        byte = next(self._iter)
        if byte == 0x0A:
            self._start_of_line += self._col + 1
            self._line += 1
            self._col = 0
        else:
            self._col += 1
        return byte

    def byte_offset(self) -> int:
        return self._start_of_line + self._col


def _stream_bytes(stream: Any) -> Iterator[int]:
    while True:
        chunk = stream.read(_CHUNK)
        if not chunk:
            return
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        yield from chunk


def _byte_source(source: Any) -> Iterable[int]:
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if hasattr(source, "read"):
        return _stream_bytes(source)
    return source


class ByteReader:
    """A one-byte lookahead reader over text, bytes, a stream or byte iterable.

    I/O failures of the underlying stream are raised as :class:`JsonError`.
    """

    def __init__(self, source: Any) -> None:
        self._iter = LineColIterator(_byte_source(source))
        self._peeked: Optional[int] = None

    def _pull(self) -> Optional[int]:
        try:
            return next(self._iter)
        except StopIteration:
            return None
        except OSError as exc:
            raise JsonError.io(exc) from exc

    def peek(self) -> Optional[int]:
        """Return the next byte without consuming it, or None at the end."""
        if self._peeked is None:
            self._peeked = self._pull()
        return self._peeked

    def next(self) -> Optional[int]:
        """Consume and return the next byte, or None at the end."""
        if self._peeked is not None:
            byte, self._peeked = self._peeked, None
            return byte
        return self._pull()

    def discard(self) -> None:
        """Drop the byte last returned by :meth:`peek`."""
        self._peeked = None

    def position(self) -> Position:
        """Position of the most recently read byte."""
        return Position(self._iter.line, self._iter.col)

    def peek_position(self) -> Position:
        """Position of the peeked byte; peeking already advances the tracker."""
        return self.position()

    def byte_offset(self) -> int:
        """Number of bytes consumed, not counting a pending peeked byte."""
        offset = self._iter.byte_offset()
        return offset - 1 if self._peeked is not None else offset