"""Lexical primitives over an immutable byte buffer.

The scanner never copies the source buffer while matching. Keys and values
are returned as :class:`Span` offsets and only materialized into ``str`` on
request (``Cursor.text`` / ``Cursor.unescape``). Every primitive checks the
cursor's ``end`` bound before touching the buffer and reports failure by
returning ``None``/``False`` rather than raising. Searches go through
compiled patterns so any buffer-protocol object is accepted.
"""

from __future__ import annotations

import mmap
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Union

from .errors import ChangesetDecodeError, GrammarError, UnterminatedValueError

__all__ = [
    "Buffer",
    "CloseForm",
    "Cursor",
    "Span",
    "parse_float",
    "parse_int",
    "unescape_bytes",
]

Buffer = Union[bytes, bytearray, memoryview, mmap.mmap]

_SPACE_RE = re.compile(rb"[ \t\n\x0b\x0c\r]*")
_KEY_RE = re.compile(rb"[A-Za-z?/][A-Za-z0-9_?]*")
_QUOTE_RE = re.compile(rb'"')
_INT_RE = re.compile(rb"[ \t\n\x0b\x0c\r]*([+-]?[0-9]+)")
_FLOAT_RE = re.compile(
    rb"[ \t\n\x0b\x0c\r]*([+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
)

_LT = ord("<")
_GT = ord(">")
_EQ = ord("=")
_QUOTE = ord('"')
_QUESTION = ord("?")

# Checked in this order at every ``&``.
_ENTITIES: tuple[tuple[bytes, int], ...] = (
    (b"quot;", ord('"')),
    (b"apos;", ord("'")),
    (b"lt;", ord("<")),
    (b"gt;", ord(">")),
    (b"amp;", ord("&")),
)


class CloseForm(StrEnum):
    """Which closing bracket ended a tag."""

    SELF_CLOSING = "/>"
    PROCESSING = "?>"
    PLAIN = ">"

    @property
    def has_children(self) -> bool:
        """Return ``True`` when child elements may follow the tag."""

        return self is CloseForm.PLAIN


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open ``[start, stop)`` byte range into the scanned buffer."""

    start: int
    stop: int

    def __len__(self) -> int:
        return self.stop - self.start


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="surrogateescape")


def unescape_bytes(raw: bytes) -> str:
    """Decode ``raw`` replacing the five predefined XML entities.

    An ``&`` that does not start a known entity is copied through unchanged.

    Example:
        >>> unescape_bytes(b"fix &amp; tidy")
        'fix & tidy'
        >>> unescape_bytes(b"R&D &copy;")
        'R&D &copy;'
    """

    if b"&" not in raw:
        return _decode(raw)

    out = bytearray()
    index = 0
    length = len(raw)
    while index < length:
        byte = raw[index]
        if byte == 0x26:  # &
            for name, replacement in _ENTITIES:
                if raw.startswith(name, index + 1):
                    out.append(replacement)
                    index += len(name) + 1
                    break
            else:
                out.append(byte)
                index += 1
        else:
            out.append(byte)
            index += 1
    return _decode(bytes(out))


def parse_int(raw: bytes) -> int:
    """Parse a leading integer leniently, returning ``0`` when absent.

    Example:
        >>> parse_int(b"42abc"), parse_int(b"n/a")
        (42, 0)
    """

    match = _INT_RE.match(raw)
    return int(match.group(1)) if match else 0


def parse_float(raw: bytes) -> float:
    """Parse a leading decimal number leniently, returning ``0.0`` when absent.

    Example:
        >>> parse_float(b"-12.5"), parse_float(b"")
        (-12.5, 0.0)
    """

    match = _FLOAT_RE.match(raw)
    return float(match.group(1).decode("ascii")) if match else 0.0


class Cursor:
    """Read position over ``buffer[position:end]``.

    The cursor remembers the kind and offset of its most recent failed
    match so callers can turn a ``None`` result into a precise error.
    """

    __slots__ = ("buffer", "position", "end", "_failure", "_failure_offset")

    def __init__(
        self,
        buffer: Buffer,
        position: int = 0,
        end: int | None = None,
    ) -> None:
        size = len(buffer)
        self.buffer = buffer
        self.end = size if end is None else max(0, min(end, size))
        self.position = max(0, min(position, self.end))
        self._failure: type[ChangesetDecodeError] = GrammarError
        self._failure_offset = self.position

    def __repr__(self) -> str:
        return f"Cursor(position={self.position}, end={self.end})"

    @property
    def at_end(self) -> bool:
        return self.position >= self.end

    @property
    def unterminated(self) -> bool:
        """Return ``True`` when the last failed match hit an open quote."""

        return self._failure is UnterminatedValueError

    def fork(self) -> "Cursor":
        """Return an independent cursor over the same buffer and bound."""

        return Cursor(self.buffer, self.position, self.end)

    def _fail(self, kind: type[ChangesetDecodeError], offset: int) -> None:
        self._failure = kind
        self._failure_offset = offset

    def failure(self, message: str) -> ChangesetDecodeError:
        """Build the error describing the most recent failed match."""

        if self._failure is UnterminatedValueError:
            message = "unterminated quoted value"
        return self._failure(message=message, offset=self._failure_offset)

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------
    def skip_space(self) -> None:
        match = _SPACE_RE.match(self.buffer, self.position, self.end)
        if match is not None:
            self.position = match.end()

    def match_open_bracket(self) -> bool:
        self.skip_space()
        position = self.position
        if position < self.end and self.buffer[position] == _LT:
            self.position = position + 1
            return True
        self._fail(GrammarError, position)
        return False

    def match_close_bracket(self) -> CloseForm | None:
        self.skip_space()
        position = self.position
        if position + 1 < self.end:
            pair = self.buffer[position : position + 2]
            if pair == b"/>":
                self.position = position + 2
                return CloseForm.SELF_CLOSING
            if pair == b"?>":
                self.position = position + 2
                return CloseForm.PROCESSING
        if position < self.end and self.buffer[position] == _GT:
            self.position = position + 1
            return CloseForm.PLAIN
        self._fail(GrammarError, position)
        return None

    def read_key(self) -> Span | None:
        self.skip_space()
        match = _KEY_RE.match(self.buffer, self.position, self.end)
        if match is None:
            self._fail(GrammarError, self.position)
            return None
        start, stop = match.span()
        # ``<?xml?>``: the final ``?`` belongs to the ``?>`` closer.
        if (
            stop - start > 1
            and self.buffer[stop - 1] == _QUESTION
            and stop < self.end
            and self.buffer[stop] == _GT
        ):
            stop -= 1
        self.position = stop
        return Span(start, stop)

    def read_quoted_value(self) -> Span | None:
        self.skip_space()
        position = self.position
        if position >= self.end or self.buffer[position] != _QUOTE:
            self._fail(GrammarError, position)
            return None
        match = _QUOTE_RE.search(self.buffer, position + 1, self.end)
        if match is None:
            self._fail(UnterminatedValueError, position)
            return None
        close = match.start()
        self.position = close + 1
        return Span(position + 1, close)

    def read_key_value(self) -> tuple[Span, Span] | None:
        """Read ``key="value"``; the position is unspecified on failure."""

        key = self.read_key()
        if key is None:
            return None
        self.skip_space()
        if self.position >= self.end or self.buffer[self.position] != _EQ:
            self._fail(GrammarError, self.position)
            return None
        self.position += 1
        value = self.read_quoted_value()
        if value is None:
            return None
        return key, value

    # ------------------------------------------------------------------
    # Span helpers
    # ------------------------------------------------------------------
    def raw(self, span: Span) -> bytes:
        return bytes(self.buffer[span.start : span.stop])

    def equals(self, span: Span, literal: bytes) -> bool:
        """Exact-length, exact-byte comparison of ``span`` with ``literal``."""

        return (
            len(span) == len(literal)
            and self.buffer[span.start : span.stop] == literal
        )

    def text(self, span: Span) -> str:
        return _decode(self.raw(span))

    def unescape(self, span: Span, limit: int | None = None) -> str:
        """Return the entity-decoded text of ``span``.

        ``limit`` caps the number of bytes taken from the start of the span.
        """

        stop = span.stop
        if limit is not None:
            stop = min(stop, span.start + limit)
        return unescape_bytes(bytes(self.buffer[span.start : stop]))
