"""Typed error hierarchy for changeset decoding."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "ChangesetDecodeError",
    "GrammarError",
    "UnterminatedValueError",
    "UnexpectedElementError",
    "SourceFileError",
]


@dataclass(slots=True)
class ChangesetDecodeError(RuntimeError):
    """Base error describing why a decode run stopped.

    Decode errors travel inside results as terminal statuses. They are only
    raised when a caller opts in via ``DispatchOutcome.raise_for_error``.
    """

    message: str
    offset: int

    def __post_init__(self) -> None:
        RuntimeError.__init__(self, f"{self.message} at byte {self.offset}")


@dataclass(slots=True)
class GrammarError(ChangesetDecodeError):
    """A bracket, key, ``=`` or quoted value was required but not found."""


@dataclass(slots=True)
class UnterminatedValueError(ChangesetDecodeError):
    """A quoted attribute value has no closing quote before end of input."""


@dataclass(slots=True)
class UnexpectedElementError(ChangesetDecodeError):
    """An element name other than the ones allowed at this point."""

    element: str = ""


class SourceFileError(RuntimeError):
    """Raised when a dump file cannot be opened for decoding."""
