"""Record and result types produced by the changeset decoder."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum

from .errors import ChangesetDecodeError

__all__ = [
    "Changeset",
    "DecodeResult",
    "DecodeStatus",
    "DispatchOutcome",
]


@dataclass(slots=True)
class Changeset:
    """One decoded ``<changeset>`` element.

    ``date`` holds the ``YYYY-MM-DD`` prefix of ``created_at`` and compares
    lexicographically. Missing numeric attributes stay zero and missing text
    stays empty.
    """

    id: int = 0
    date: str = ""
    user: str = ""
    uid: int = 0
    edit_count: int = 0
    min_lat: float = 0.0
    max_lat: float = 0.0
    min_lon: float = 0.0
    max_lon: float = 0.0
    application_raw: str = ""
    application: str = ""
    comment: str = ""
    locale: str = ""
    quest_type: str = ""

    @property
    def bbox(self) -> tuple[float, float, float, float]:
        """Return ``(min_lon, min_lat, max_lon, max_lat)``."""

        return (self.min_lon, self.min_lat, self.max_lon, self.max_lat)


class DecodeStatus(StrEnum):
    """Terminal outcome of decoding one element."""

    SUCCESS = "success"
    END_OF_STREAM = "end-of-stream"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class DecodeResult:
    """Outcome of a single ``decode_one`` call."""

    status: DecodeStatus
    offset: int
    changeset: Changeset | None = None
    error: ChangesetDecodeError | None = None

    @classmethod
    def failed(cls, error: ChangesetDecodeError) -> "DecodeResult":
        return cls(status=DecodeStatus.ERROR, offset=error.offset, error=error)


@dataclass(slots=True)
class DispatchOutcome:
    """Summary of a full dispatch run over one buffer."""

    ok: bool
    start_offset: int = 0
    end_offset: int = 0
    records_decoded: int = 0
    records_dispatched: int = 0
    error: ChangesetDecodeError | None = None
    unused_tags: Counter[str] = field(default_factory=Counter)

    def raise_for_error(self) -> None:
        """Raise the stored decode error, if any."""

        if self.error is not None:
            raise self.error
