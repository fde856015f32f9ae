"""Drive the decoder across a buffer and fan records out to listeners."""

from __future__ import annotations

from collections import Counter
from typing import Callable, Iterable, Protocol, runtime_checkable

from osmchangesets.core.logging import Logger, get_logger

from .decoder import ChangesetDecoder
from .editors import EditorCanonicalizer
from .errors import GrammarError
from .grammar import skip_prologue
from .models import Changeset, DecodeStatus, DispatchOutcome
from .scanner import Buffer, Cursor
from .seeker import search_for_start_date

__all__ = ["ChangesetListener", "Dispatcher", "decode"]


@runtime_checkable
class ChangesetListener(Protocol):
    """Consumer receiving decoded changesets in file order."""

    def initialize(self) -> None:
        """Called once before the first record."""

    def process(self, changeset: Changeset) -> None:
        """Called once per in-range record; must not mutate ``changeset``."""

    def finalize(self) -> None:
        """Called once after ``</osm>`` is reached."""


class Dispatcher:
    """Fan decoded changesets out to registered listeners.

    Listeners are called sequentially in registration order. A decode error
    aborts the run before any ``finalize`` call; the error is reported in the
    returned :class:`DispatchOutcome` rather than raised.

    Example:
        >>> seen = []
        >>> class Collect:
        ...     def initialize(self): pass
        ...     def process(self, changeset): seen.append(changeset.id)
        ...     def finalize(self): pass
        >>> xml = b'<osm><changeset id="7" created_at="2020-01-01T00:00:00Z"/></osm>'
        >>> Dispatcher([Collect()]).run(xml).ok, seen  # doctest: +SKIP
        (True, [7])
    """

    def __init__(
        self,
        listeners: Iterable[ChangesetListener] = (),
        *,
        canonicalize: Callable[[str], str] | None = None,
        track_unused: bool = False,
        progress_interval: int = 0,
        logger: Logger | None = None,
    ) -> None:
        self._listeners: list[ChangesetListener] = list(listeners)
        self._canonicalize = canonicalize or EditorCanonicalizer()
        self._track_unused = track_unused
        self._progress_interval = max(0, progress_interval)
        self._logger = logger or get_logger(__name__, component="dispatcher")

    @property
    def listeners(self) -> tuple[ChangesetListener, ...]:
        return tuple(self._listeners)

    def add_listener(self, listener: ChangesetListener) -> None:
        """Register ``listener`` after those already present."""

        self._listeners.append(listener)

    def run(self, buffer: Buffer, start_date: str = "") -> DispatchOutcome:
        """Decode ``buffer`` and deliver every record dated ``>= start_date``."""

        log = self._logger.bind(start_date=start_date or None)
        decoder = ChangesetDecoder(
            canonicalize=self._canonicalize,
            track_unused=self._track_unused,
        )
        cursor = Cursor(buffer)
        skip_prologue(cursor)

        for listener in self._listeners:
            listener.initialize()

        if start_date:
            probe_decoder = ChangesetDecoder(canonicalize=self._canonicalize)
            cursor.position = search_for_start_date(
                buffer,
                start_date,
                start=cursor.position,
                decoder=probe_decoder,
                logger=log,
            )

        outcome = DispatchOutcome(ok=False, start_offset=cursor.position)
        log.info(
            "decode-start",
            offset=cursor.position,
            size=len(buffer),
            listeners=len(self._listeners),
        )

        while True:
            if cursor.at_end:
                # Running out of input before </osm> is a malformed dump.
                outcome.error = GrammarError(
                    message="unexpected end of input, expected </osm>",
                    offset=cursor.position,
                )
                break
            result = decoder.decode_one(cursor)
            changeset = result.changeset
            if result.status is DecodeStatus.SUCCESS and changeset is not None:
                outcome.records_decoded += 1
                if changeset.date >= start_date:
                    outcome.records_dispatched += 1
                    for listener in self._listeners:
                        listener.process(changeset)
                if (
                    self._progress_interval
                    and outcome.records_decoded % self._progress_interval == 0
                ):
                    log.info(
                        "decode-progress",
                        records=outcome.records_decoded,
                        date=changeset.date,
                        offset=cursor.position,
                    )
            elif result.status is DecodeStatus.END_OF_STREAM:
                outcome.ok = True
                break
            else:
                outcome.error = result.error
                break

        outcome.end_offset = cursor.position
        outcome.unused_tags = Counter(decoder.unused_tags)

        if not outcome.ok:
            error = outcome.error
            log.error(
                "decode-error",
                error=str(error),
                kind=type(error).__name__,
                offset=error.offset if error is not None else None,
                records=outcome.records_decoded,
            )
            return outcome

        for listener in self._listeners:
            listener.finalize()

        log.info(
            "decode-complete",
            decoded=outcome.records_decoded,
            dispatched=outcome.records_dispatched,
            start_offset=outcome.start_offset,
        )
        return outcome


def decode(
    buffer: Buffer,
    start_date: str = "",
    listeners: Iterable[ChangesetListener] = (),
    *,
    track_unused: bool = False,
    canonicalize: Callable[[str], str] | None = None,
) -> DispatchOutcome:
    """Decode ``buffer`` delivering records to ``listeners``.

    ``start_date`` is an inclusive ``YYYY-MM-DD`` lower bound; empty means
    from the beginning.
    """

    dispatcher = Dispatcher(
        listeners,
        canonicalize=canonicalize,
        track_unused=track_unused,
    )
    return dispatcher.run(buffer, start_date)
