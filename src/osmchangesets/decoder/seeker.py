"""Binary search for the first changeset on or after a date."""

from __future__ import annotations

import re

from osmchangesets.core.logging import Logger, get_logger

from .decoder import ChangesetDecoder
from .models import DecodeStatus
from .scanner import Buffer, Cursor

__all__ = ["CHANGESET_MARKER", "search_for_start_date"]

CHANGESET_MARKER = b"<changeset "
_MARKER_RE = re.compile(re.escape(CHANGESET_MARKER))


def search_for_start_date(
    buffer: Buffer,
    target_date: str,
    *,
    start: int = 0,
    end: int | None = None,
    decoder: ChangesetDecoder | None = None,
    logger: Logger | None = None,
) -> int:
    """Return an offset at or before the first changeset dated ``target_date``.

    Relies on changesets appearing in non-decreasing date order. Each probe
    jumps to the middle of ``[start, end)``, scans forward to the next
    ``<changeset`` marker and speculatively decodes one record there. The
    search stops and returns the current ``start`` when no marker remains
    in range or a probe fails to decode, so the result is approximate and
    callers must still filter by date while scanning forward.
    """

    log = logger or get_logger(__name__, component="seeker")
    decoder = decoder or ChangesetDecoder()
    limit = len(buffer)
    end = limit if end is None else min(end, limit)
    probes = 0

    while True:
        mid = start + (end - start) // 2
        match = _MARKER_RE.search(buffer, mid, end)
        if match is None or match.end() >= end:
            break
        found = match.start()
        probes += 1
        result = decoder.decode_one(Cursor(buffer, found, limit))
        if result.status is not DecodeStatus.SUCCESS or result.changeset is None:
            log.debug(
                "seek-probe-failed",
                offset=found,
                status=result.status.value,
            )
            break
        date = result.changeset.date
        log.debug("seek-probe", offset=found, date=date, start=start, end=end)
        if date < target_date:
            start = found
        else:
            end = found

    log.debug("seek-complete", offset=start, probes=probes, target=target_date)
    return start
