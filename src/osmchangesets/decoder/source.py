"""Read-only access to changeset dump files."""

from __future__ import annotations

import mmap
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from osmchangesets.core.logging import get_logger

from .dispatcher import ChangesetListener, Dispatcher
from .errors import SourceFileError
from .models import DispatchOutcome
from .scanner import Buffer

__all__ = ["COMPRESSED_SUFFIXES", "decode_file", "open_dump"]

COMPRESSED_SUFFIXES: frozenset[str] = frozenset({".bz2", ".gz", ".xz"})


@contextmanager
def open_dump(path: Path | str) -> Iterator[Buffer]:
    """Memory-map ``path`` read-only for the duration of the block.

    Compressed dumps are rejected; the decoder needs random access for the
    date seek and works on the uncompressed XML only.

    Raises:
        SourceFileError: If the file is compressed, missing or unreadable.
    """

    dump = Path(path)
    if dump.suffix.lower() in COMPRESSED_SUFFIXES:
        raise SourceFileError(
            f"{dump} is compressed; decompress it before decoding"
        )
    try:
        handle = dump.open("rb")
    except OSError as exc:
        raise SourceFileError(f"Cannot open {dump}: {exc}") from exc

    with handle:
        size = dump.stat().st_size
        if size == 0:
            yield b""
            return
        try:
            mapped = mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ)
        except (OSError, ValueError) as exc:
            raise SourceFileError(f"Cannot map {dump}: {exc}") from exc
        if hasattr(mapped, "madvise") and hasattr(mmap, "MADV_SEQUENTIAL"):
            mapped.madvise(mmap.MADV_SEQUENTIAL)
        get_logger(__name__, component="source").debug(
            "dump-mapped", path=str(dump), size=size
        )
        try:
            yield mapped
        finally:
            mapped.close()


def decode_file(
    path: Path | str,
    listeners: Iterable[ChangesetListener] = (),
    *,
    start_date: str = "",
    dispatcher: Dispatcher | None = None,
) -> DispatchOutcome:
    """Decode the dump at ``path`` delivering records to ``listeners``.

    When ``dispatcher`` is given, ``listeners`` are appended to it.
    """

    runner = dispatcher or Dispatcher()
    for listener in listeners:
        runner.add_listener(listener)
    with open_dump(path) as buffer:
        return runner.run(buffer, start_date)
