"""Tests for :mod:`osmchangesets.decoder.source`."""

from __future__ import annotations

import mmap
from pathlib import Path

import pytest

from osmchangesets.decoder import (
    Dispatcher,
    SourceFileError,
    decode_file,
    open_dump,
)


class Collect:
    def __init__(self) -> None:
        self.ids: list[int] = []

    def initialize(self) -> None:
        self.ids = []

    def process(self, changeset) -> None:
        self.ids.append(changeset.id)

    def finalize(self) -> None:
        pass


def test_open_dump_maps_file(write_dump, sample_dump: bytes) -> None:
    path = write_dump(sample_dump)

    with open_dump(path) as buffer:
        assert isinstance(buffer, mmap.mmap)
        assert len(buffer) == len(sample_dump)
        assert buffer[:5] == b"<?xml"

    assert buffer.closed


def test_open_dump_empty_file(write_dump) -> None:
    path = write_dump(b"")

    with open_dump(path) as buffer:
        assert buffer == b""


@pytest.mark.parametrize("name", ["changesets.osm.bz2", "changesets.osm.gz"])
def test_open_dump_rejects_compressed(write_dump, name: str) -> None:
    path = write_dump(b"BZh91AY&SY", name)

    with pytest.raises(SourceFileError, match="compressed"):
        with open_dump(path):
            pass


def test_open_dump_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SourceFileError, match="Cannot open"):
        with open_dump(tmp_path / "missing.osm"):
            pass


def test_decode_file_runs_listeners(write_dump, sample_dump: bytes) -> None:
    listener = Collect()

    outcome = decode_file(write_dump(sample_dump), [listener])

    assert outcome.ok
    assert listener.ids == [1, 2, 3, 4]


def test_decode_file_with_start_date(write_dump, sample_dump: bytes) -> None:
    listener = Collect()

    outcome = decode_file(
        str(write_dump(sample_dump)),
        [listener],
        start_date="2021-01-01",
    )

    assert outcome.ok
    assert listener.ids == [4]


def test_decode_file_uses_given_dispatcher(write_dump, sample_dump: bytes) -> None:
    first, second = Collect(), Collect()
    dispatcher = Dispatcher([first])

    decode_file(write_dump(sample_dump), [second], dispatcher=dispatcher)

    assert first.ids == second.ids == [1, 2, 3, 4]
    assert len(dispatcher.listeners) == 2


def test_decode_file_empty_is_error(write_dump) -> None:
    outcome = decode_file(write_dump(b""))

    assert not outcome.ok
    assert outcome.error is not None
