"""Tests for :mod:`osmchangesets.decoder.grammar`."""

from __future__ import annotations

import pytest

from osmchangesets.decoder.grammar import skip_prologue, skip_tag_with_name
from osmchangesets.decoder.scanner import CloseForm, Cursor


def _remaining(cursor: Cursor) -> bytes:
    return bytes(cursor.buffer[cursor.position :]).lstrip()


@pytest.mark.parametrize(
    ("raw", "tag", "form"),
    [
        (b'<?xml version="1.0" encoding="UTF-8"?>', b"?xml", CloseForm.PROCESSING),
        (b'<osm version="0.6">', b"osm", CloseForm.PLAIN),
        (b'<bound box="-90,-180,90,180"/>', b"bound", CloseForm.SELF_CLOSING),
        (b"<?xml?>", b"?xml", CloseForm.PROCESSING),
    ],
)
def test_skip_tag_with_name_consumes_tag(raw: bytes, tag: bytes, form: CloseForm) -> None:
    cursor = Cursor(raw)

    assert skip_tag_with_name(cursor, tag) is form
    assert cursor.at_end


def test_skip_tag_with_name_leaves_cursor_on_mismatch() -> None:
    cursor = Cursor(b'<osmChange version="0.6">')

    assert skip_tag_with_name(cursor, b"osm") is None
    assert cursor.position == 0


def test_skip_tag_with_name_leaves_cursor_on_bad_close() -> None:
    cursor = Cursor(b'<osm version="0.6"')

    assert skip_tag_with_name(cursor, b"osm") is None
    assert cursor.position == 0


def test_skip_prologue_full_header(sample_dump: bytes) -> None:
    cursor = Cursor(sample_dump)

    skip_prologue(cursor)

    assert _remaining(cursor).startswith(b"<changeset ")


@pytest.mark.parametrize(
    "raw",
    [
        b"<osm>\n<changeset id=\"1\"/>",
        b'<?xml version="1.0"?><osm version="0.6"><changeset id="1"/>',
        b'<osm><bound box="0,0,1,1"/><changeset id="1"/>',
        b'<changeset id="1"/>',
    ],
)
def test_skip_prologue_optional_parts(raw: bytes) -> None:
    cursor = Cursor(raw)

    skip_prologue(cursor)

    assert _remaining(cursor).startswith(b"<changeset ")
