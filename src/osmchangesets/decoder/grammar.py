"""Tag-level productions composed from scanner primitives."""

from __future__ import annotations

from .scanner import CloseForm, Cursor

__all__ = ["PROLOGUE_TAGS", "skip_prologue", "skip_tag_with_name"]

# Leading elements skipped before the first changeset, each optional.
PROLOGUE_TAGS: tuple[bytes, ...] = (b"?xml", b"osm", b"bound")


def skip_tag_with_name(cursor: Cursor, tag: bytes) -> CloseForm | None:
    """Consume ``<tag k="v" ...>`` ignoring its attributes.

    The cursor only advances when the whole tag matches; otherwise it is left
    where it was and ``None`` is returned.
    """

    probe = cursor.fork()
    if not probe.match_open_bracket():
        return None
    key = probe.read_key()
    if key is None or not probe.equals(key, tag):
        return None
    while True:
        checkpoint = probe.position
        if probe.read_key_value() is None:
            probe.position = checkpoint
            break
    form = probe.match_close_bracket()
    if form is None:
        return None
    cursor.position = probe.position
    return form


def skip_prologue(cursor: Cursor) -> None:
    """Skip the XML declaration, ``<osm>`` root and optional ``<bound/>``."""

    for tag in PROLOGUE_TAGS:
        skip_tag_with_name(cursor, tag)
