"""State machine decoding one ``<changeset>`` element at a time."""

from __future__ import annotations

from collections import Counter
from typing import Callable

from .editors import EditorCanonicalizer
from .errors import UnexpectedElementError
from .models import Changeset, DecodeResult, DecodeStatus
from .scanner import Cursor, Span, parse_float, parse_int

__all__ = ["ChangesetDecoder", "QUEST_TYPE_TAG"]

QUEST_TYPE_TAG = b"StreetComplete:quest_type"

_CHANGESET = b"changeset"
_END_CHANGESET = b"/changeset"
_END_OSM = b"/osm"
_TAG = b"tag"
_K = b"k"
_V = b"v"
_DATE_LENGTH = 10

_INT_ATTRIBUTES: dict[bytes, str] = {
    b"id": "id",
    b"uid": "uid",
    b"num_changes": "edit_count",
}
_FLOAT_ATTRIBUTES: dict[bytes, str] = {
    b"min_lat": "min_lat",
    b"max_lat": "max_lat",
    b"min_lon": "min_lon",
    b"max_lon": "max_lon",
}
_TEXT_TAGS: dict[bytes, str] = {
    b"comment": "comment",
    b"locale": "locale",
    QUEST_TYPE_TAG: "quest_type",
}


class ChangesetDecoder:
    """Decode changeset elements from a :class:`Cursor`.

    Each call to :meth:`decode_one` consumes exactly one element and returns
    a terminal :class:`DecodeResult`. On ``ERROR`` the cursor position is not
    meaningful for recovery; callers treat the stream as failed.

    Args:
        canonicalize: Callable mapping raw ``created_by`` values to
            application families.
        track_unused: Tally ignored attribute names and tag keys in
            :attr:`unused_tags`.
    """

    def __init__(
        self,
        *,
        canonicalize: Callable[[str], str] | None = None,
        track_unused: bool = False,
    ) -> None:
        self.canonicalize = canonicalize or EditorCanonicalizer()
        self.track_unused = track_unused
        self.unused_tags: Counter[str] = Counter()

    def _note_unused(self, cursor: Cursor, span: Span) -> None:
        if self.track_unused:
            self.unused_tags[cursor.unescape(span)] += 1

    def decode_one(self, cursor: Cursor) -> DecodeResult:
        """Decode the next element at ``cursor``."""

        start = cursor.position
        if not cursor.match_open_bracket():
            return DecodeResult.failed(cursor.failure("expected '<'"))
        name = cursor.read_key()
        if name is None:
            return DecodeResult.failed(cursor.failure("expected element name"))

        if not cursor.equals(name, _CHANGESET):
            if cursor.equals(name, _END_OSM):
                if cursor.match_close_bracket() is None:
                    return DecodeResult.failed(cursor.failure("expected '>'"))
                return DecodeResult(
                    status=DecodeStatus.END_OF_STREAM,
                    offset=cursor.position,
                )
            return DecodeResult.failed(
                UnexpectedElementError(
                    message="expected <changeset> or </osm>",
                    offset=name.start,
                    element=cursor.text(name),
                )
            )

        changeset = Changeset()
        error = self._read_attributes(cursor, changeset)
        if error is not None:
            return error

        form = cursor.match_close_bracket()
        if form is None:
            return DecodeResult.failed(cursor.failure("expected end of tag"))
        if not form.has_children:
            # 2005-era changesets carry no tags and no end element.
            return DecodeResult(
                status=DecodeStatus.SUCCESS,
                offset=start,
                changeset=changeset,
            )
        return self._read_children(cursor, changeset, start)

    def _read_attributes(
        self,
        cursor: Cursor,
        changeset: Changeset,
    ) -> DecodeResult | None:
        while True:
            checkpoint = cursor.position
            pair = cursor.read_key_value()
            if pair is None:
                if cursor.unterminated:
                    return DecodeResult.failed(cursor.failure(""))
                cursor.position = checkpoint
                return None
            key, value = pair
            raw_key = cursor.raw(key)
            if raw_key in _INT_ATTRIBUTES:
                setattr(
                    changeset,
                    _INT_ATTRIBUTES[raw_key],
                    parse_int(cursor.raw(value)),
                )
            elif raw_key in _FLOAT_ATTRIBUTES:
                setattr(
                    changeset,
                    _FLOAT_ATTRIBUTES[raw_key],
                    parse_float(cursor.raw(value)),
                )
            elif raw_key == b"created_at":
                changeset.date = cursor.unescape(value, limit=_DATE_LENGTH)
            elif raw_key == b"user":
                changeset.user = cursor.unescape(value)
            else:
                self._note_unused(cursor, key)

    def _read_children(
        self,
        cursor: Cursor,
        changeset: Changeset,
        start: int,
    ) -> DecodeResult:
        while True:
            if not cursor.match_open_bracket():
                return DecodeResult.failed(cursor.failure("expected '<'"))
            name = cursor.read_key()
            if name is None:
                return DecodeResult.failed(
                    cursor.failure("expected element name")
                )

            if cursor.equals(name, _TAG):
                pair = cursor.read_key_value()
                if pair is None:
                    return DecodeResult.failed(
                        cursor.failure("expected k attribute")
                    )
                key, tag_name = pair
                if not cursor.equals(key, _K):
                    return DecodeResult.failed(
                        UnexpectedElementError(
                            message="expected k attribute on <tag>",
                            offset=key.start,
                            element=cursor.text(key),
                        )
                    )
                error = self._read_tag_value(cursor, changeset, tag_name)
                if error is not None:
                    return error
                if cursor.match_close_bracket() is None:
                    return DecodeResult.failed(
                        cursor.failure("expected end of <tag>")
                    )
            elif cursor.equals(name, _END_CHANGESET):
                if cursor.match_close_bracket() is None:
                    return DecodeResult.failed(cursor.failure("expected '>'"))
                return DecodeResult(
                    status=DecodeStatus.SUCCESS,
                    offset=start,
                    changeset=changeset,
                )
            else:
                return DecodeResult.failed(
                    UnexpectedElementError(
                        message="expected <tag> or </changeset>",
                        offset=name.start,
                        element=cursor.text(name),
                    )
                )

    def _read_tag_value(
        self,
        cursor: Cursor,
        changeset: Changeset,
        tag_name: Span,
    ) -> DecodeResult | None:
        """Consume the ``v`` attribute following ``k``.

        A missing or malformed ``v`` is tolerated here; the closing bracket
        check that follows decides whether the tag is well formed.
        """

        raw_name = cursor.raw(tag_name)
        checkpoint = cursor.position
        pair = cursor.read_key_value()
        if pair is None:
            if cursor.unterminated:
                return DecodeResult.failed(cursor.failure(""))
            cursor.position = checkpoint
            return None
        key, value = pair
        if raw_name == b"created_by":
            if cursor.equals(key, _V):
                changeset.application_raw = cursor.unescape(value)
                changeset.application = self.canonicalize(
                    changeset.application_raw
                )
        elif raw_name in _TEXT_TAGS:
            if cursor.equals(key, _V):
                setattr(changeset, _TEXT_TAGS[raw_name], cursor.unescape(value))
        else:
            self._note_unused(cursor, tag_name)
        return None
