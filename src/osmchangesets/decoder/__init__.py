"""Streaming decoder for OpenStreetMap changeset dumps."""

from __future__ import annotations

from .decoder import QUEST_TYPE_TAG, ChangesetDecoder
from .dispatcher import ChangesetListener, Dispatcher, decode
from .editors import KNOWN_EDITORS, EditorCanonicalizer, canonicalize_editor
from .errors import (
    ChangesetDecodeError,
    GrammarError,
    SourceFileError,
    UnexpectedElementError,
    UnterminatedValueError,
)
from .grammar import skip_prologue, skip_tag_with_name
from .models import Changeset, DecodeResult, DecodeStatus, DispatchOutcome
from .scanner import CloseForm, Cursor, Span, unescape_bytes
from .seeker import CHANGESET_MARKER, search_for_start_date
from .source import decode_file, open_dump

__all__ = [
    "CHANGESET_MARKER",
    "KNOWN_EDITORS",
    "QUEST_TYPE_TAG",
    "Changeset",
    "ChangesetDecodeError",
    "ChangesetDecoder",
    "ChangesetListener",
    "CloseForm",
    "Cursor",
    "DecodeResult",
    "DecodeStatus",
    "DispatchOutcome",
    "Dispatcher",
    "EditorCanonicalizer",
    "GrammarError",
    "SourceFileError",
    "Span",
    "UnexpectedElementError",
    "UnterminatedValueError",
    "canonicalize_editor",
    "decode",
    "decode_file",
    "open_dump",
    "search_for_start_date",
    "skip_prologue",
    "skip_tag_with_name",
    "unescape_bytes",
]
