"""Collapse raw ``created_by`` values into stable application names."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable

__all__ = ["KNOWN_EDITORS", "EditorCanonicalizer", "canonicalize_editor"]

# Matched by prefix in this order. These need truncating earlier than the
# version heuristic would, or carry no version separator at all.
KNOWN_EDITORS: tuple[str, ...] = (
    "Go Map!!",
    "Paint The Town Red",
    "Every Door",
    "MAPS.ME",
    "OsmAnd",
    "Organic Maps",
    "OMaps",
    "StreetComplete",
)

_SEPARATORS = frozenset(" /-")
_DIGITS = frozenset("0123456789")


def _version_cut(raw: str) -> int | None:
    """Return the index of a separator introducing a version, if any.

    Recognized forms are ``" 1"``, ``"/1"``, ``"-1"`` and the same with a
    ``v`` before the digit. A ``/`` directly after another ``/`` (as in a
    URL) is not a separator.
    """

    length = len(raw)
    for index in range(1, length):
        char = raw[index]
        if char not in _SEPARATORS:
            continue
        if char == "/" and raw[index - 1] == "/":
            continue
        following = raw[index + 1 : index + 3]
        if following[:1] in _DIGITS or (
            following[:1] == "v" and following[1:2] in _DIGITS
        ):
            return index
    return None


def canonicalize_editor(
    raw: str,
    known_names: Iterable[str] = KNOWN_EDITORS,
) -> str:
    """Return the application family for a raw ``created_by`` value.

    Example:
        >>> canonicalize_editor("JOSM/1.5 (18303 en)")
        'JOSM'
        >>> canonicalize_editor("Go Map!! 4.1.0")
        'Go Map!!'
        >>> canonicalize_editor("iD 2.20.1")
        'iD'
        >>> canonicalize_editor("Potlatch v2.3")
        'Potlatch'
        >>> canonicalize_editor("https://example.org/editor")
        'https://example.org/editor'
    """

    for name in known_names:
        if raw.startswith(name):
            return name
    cut = _version_cut(raw)
    return raw if cut is None else raw[:cut]


class EditorCanonicalizer:
    """Canonicalizer bound to a table of known application names.

    Results for the most recently seen ``created_by`` strings are kept in a
    bounded LRU cache.
    """

    def __init__(
        self,
        extra_names: Iterable[str] = (),
        *,
        cache_size: int = 4096,
    ) -> None:
        self.known_names: tuple[str, ...] = tuple(
            dict.fromkeys((*KNOWN_EDITORS, *extra_names))
        )
        self._lookup = lru_cache(maxsize=cache_size)(self._canonicalize)

    def _canonicalize(self, raw: str) -> str:
        return canonicalize_editor(raw, self.known_names)

    def __call__(self, raw: str) -> str:
        return self._lookup(raw)
