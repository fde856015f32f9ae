"""Registry of bundled statistics readers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from osmchangesets.core.config import ReaderSettings

from .base import StatisticsReader
from .dates import DatePrinterReader, StreakReader
from .editors import (
    EditorDailyUsersReader,
    EditsPerChangesetReader,
    LargeAreaReader,
    RetentionReader,
)
from .tags import CommentReader, LocaleReader, QuestReader
from .users import TopMappersReader

ReaderFactory = Callable[[ReaderSettings], StatisticsReader]


class UnknownReaderError(KeyError):
    """Raised when a requested reader name is not registered."""

    def __init__(self, name: str, known: Iterable[str]) -> None:
        self.name = name
        self.known = tuple(known)
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown reader {self.name!r}; choose from {', '.join(self.known)}"


@dataclass(frozen=True, slots=True)
class ReaderDescriptor:
    """Declare a reader by name with a factory bound to settings.

    Example:
        >>> descriptor = get_descriptor("quests")
        >>> descriptor.factory(ReaderSettings()).name
        'quests'
    """

    name: str
    description: str
    factory: ReaderFactory


READERS: tuple[ReaderDescriptor, ...] = (
    ReaderDescriptor(
        name="editor-daily-users",
        description="Average unique daily users and edits/user per editor.",
        factory=lambda s: EditorDailyUsersReader(min_daily_users=s.min_daily_users),
    ),
    ReaderDescriptor(
        name="large-areas",
        description="Changesets whose bounding box spans a large distance.",
        factory=lambda s: LargeAreaReader(threshold_meters=s.large_area_meters),
    ),
    ReaderDescriptor(
        name="top-mappers",
        description="Most prolific users of each tracked application.",
        factory=lambda s: TopMappersReader(
            apps=s.tracked_apps,
            top_count=s.top_count,
        ),
    ),
    ReaderDescriptor(
        name="quests",
        description="StreetComplete quest type counts.",
        factory=lambda s: QuestReader(),
    ),
    ReaderDescriptor(
        name="comments",
        description="Most common changeset comments.",
        factory=lambda s: CommentReader(
            limit=s.comment_limit,
            excluded_app=s.quest_app,
        ),
    ),
    ReaderDescriptor(
        name="locales",
        description="Locale tag counts for one application.",
        factory=lambda s: LocaleReader(app=s.locale_app),
    ),
    ReaderDescriptor(
        name="retention",
        description="Top editors per calendar year.",
        factory=lambda s: RetentionReader(),
    ),
    ReaderDescriptor(
        name="edits-per-changeset",
        description="Average edits per changeset for each editor.",
        factory=lambda s: EditsPerChangesetReader(min_changesets=s.min_changesets),
    ),
    ReaderDescriptor(
        name="streaks",
        description="Longest consecutive-day editing streaks.",
        factory=lambda s: StreakReader(min_days=s.streak_min_days),
    ),
    ReaderDescriptor(
        name="date-printer",
        description="First changeset date of each new year.",
        factory=lambda s: DatePrinterReader(),
    ),
)


def _canonical_reader_name(raw: str) -> str:
    """Normalize user-supplied reader names.

    Example:
        >>> _canonical_reader_name(" Top_Mappers ")
        'top-mappers'
    """

    return raw.strip().lower().replace("_", "-")


def get_descriptor(name: str) -> ReaderDescriptor:
    """Return the descriptor registered under ``name``.

    Raises:
        UnknownReaderError: If no reader carries that name.
    """

    canonical = _canonical_reader_name(name)
    for descriptor in READERS:
        if descriptor.name == canonical:
            return descriptor
    raise UnknownReaderError(name, (d.name for d in READERS))


def build_readers(
    names: Iterable[str],
    settings: ReaderSettings,
) -> list[StatisticsReader]:
    """Instantiate the named readers in order, skipping duplicates."""

    descriptors = [get_descriptor(name) for name in names]
    unique = {descriptor.name: descriptor for descriptor in descriptors}
    return [descriptor.factory(settings) for descriptor in unique.values()]


__all__ = [
    "READERS",
    "ReaderDescriptor",
    "ReaderFactory",
    "UnknownReaderError",
    "build_readers",
    "get_descriptor",
]
