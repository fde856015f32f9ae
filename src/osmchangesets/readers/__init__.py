"""Statistics readers that consume decoded changesets."""

from __future__ import annotations

from .base import ReaderReport, StatisticsReader
from .dates import DatePrinterReader, StreakReader
from .editors import (
    EditorDailyUsersReader,
    EditsPerChangesetReader,
    LargeAreaReader,
    RetentionReader,
    great_circle_distance,
)
from .registry import (
    READERS,
    ReaderDescriptor,
    UnknownReaderError,
    build_readers,
    get_descriptor,
)
from .tags import CommentReader, LocaleReader, QuestReader
from .users import TopMappersReader

__all__ = [
    "READERS",
    "CommentReader",
    "DatePrinterReader",
    "EditorDailyUsersReader",
    "EditsPerChangesetReader",
    "LargeAreaReader",
    "LocaleReader",
    "QuestReader",
    "ReaderDescriptor",
    "ReaderReport",
    "RetentionReader",
    "StatisticsReader",
    "StreakReader",
    "TopMappersReader",
    "UnknownReaderError",
    "build_readers",
    "great_circle_distance",
    "get_descriptor",
]
