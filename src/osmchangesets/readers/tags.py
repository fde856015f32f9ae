"""Readers tallying free-form changeset tags: quests, comments, locales."""

from __future__ import annotations

from collections import Counter

from osmchangesets.decoder import Changeset

from .base import ReaderReport

__all__ = ["CommentReader", "LocaleReader", "QuestReader"]


def _ranked(counts: Counter[str]) -> list[tuple[str, int]]:
    return sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)


class QuestReader:
    """Count StreetComplete quest types with running percentages."""

    name = "quests"

    def __init__(self) -> None:
        self.initialize()

    def initialize(self) -> None:
        self.reports: list[ReaderReport] = []
        self._quests: Counter[str] = Counter()

    def process(self, changeset: Changeset) -> None:
        if changeset.quest_type:
            self._quests[changeset.quest_type] += 1

    def finalize(self) -> None:
        total = sum(self._quests.values())
        rows: list[str] = []
        running = 0
        for quest, count in _ranked(self._quests):
            running += count
            rows.append(
                f"{count:9d} {100.0 * count / total:.2f}% "
                f"({100.0 * running / total:.2f}%) {quest}"
            )
        self.reports = [ReaderReport(title="StreetComplete quests:", rows=tuple(rows))]


class CommentReader:
    """Most common changeset comments.

    Comments that ever appear on changesets from ``excluded_app`` are left
    out of the ranking, since that application writes templated comments.
    """

    name = "comments"

    def __init__(self, *, limit: int = 100, excluded_app: str = "StreetComplete") -> None:
        self.limit = limit
        self.excluded_app = excluded_app
        self.initialize()

    def initialize(self) -> None:
        self.reports: list[ReaderReport] = []
        self._comments: Counter[str] = Counter()
        self._excluded: set[str] = set()
        self._total = 0

    def process(self, changeset: Changeset) -> None:
        self._total += 1
        self._comments[changeset.comment] += 1
        if changeset.application == self.excluded_app:
            self._excluded.add(changeset.comment)

    def finalize(self) -> None:
        ranked = [
            (comment, count)
            for comment, count in _ranked(self._comments)
            if comment not in self._excluded
        ]
        total = self._total or 1
        rows = tuple(
            f'{count:9d} ({100.0 * count / total:.6f}%) "{comment}"'
            for comment, count in ranked[: self.limit]
        )
        self.reports = [
            ReaderReport(title=f"Top {self.limit} changeset comments:", rows=rows)
        ]


class LocaleReader:
    """Locale tag counts for one application."""

    name = "locales"

    def __init__(self, *, app: str = "Go Map!!") -> None:
        self.app = app
        self.initialize()

    def initialize(self) -> None:
        self.reports: list[ReaderReport] = []
        self._locales: Counter[str] = Counter()

    def process(self, changeset: Changeset) -> None:
        if changeset.application == self.app:
            self._locales[changeset.locale] += 1

    def finalize(self) -> None:
        rows = tuple(
            f"{count:9d}  {locale}" for locale, count in _ranked(self._locales)
        )
        self.reports = [
            ReaderReport(title=f"Most common locales in {self.app}", rows=rows)
        ]
