"""Per-application readers: daily users, edit rates, large areas, retention."""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from dataclasses import dataclass, field

from osmchangesets.decoder import Changeset

from .base import ReaderReport

__all__ = [
    "EARTH_RADIUS_METERS",
    "EditorDailyUsersReader",
    "EditsPerChangesetReader",
    "LargeAreaReader",
    "RetentionReader",
    "great_circle_distance",
]

EARTH_RADIUS_METERS = 6378137.0


def great_circle_distance(
    lon1: float,
    lat1: float,
    lon2: float,
    lat2: float,
) -> float:
    """Return the haversine distance in meters between two points.

    Example:
        >>> round(great_circle_distance(0.0, 0.0, 0.0, 1.0))
        111319
    """

    dlon = math.radians(lon2 - lon1)
    dlat = math.radians(lat2 - lat1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(dlon / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass(slots=True)
class _EditorUsage:
    changesets: int = 0
    edits: int = 0
    users_today: set[str] = field(default_factory=set)
    user_days: int = 0


class EditorDailyUsersReader:
    """Average unique daily users and edits per user-day for each editor."""

    name = "editor-daily-users"

    def __init__(self, *, min_daily_users: float = 0.1) -> None:
        self.min_daily_users = min_daily_users
        self.initialize()

    def initialize(self) -> None:
        self.reports: list[ReaderReport] = []
        self._editors: dict[str, _EditorUsage] = {}
        self._current_date = ""
        self._date_count = 0

    def _close_day(self) -> None:
        for usage in self._editors.values():
            usage.user_days += len(usage.users_today)
            usage.users_today.clear()

    def process(self, changeset: Changeset) -> None:
        if changeset.date != self._current_date:
            self._close_day()
            self._current_date = changeset.date
            self._date_count += 1
        usage = self._editors.get(changeset.application)
        if usage is None:
            usage = self._editors[changeset.application] = _EditorUsage()
        usage.users_today.add(changeset.user)
        usage.edits += changeset.edit_count
        usage.changesets += 1

    def finalize(self) -> None:
        self._close_day()
        days = self._date_count or 1
        stats = []
        for editor, usage in self._editors.items():
            user_rate = usage.user_days / days
            edit_rate = usage.edits / usage.user_days if usage.user_days else 0.0
            stats.append((user_rate, edit_rate, editor))
        stats.sort(reverse=True)
        rows = tuple(
            f"{user_rate:6.1f} {edit_rate:12.1f}  {editor}"
            for user_rate, edit_rate, editor in stats
            if user_rate > self.min_daily_users
        )
        self.reports = [
            ReaderReport(title="Average daily users and edits/user:", rows=rows)
        ]


class LargeAreaReader:
    """Count changesets whose bounding box spans more than a threshold."""

    name = "large-areas"

    def __init__(self, *, threshold_meters: float = 1_000_000.0) -> None:
        self.threshold_meters = threshold_meters
        self.initialize()

    def initialize(self) -> None:
        self.reports: list[ReaderReport] = []
        self._counts: Counter[str] = Counter()

    def process(self, changeset: Changeset) -> None:
        distance = great_circle_distance(*changeset.bbox)
        if distance > self.threshold_meters:
            self._counts[changeset.application] += 1

    def finalize(self) -> None:
        rows = tuple(
            f"{editor:<30} {count:6d}"
            for editor, count in sorted(self._counts.items())
        )
        self.reports = [
            ReaderReport(title="Number of large changeset areas:", rows=rows)
        ]


@dataclass(slots=True)
class _EditRate:
    edits: int = 0
    changesets: int = 0
    last_changeset: int = 0


class EditsPerChangesetReader:
    """Average edits per changeset for editors with enough changesets."""

    name = "edits-per-changeset"

    def __init__(self, *, min_changesets: int = 100) -> None:
        self.min_changesets = min_changesets
        self.initialize()

    def initialize(self) -> None:
        self.reports: list[ReaderReport] = []
        self._rates: defaultdict[str, _EditRate] = defaultdict(_EditRate)

    def process(self, changeset: Changeset) -> None:
        rate = self._rates[changeset.application]
        rate.changesets += 1
        rate.edits += changeset.edit_count
        rate.last_changeset = changeset.id

    def finalize(self) -> None:
        ranked = sorted(
            (
                (rate.edits / rate.changesets, editor, rate)
                for editor, rate in self._rates.items()
                if rate.changesets >= self.min_changesets
            ),
            key=lambda item: item[0],
            reverse=True,
        )
        rows = tuple(
            f"{ratio:11.6f}:  {editor} [{rate.last_changeset}]"
            for ratio, editor, rate in ranked
        )
        self.reports = [
            ReaderReport(title="Edits/changeset per application", rows=rows)
        ]


class RetentionReader:
    """Most used editors per calendar year by changeset count."""

    name = "retention"

    def __init__(self, *, per_year: int = 10) -> None:
        self.per_year = per_year
        self.initialize()

    def initialize(self) -> None:
        self.reports: list[ReaderReport] = []
        self._years: defaultdict[str, Counter[str]] = defaultdict(Counter)

    def process(self, changeset: Changeset) -> None:
        self._years[changeset.date[:4]][changeset.application] += 1

    def finalize(self) -> None:
        rows: list[str] = []
        for year in sorted(self._years):
            rows.append(f"year {year}")
            ranked = sorted(
                self._years[year].items(),
                key=lambda item: (item[1], item[0]),
                reverse=True,
            )
            rows.extend(
                f"    {count:10d}:  {editor}"
                for editor, count in ranked[: self.per_year]
            )
        self.reports = [
            ReaderReport(title="Retention per editor", rows=tuple(rows))
        ]
