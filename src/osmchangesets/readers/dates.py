"""Date-oriented readers: editing streaks and yearly progress markers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from osmchangesets.core.logging import get_logger
from osmchangesets.decoder import Changeset

from .base import ReaderReport

__all__ = ["DatePrinterReader", "StreakReader"]


@dataclass(slots=True)
class _Streak:
    user: str
    start_date: str
    first_day: int
    last_day: int

    @property
    def days(self) -> int:
        return self.last_day - self.first_day + 1


class StreakReader:
    """Longest runs of consecutive calendar days on which a user edited.

    Changesets arrive in date order, so each user's streak is extended or
    closed as records stream in and no per-date user sets are retained.
    """

    name = "streaks"

    def __init__(self, *, min_days: int = 100, limit: int = 1000) -> None:
        self.min_days = min_days
        self.limit = limit
        self.initialize()

    def initialize(self) -> None:
        self.reports: list[ReaderReport] = []
        self._active: dict[str, _Streak] = {}
        self._finished: list[_Streak] = []
        self._last_date = ""
        self._last_day = 0

    def _day_number(self, value: str) -> int | None:
        if value != self._last_date:
            try:
                self._last_day = date.fromisoformat(value).toordinal()
            except ValueError:
                return None
            self._last_date = value
        return self._last_day

    def process(self, changeset: Changeset) -> None:
        day = self._day_number(changeset.date)
        if day is None:
            return
        streak = self._active.get(changeset.user)
        if streak is None:
            self._active[changeset.user] = _Streak(
                changeset.user, changeset.date, day, day
            )
        elif day == streak.last_day + 1:
            streak.last_day = day
        elif day > streak.last_day + 1:
            self._close(streak)
            self._active[changeset.user] = _Streak(
                changeset.user, changeset.date, day, day
            )

    def _close(self, streak: _Streak) -> None:
        if streak.days > self.min_days:
            self._finished.append(streak)

    def finalize(self) -> None:
        for streak in self._active.values():
            self._close(streak)
        self._active.clear()
        ranked = sorted(self._finished, key=lambda s: s.days, reverse=True)
        rows = [
            "| Consecutive Days | First Day of Streak | User |",
            "|------|------------|-----------------|",
        ]
        rows.extend(
            f"|{streak.days:11d}| {streak.start_date} | {streak.user} |"
            for streak in ranked[: self.limit]
        )
        self.reports = [
            ReaderReport(title="Longest editing streaks:", rows=tuple(rows))
        ]


class DatePrinterReader:
    """Note the first changeset date of each new year from 2010 onwards."""

    name = "date-printer"

    def __init__(self, *, since: str = "2010") -> None:
        self.since = since
        self.initialize()

    def initialize(self) -> None:
        self.reports: list[ReaderReport] = []
        self._dates: list[str] = []
        self._previous = ""
        self._logger = get_logger(__name__, reader=self.name)

    def process(self, changeset: Changeset) -> None:
        current = changeset.date
        if not self._previous or (
            self._previous[:4] != current[:4] and current >= self.since
        ):
            self._dates.append(current)
            self._logger.info("year-reached", date=current)
        self._previous = current

    def finalize(self) -> None:
        self.reports = [
            ReaderReport(title="Year boundaries:", rows=tuple(self._dates))
        ]
