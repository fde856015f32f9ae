"""Per-user readers for selected applications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from osmchangesets.decoder import Changeset

from .base import ReaderReport

__all__ = ["TopMappersReader"]

_HEADER = "    edits    sets  most recent     last set   user"


@dataclass(slots=True)
class _UserStats:
    changesets: int = 0
    edits: int = 0
    last_date: str = ""
    last_changeset: int = 0


class TopMappersReader:
    """Most prolific users of each tracked application."""

    name = "top-mappers"

    def __init__(self, *, apps: Iterable[str], top_count: int = 20) -> None:
        self.apps = tuple(apps)
        self.top_count = top_count
        self.initialize()

    def initialize(self) -> None:
        self.reports: list[ReaderReport] = []
        self._per_app: dict[str, dict[str, _UserStats]] = {
            app: {} for app in self.apps
        }

    def process(self, changeset: Changeset) -> None:
        users = self._per_app.get(changeset.application)
        if users is None:
            return
        stats = users.get(changeset.user)
        if stats is None:
            stats = users[changeset.user] = _UserStats()
        stats.changesets += 1
        stats.edits += changeset.edit_count
        stats.last_date = changeset.date
        stats.last_changeset = changeset.id

    def finalize(self) -> None:
        self.reports = [
            self._report(app, users) for app, users in sorted(self._per_app.items())
        ]

    def _report(self, app: str, users: dict[str, _UserStats]) -> ReaderReport:
        total_edits = sum(stats.edits for stats in users.values())
        total_sets = sum(stats.changesets for stats in users.values())
        ranked = sorted(
            users.items(),
            key=lambda item: item[1].edits,
            reverse=True,
        )[: self.top_count]

        rows = [f"{total_edits:9d} {total_sets:7d}   {'':10}  {'':>11}   <Total>"]
        rows.extend(
            f"{stats.edits:9d} {stats.changesets:7d}   {stats.last_date:10}  "
            f"{stats.last_changeset:11d}   {user}"
            for user, stats in ranked
            if stats.edits > 0
        )
        return ReaderReport(
            title=f"{app} top {self.top_count} prolific users:",
            header=_HEADER,
            rows=tuple(rows),
        )
