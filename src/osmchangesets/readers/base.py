"""Shared report type and protocol for the bundled statistics readers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from osmchangesets.decoder import Changeset

__all__ = ["ReaderReport", "StatisticsReader"]


@dataclass(frozen=True, slots=True)
class ReaderReport:
    """Plain-text table produced by a reader once decoding finishes."""

    title: str
    rows: tuple[str, ...] = ()
    header: str | None = None

    def render(self) -> str:
        lines = [self.title]
        if self.header is not None:
            lines.append(self.header)
        lines.extend(self.rows)
        return "\n".join(lines)


class StatisticsReader(Protocol):
    """Changeset listener that exposes its results as reports."""

    name: str
    reports: list[ReaderReport]

    def initialize(self) -> None: ...

    def process(self, changeset: Changeset) -> None: ...

    def finalize(self) -> None: ...
