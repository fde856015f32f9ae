"""Shared pytest fixtures for decoder, reader and CLI tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from xml.sax.saxutils import escape

import pytest
import structlog
from rich.logging import RichHandler

ChangesetBuilder = Callable[..., str]
DumpBuilder = Callable[..., bytes]

_PROLOGUE = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<osm version="0.6" generator="planet-dump-ng 1.2.4" '
    'copyright="OpenStreetMap and contributors" '
    'attribution="http://www.openstreetmap.org/copyright" '
    'license="http://opendatacommons.org/licenses/odbl/1-0/">\n'
    ' <bound box="-90,-180,90,180" '
    'origin="http://www.openstreetmap.org/api/0.6"/>\n'
)


def _quote(value: str) -> str:
    return '"' + escape(value, {'"': "&quot;"}) + '"'


def _render_changeset(
    id: int,
    created_at: str,
    *,
    user: str | None = "mapper",
    uid: int = 1,
    num_changes: int = 1,
    bbox: tuple[float, float, float, float] | None = (0.0, 0.0, 0.1, 0.1),
    tags: Mapping[str, str] | None = None,
    extra_attrs: Mapping[str, str] | None = None,
) -> str:
    """Render one ``<changeset>`` element the way planet dumps lay it out."""

    attrs = [
        f'id="{id}"',
        f'created_at="{created_at}"',
        f'closed_at="{created_at}"',
        'open="false"',
    ]
    if user is not None:
        attrs.append(f"user={_quote(user)}")
        attrs.append(f'uid="{uid}"')
    if bbox is not None:
        min_lon, min_lat, max_lon, max_lat = bbox
        attrs.extend(
            [
                f'min_lat="{min_lat}"',
                f'min_lon="{min_lon}"',
                f'max_lat="{max_lat}"',
                f'max_lon="{max_lon}"',
            ]
        )
    attrs.append(f'num_changes="{num_changes}"')
    attrs.append('comments_count="0"')
    for key, value in (extra_attrs or {}).items():
        attrs.append(f"{key}={_quote(value)}")

    head = f" <changeset {' '.join(attrs)}"
    if not tags:
        return head + "/>\n"
    lines = [head + ">"]
    for key, value in tags.items():
        lines.append(f"  <tag k={_quote(key)} v={_quote(value)}/>")
    lines.append(" </changeset>")
    return "\n".join(lines) + "\n"


def _render_dump(
    changesets: Sequence[str],
    *,
    prologue: bool = True,
    closed: bool = True,
) -> bytes:
    body = "".join(changesets)
    text = (_PROLOGUE if prologue else "<osm>\n") + body
    if closed:
        text += "</osm>\n"
    return text.encode("utf-8")


@pytest.fixture
def make_changeset() -> ChangesetBuilder:
    """Return a builder for ``<changeset>`` XML fragments."""

    return _render_changeset


@pytest.fixture
def make_dump() -> DumpBuilder:
    """Return a builder wrapping changeset fragments into a full dump."""

    return _render_dump


@pytest.fixture
def sample_dump(make_changeset: ChangesetBuilder, make_dump: DumpBuilder) -> bytes:
    """Return a small dump covering the common element shapes."""

    return make_dump(
        [
            make_changeset(1, "2005-04-09T19:54:13Z", user=None, bbox=None),
            make_changeset(
                2,
                "2019-06-01T10:00:00Z",
                user="alice",
                num_changes=12,
                tags={
                    "created_by": "JOSM/1.5 (15238 en)",
                    "comment": "fix & tidy roads",
                    "source": "survey",
                },
            ),
            make_changeset(
                3,
                "2020-01-02T08:30:00Z",
                user="bob",
                num_changes=3,
                tags={
                    "created_by": "StreetComplete 30.1",
                    "comment": "Add opening hours",
                    "locale": "de",
                    "StreetComplete:quest_type": "AddOpeningHours",
                },
            ),
            make_changeset(
                4,
                "2021-03-04T12:00:00Z",
                user="carol",
                num_changes=7,
                tags={"created_by": "Go Map!! 3.2.1", "locale": "en-US"},
            ),
        ]
    )


@pytest.fixture
def write_dump(tmp_path: Path) -> Callable[[bytes, str], Path]:
    """Write dump bytes to a file under ``tmp_path``."""

    def _write(payload: bytes, name: str = "changesets.osm") -> Path:
        path = tmp_path / name
        path.write_bytes(payload)
        return path

    return _write


def _clear_root_handlers() -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, (RichHandler, TimedRotatingFileHandler)):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    """Ensure each test runs with a clean logging configuration."""

    yield
    _clear_root_handlers()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
