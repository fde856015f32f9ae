"""Tests for :mod:`osmchangesets.readers.registry`."""

from __future__ import annotations

import pytest

from osmchangesets.core.config import ReaderSettings, load_config, load_packaged_defaults
from osmchangesets.readers import (
    READERS,
    CommentReader,
    StreakReader,
    TopMappersReader,
    UnknownReaderError,
    build_readers,
    get_descriptor,
)


def test_descriptor_names_are_unique_and_match_readers() -> None:
    names = [descriptor.name for descriptor in READERS]

    assert len(names) == len(set(names))
    for descriptor in READERS:
        assert descriptor.factory(ReaderSettings()).name == descriptor.name


def test_packaged_defaults_enable_registered_readers() -> None:
    config = load_config(defaults=load_packaged_defaults())

    readers = build_readers(config.readers.enabled, config.readers)

    assert [reader.name for reader in readers] == list(config.readers.enabled)


def test_build_readers_applies_settings() -> None:
    settings = ReaderSettings(
        top_count=3,
        comment_limit=7,
        streak_min_days=30,
        tracked_apps=("Every Door",),
        quest_app="Quests",
    )

    top, comments, streaks = build_readers(
        ["top-mappers", "Comments", "streaks"],
        settings,
    )

    assert isinstance(top, TopMappersReader)
    assert top.apps == ("Every Door",)
    assert top.top_count == 3
    assert isinstance(comments, CommentReader)
    assert (comments.limit, comments.excluded_app) == (7, "Quests")
    assert isinstance(streaks, StreakReader)
    assert streaks.min_days == 30


def test_build_readers_skips_duplicates() -> None:
    readers = build_readers(["quests", "QUESTS", "large_areas"], ReaderSettings())

    assert [reader.name for reader in readers] == ["quests", "large-areas"]


def test_unknown_reader_raises() -> None:
    with pytest.raises(UnknownReaderError) as excinfo:
        build_readers(["quests", "heatmap"], ReaderSettings())

    assert excinfo.value.name == "heatmap"
    assert "quests" in excinfo.value.known
    assert "Unknown reader 'heatmap'" in str(excinfo.value)


def test_get_descriptor_normalizes_name() -> None:
    assert get_descriptor(" Date_Printer ").name == "date-printer"
