"""Tests for :mod:`osmchangesets.core.config`."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from osmchangesets.core.config import (
    AppConfig,
    ConfigError,
    DecoderSettings,
    ReaderSettings,
    _deep_merge,
    env_overrides,
    load_config,
    load_packaged_defaults,
    normalize_start_date,
    read_config_file,
    render_user_config,
)
from osmchangesets.resources import get_resource


def test_packaged_defaults_load() -> None:
    defaults = load_packaged_defaults()

    config = load_config(defaults=defaults)

    assert config.log_level == "INFO"
    assert config.log_dir is None
    assert config.decoder == DecoderSettings()
    assert config.readers.top_count == 20
    assert "streaks" in config.readers.enabled
    assert "date-printer" not in config.readers.enabled


def test_get_resource_missing_file_raises() -> None:
    with pytest.raises(FileNotFoundError):
        get_resource("does-not-exist.toml")


@pytest.mark.parametrize("value", ["2021-13", "yesterday", "2021/01/01"])
def test_start_date_validation_rejects(value: str) -> None:
    with pytest.raises(ValueError):
        normalize_start_date(value)


def test_start_date_validation_accepts() -> None:
    assert normalize_start_date("") == ""
    assert DecoderSettings(start_date=" 2021-01-01 ").start_date == "2021-01-01"


def test_reader_names_normalized() -> None:
    settings = ReaderSettings(enabled=("Top_Mappers", "quests", "QUESTS", " "))

    assert settings.enabled == ("top-mappers", "quests")


def test_extra_editor_names_deduplicated() -> None:
    settings = DecoderSettings(extra_editor_names=("Mapillary", "", "Mapillary"))

    assert settings.extra_editor_names == ("Mapillary",)


def test_deep_merge_nested() -> None:
    base = {"decoder": {"start_date": "", "track_unused_tags": False}, "log_level": "INFO"}

    merged = _deep_merge(base, {"decoder": {"start_date": "2020-01-01"}})

    assert merged == {
        "decoder": {"start_date": "2020-01-01", "track_unused_tags": False},
        "log_level": "INFO",
    }
    assert base["decoder"]["start_date"] == ""


def test_precedence_stack() -> None:
    config = load_config(
        defaults=load_packaged_defaults(),
        user_config={"log_level": "warning", "decoder": {"start_date": "2019-01-01"}},
        env_config=env_overrides(
            {"OSMCS_START_DATE": "2020-01-01", "OSMCS_LOG_DIR": "/tmp/osmcs"}
        ),
        cli_overrides={"readers": {"enabled": ["quests"]}},
    )

    assert config.log_level == "WARNING"
    assert config.decoder.start_date == "2020-01-01"
    assert config.log_dir == Path("/tmp/osmcs")
    assert config.readers.enabled == ("quests",)
    assert config.readers.comment_limit == 100


def test_env_overrides_ignores_unrelated() -> None:
    assert env_overrides({"HOME": "/root", "OSMCS_LOG_LEVEL": ""}) == {}
    assert env_overrides({"OSMCS_LOG_LEVEL": "debug"}) == {"log_level": "debug"}


def test_load_config_wraps_validation_errors() -> None:
    with pytest.raises(ConfigError):
        load_config(
            defaults=load_packaged_defaults(),
            cli_overrides={"decoder": {"start_date": "soon"}},
        )


def test_read_config_file(tmp_path: Path) -> None:
    path = tmp_path / "osm-changesets.toml"
    path.write_text('log_level = "debug"\n[readers]\ntop_count = 5\n', encoding="utf-8")

    assert read_config_file(path) == {"log_level": "debug", "readers": {"top_count": 5}}


def test_read_config_file_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Cannot read"):
        read_config_file(tmp_path / "missing.toml")

    broken = tmp_path / "broken.toml"
    broken.write_text("log_level = ", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid TOML"):
        read_config_file(broken)


def test_render_user_config_round_trips() -> None:
    config = load_config(
        defaults=load_packaged_defaults(),
        cli_overrides={
            "log_dir": "/var/log/osmcs",
            "decoder": {"start_date": "2022-02-02", "extra_editor_names": ["Mapillary"]},
        },
    )

    rendered = render_user_config(config)

    assert rendered.startswith("# Generated by osm-changesets config")
    assert "OSMCS_START_DATE" in rendered
    reloaded = load_config(defaults=tomllib.loads(rendered))
    assert reloaded == config


def test_render_user_config_without_comments() -> None:
    rendered = render_user_config(AppConfig(), include_comments=False)

    assert not rendered.lstrip().startswith("#")
    assert tomllib.loads(rendered)["log_dir"] == ""
