"""Tests for the :mod:`osmchangesets.__main__` entrypoint."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from osmchangesets.__main__ import main


def test_main_invokes_cli(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    write_dump,
    sample_dump: bytes,
) -> None:
    path = write_dump(sample_dump)

    monkeypatch.setenv("OSMCS_LOG_LEVEL", "warning")
    monkeypatch.setattr(
        sys,
        "argv",
        ["osm-changesets", "stats", str(path), "--reader", "locales"],
    )

    configured: dict[str, object] = {}

    def fake_configure_logging(*, level: str, log_dir: Path | None, console=None) -> None:
        configured["level"] = level
        configured["log_dir"] = log_dir

    monkeypatch.setattr("osmchangesets.cli.configure_logging", fake_configure_logging)

    with pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 0
    assert configured == {"level": "WARNING", "log_dir": None}
    assert "Most common locales in Go Map!!" in capsys.readouterr().out
