"""Configuration models and loaders for :mod:`osmchangesets`."""

from __future__ import annotations

import re
from collections.abc import Mapping as MappingABC
from pathlib import Path
from typing import Any, Mapping

import tomllib
import tomlkit
from pydantic import BaseModel, Field, ValidationError, field_validator

from osmchangesets.resources import get_resource

DEFAULTS_RESOURCE_NAME = "osmchangesets.defaults.toml"
ENV_PREFIX = "OSMCS_"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ConfigError(RuntimeError):
    """Raised when configuration cannot be read or validated."""


def normalize_start_date(value: str | None) -> str:
    """Validate an inclusive ``YYYY-MM-DD`` lower bound.

    Example:
        >>> normalize_start_date(" 2021-01-01 ")
        '2021-01-01'
        >>> normalize_start_date(None)
        ''
    """

    if value is None:
        return ""
    normalized = value.strip()
    if normalized and not _DATE_RE.match(normalized):
        raise ValueError(
            f"Start date must use the YYYY-MM-DD form, got {value!r}"
        )
    return normalized


class DecoderSettings(BaseModel):
    """Options applied to a decode run."""

    start_date: str = Field(
        default="",
        description="Inclusive lower bound on changeset dates.",
    )
    track_unused_tags: bool = Field(
        default=False,
        description="Tally attributes and tag keys the decoder ignores.",
    )
    progress_interval: int = Field(
        default=1_000_000,
        ge=0,
        description="Changesets between progress events (0 disables).",
    )
    extra_editor_names: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Known application names appended to the builtin table.",
    )

    model_config = {"frozen": True, "str_strip_whitespace": True}

    @field_validator("start_date", mode="before")
    @classmethod
    def _validate_start_date(cls, value: Any) -> str:
        return normalize_start_date(value)

    @field_validator("extra_editor_names")
    @classmethod
    def _drop_blank_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(name for name in value if name))


class ReaderSettings(BaseModel):
    """Selection and tunables for the bundled statistics readers."""

    enabled: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Reader names run by default, in registration order.",
    )
    top_count: int = Field(default=20, ge=1)
    comment_limit: int = Field(default=100, ge=1)
    streak_min_days: int = Field(default=100, ge=1)
    large_area_meters: float = Field(default=1_000_000.0, gt=0.0)
    min_daily_users: float = Field(default=0.1, ge=0.0)
    min_changesets: int = Field(default=100, ge=1)
    tracked_apps: tuple[str, ...] = Field(
        default=("Go Map!!", "Vespucci", "StreetComplete", "MapComplete"),
    )
    locale_app: str = "Go Map!!"
    quest_app: str = "StreetComplete"

    model_config = {"frozen": True, "str_strip_whitespace": True}

    @field_validator("enabled")
    @classmethod
    def _normalize_enabled(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        names = (name.strip().lower().replace("_", "-") for name in value)
        return tuple(dict.fromkeys(name for name in names if name))


class AppConfig(BaseModel):
    """Root configuration for the ``osm-changesets`` tool."""

    log_level: str = Field(default="INFO")
    log_dir: Path | None = Field(
        default=None,
        description="Directory for the JSON log file; unset disables it.",
    )
    decoder: DecoderSettings = Field(default_factory=DecoderSettings)
    readers: ReaderSettings = Field(default_factory=ReaderSettings)

    model_config = {"str_strip_whitespace": True, "validate_assignment": True}

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("log_dir", mode="before")
    @classmethod
    def _empty_log_dir(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


def read_packaged_defaults_text() -> str:
    """Return the raw packaged defaults TOML."""

    return get_resource(DEFAULTS_RESOURCE_NAME).read_text(encoding="utf-8")


def load_packaged_defaults() -> dict[str, Any]:
    """Load the packaged defaults as a plain dictionary.

    Example:
        >>> load_packaged_defaults()["log_level"]
        'INFO'
    """

    return tomllib.loads(read_packaged_defaults_text())


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a user TOML configuration file.

    Raises:
        ConfigError: If the file is missing or not valid TOML.
    """

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Translate ``OSMCS_*`` environment variables into a config layer."""

    layer: dict[str, Any] = {}
    level = environ.get(f"{ENV_PREFIX}LOG_LEVEL")
    if level:
        layer["log_level"] = level
    log_dir = environ.get(f"{ENV_PREFIX}LOG_DIR")
    if log_dir:
        layer["log_dir"] = log_dir
    start_date = environ.get(f"{ENV_PREFIX}START_DATE")
    if start_date:
        layer["decoder"] = {"start_date": start_date}
    return layer


def _deep_merge(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
) -> dict[str, Any]:
    """Recursively merge ``overlay`` into ``base`` returning a new dict."""

    merged: dict[str, Any] = dict(base)
    for key, value in overlay.items():
        if (
            key in merged
            and isinstance(merged[key], MappingABC)
            and isinstance(value, MappingABC)
        ):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    *,
    defaults: Mapping[str, Any],
    user_config: Mapping[str, Any] | None = None,
    env_config: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Build an :class:`AppConfig` from the precedence stack.

    Layers are merged left to right: packaged defaults, the user file,
    environment variables, then CLI flags.

    Raises:
        ConfigError: If the merged payload fails validation.
    """

    stack = dict(defaults)
    for layer in (user_config, env_config, cli_overrides):
        if layer:
            stack = _deep_merge(stack, layer)
    try:
        return AppConfig(**stack)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def render_user_config(config: AppConfig, *, include_comments: bool = True) -> str:
    """Render ``config`` as a TOML document users can edit."""

    document = tomlkit.document()
    if include_comments:
        document.add(tomlkit.comment("Generated by osm-changesets config"))
        document.add(
            tomlkit.comment(
                "Precedence: CLI flags > env vars > --config file > defaults"
            )
        )
        document.add(tomlkit.comment("Environment overrides:"))
        document.add(tomlkit.comment(f"  {ENV_PREFIX}LOG_LEVEL=info"))
        document.add(tomlkit.comment(f"  {ENV_PREFIX}LOG_DIR=/path/to/logs"))
        document.add(tomlkit.comment(f"  {ENV_PREFIX}START_DATE=2021-01-01"))
        document.add(tomlkit.nl())

    document["log_level"] = config.log_level
    document["log_dir"] = str(config.log_dir) if config.log_dir else ""

    decoder = tomlkit.table()
    decoder["start_date"] = config.decoder.start_date
    decoder["track_unused_tags"] = config.decoder.track_unused_tags
    decoder["progress_interval"] = config.decoder.progress_interval
    decoder["extra_editor_names"] = list(config.decoder.extra_editor_names)
    document["decoder"] = decoder

    readers = tomlkit.table()
    enabled = tomlkit.array()
    enabled.multiline(True)
    enabled.extend(config.readers.enabled)
    readers["enabled"] = enabled
    readers["top_count"] = config.readers.top_count
    readers["comment_limit"] = config.readers.comment_limit
    readers["streak_min_days"] = config.readers.streak_min_days
    readers["large_area_meters"] = config.readers.large_area_meters
    readers["min_daily_users"] = config.readers.min_daily_users
    readers["min_changesets"] = config.readers.min_changesets
    readers["tracked_apps"] = list(config.readers.tracked_apps)
    readers["locale_app"] = config.readers.locale_app
    readers["quest_app"] = config.readers.quest_app
    document["readers"] = readers

    return tomlkit.dumps(document)


__all__ = [
    "AppConfig",
    "ConfigError",
    "DEFAULTS_RESOURCE_NAME",
    "DecoderSettings",
    "ENV_PREFIX",
    "ReaderSettings",
    "env_overrides",
    "load_config",
    "load_packaged_defaults",
    "normalize_start_date",
    "read_config_file",
    "read_packaged_defaults_text",
    "render_user_config",
]
