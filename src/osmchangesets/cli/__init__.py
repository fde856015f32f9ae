"""Command-line interface primitives for :mod:`osmchangesets`.

This module exposes the Typer application behind the ``osm-changesets``
console script and wires the ``stats`` command into the decoder and the
bundled statistics readers.

Example:
    >>> import typer
    >>> from osmchangesets.cli import create_app
    >>> app = create_app()
    >>> isinstance(app, typer.Typer)
    True
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Sequence

import typer

from osmchangesets.core.config import (
    DEFAULTS_RESOURCE_NAME,
    AppConfig,
    ConfigError,
    env_overrides,
    load_config,
    load_packaged_defaults,
    read_config_file,
    render_user_config,
)
from osmchangesets.core.logging import bound_context, configure_logging, get_logger
from osmchangesets.decoder import (
    ChangesetDecodeError,
    Dispatcher,
    EditorCanonicalizer,
    SourceFileError,
    decode_file,
)
from osmchangesets.readers import (
    READERS,
    ReaderReport,
    UnknownReaderError,
    build_readers,
)

_app_help = (
    "Statistics over OpenStreetMap changeset dumps."
    "\n\n"
    "Use `osm-changesets stats changesets.osm` to decode a dump and print "
    "the reports of the enabled readers."
)


def _fail(message: str, exc: BaseException) -> typer.Exit:
    """Print ``message`` in red and return the exit to raise."""

    typer.secho(f"{message}: {exc}", fg=typer.colors.RED, err=True)
    return typer.Exit(code=1)


def _resolve_config(
    config_path: Path | None,
    cli_overrides: dict[str, Any],
) -> AppConfig:
    """Merge defaults, ``--config``, environment and CLI flags."""

    user_config = read_config_file(config_path) if config_path else None
    return load_config(
        defaults=load_packaged_defaults(),
        user_config=user_config,
        env_config=env_overrides(os.environ),
        cli_overrides=cli_overrides,
    )


def _build_cli_overrides(
    *,
    log_level: str | None,
    log_dir: Path | None = None,
    start_date: str | None = None,
    readers: Sequence[str] | None = None,
    unused_tags: bool | None = None,
) -> dict[str, Any]:
    """Translate CLI options into a config layer, skipping unset ones."""

    overrides: dict[str, Any] = {}
    if log_level:
        overrides["log_level"] = log_level
    if log_dir is not None:
        overrides["log_dir"] = str(log_dir)
    decoder: dict[str, Any] = {}
    if start_date is not None:
        decoder["start_date"] = start_date
    if unused_tags:
        decoder["track_unused_tags"] = True
    if decoder:
        overrides["decoder"] = decoder
    if readers:
        overrides["readers"] = {"enabled": list(readers)}
    return overrides


def _emit_reports(reports: Sequence[ReaderReport]) -> None:
    for report in reports:
        typer.echo("")
        typer.echo(report.render())


def create_app() -> "typer.Typer":
    """Return the Typer application powering the ``osm-changesets`` CLI.

    Example:
        >>> import typer
        >>> from osmchangesets.cli import create_app
        >>> cli = create_app()
        >>> isinstance(cli, typer.Typer)
        True
    """

    app = typer.Typer(
        help=_app_help,
        no_args_is_help=True,
        rich_markup_mode="rich",
        invoke_without_command=False,
        cls=typer.core.TyperGroup,
    )

    @app.callback()
    def main_callback() -> None:
        """Top-level CLI callback ensuring subcommands are dispatched."""

        return None

    @app.command(
        "stats",
        help="Decode a changeset dump and print reader statistics.",
    )
    def stats_command(  # noqa: PLR0913 - CLI surface area intentionally explicit
        path: Path = typer.Argument(
            ...,
            help="Uncompressed changeset dump (changesets-*.osm).",
        ),
        start_date: str | None = typer.Option(
            None,
            "--start-date",
            "-s",
            help="Skip changesets dated before YYYY-MM-DD.",
        ),
        reader: list[str] = typer.Option(
            None,
            "--reader",
            "-r",
            metavar="READER",
            help="Run only the named reader(s); repeat for several.",
        ),
        config_path: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="TOML file layered over the packaged defaults.",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            "-l",
            help="Override the logging level (DEBUG/INFO/WARNING/ERROR).",
        ),
        log_dir: Path | None = typer.Option(
            None,
            "--log-dir",
            help="Also write JSON logs to this directory.",
        ),
        unused_tags: bool = typer.Option(
            False,
            "--unused-tags",
            help="Print attributes and tag keys the decoder ignored.",
        ),
    ) -> None:
        """Decode ``path`` and print the reports of the selected readers."""

        overrides = _build_cli_overrides(
            log_level=log_level,
            log_dir=log_dir,
            start_date=start_date,
            readers=reader,
            unused_tags=unused_tags,
        )
        try:
            config = _resolve_config(config_path, overrides)
            configure_logging(level=config.log_level, log_dir=config.log_dir)
            readers = build_readers(config.readers.enabled, config.readers)
        except ConfigError as exc:
            raise _fail("Configuration error", exc) from exc
        except UnknownReaderError as exc:
            raise _fail("Reader error", exc) from exc
        except ValueError as exc:
            raise _fail("Logging error", exc) from exc

        logger = get_logger(__name__, command="stats")
        settings = config.decoder
        dispatcher = Dispatcher(
            readers,
            canonicalize=EditorCanonicalizer(settings.extra_editor_names),
            track_unused=settings.track_unused_tags,
            progress_interval=settings.progress_interval,
        )

        with bound_context(dump=str(path)):
            try:
                outcome = decode_file(
                    path,
                    start_date=settings.start_date,
                    dispatcher=dispatcher,
                )
                outcome.raise_for_error()
            except SourceFileError as exc:
                raise _fail("Cannot read dump", exc) from exc
            except ChangesetDecodeError as exc:
                raise _fail("Decode failed", exc) from exc

            logger.info(
                "stats-complete",
                readers=[r.name for r in readers],
                decoded=outcome.records_decoded,
                dispatched=outcome.records_dispatched,
            )

        for statistics_reader in readers:
            _emit_reports(statistics_reader.reports)

        if settings.track_unused_tags:
            typer.echo("")
            typer.echo("Unused attributes and tags:")
            for key, count in outcome.unused_tags.most_common():
                typer.echo(f"{count:9d}  {key}")

    @app.command("readers", help="List the bundled statistics readers.")
    def readers_command(
        config_path: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="TOML file layered over the packaged defaults.",
        ),
    ) -> None:
        """Print every registered reader, marking the enabled ones."""

        try:
            config = _resolve_config(config_path, {})
        except ConfigError as exc:
            raise _fail("Configuration error", exc) from exc

        enabled = set(config.readers.enabled)
        for descriptor in READERS:
            marker = "*" if descriptor.name in enabled else " "
            typer.echo(
                f" {marker} {descriptor.name:<20} {descriptor.description}"
            )

    @app.command(
        "config",
        help="Render the effective configuration as TOML.",
    )
    def config_command(
        config_path: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="TOML file layered over the packaged defaults.",
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write the TOML here instead of stdout.",
        ),
        include_comments: bool = typer.Option(
            True,
            "--comments/--no-comments",
            help="Include the explanatory header comments.",
        ),
    ) -> None:
        """Show the merged configuration users can copy and edit."""

        try:
            config = _resolve_config(config_path, {})
        except ConfigError as exc:
            raise _fail("Configuration error", exc) from exc

        rendered = render_user_config(config, include_comments=include_comments)
        if output is None:
            typer.echo(rendered, nl=False)
            return
        output.write_text(rendered, encoding="utf-8")
        typer.secho(f"Configuration written to {output}", fg=typer.colors.GREEN)
        typer.echo(f"  defaults: packaged resource ({DEFAULTS_RESOURCE_NAME})")

    return app


__all__ = ["create_app"]
