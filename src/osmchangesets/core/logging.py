"""Structured logging setup shared by the decoder, readers and CLI."""

from __future__ import annotations

import gzip
import logging
import shutil
from contextlib import contextmanager
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Iterator

from rich.console import Console
from rich.logging import RichHandler
import structlog

Logger = structlog.stdlib.BoundLogger

DEFAULT_LOG_FILENAME = "osm-changesets.log"

_ARCHIVE_BACKUP_COUNT = 7
_TIMESTAMPER = structlog.processors.TimeStamper(fmt="iso", utc=True)
_PRE_CHAIN = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    _TIMESTAMPER,
]


def parse_level(level: str) -> int:
    """Return the :mod:`logging` constant for a level name.

    Raises:
        ValueError: If the level name is not recognized.

    Example:
        >>> parse_level(" debug ")
        10
    """

    value = logging.getLevelName(level.strip().upper())
    if isinstance(value, str):  # unknown names are echoed back
        raise ValueError(f"Unsupported log level: {level!r}")
    return value


def _compress_rotated(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as target:
        shutil.copyfileobj(src, target)
    Path(source).unlink(missing_ok=True)


def _file_handler(log_file: Path, level: int) -> TimedRotatingFileHandler:
    """Return a JSON file handler rotated at midnight and gzip archived."""

    handler = TimedRotatingFileHandler(
        log_file,
        when="midnight",
        backupCount=_ARCHIVE_BACKUP_COUNT,
        utc=True,
        encoding="utf-8",
        delay=True,
    )
    handler.setLevel(level)
    handler.suffix = "%Y-%m-%d"
    handler.namer = lambda name: f"{name}.gz"
    handler.rotator = _compress_rotated
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(sort_keys=True),
            foreign_pre_chain=_PRE_CHAIN,
        )
    )
    return handler


def _console_handler(level: int, console: Console | None) -> RichHandler:
    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        enable_link_path=False,
        log_time_format="%Y-%m-%d %H:%M:%S",
    )
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False),
            foreign_pre_chain=_PRE_CHAIN,
        )
    )
    return handler


def configure_logging(
    *,
    level: str = "INFO",
    log_dir: str | Path | None = None,
    console: Console | None = None,
) -> Path | None:
    """Route structlog events through stdlib logging handlers.

    A Rich console handler (stderr by default, so reports on stdout stay
    clean) is always installed. When ``log_dir`` is given a JSON file handler
    writing ``osm-changesets.log`` is added as well.

    Args:
        level: Level name applied to the root logger (case-insensitive).
        log_dir: Optional directory receiving the JSON log file.
        console: Optional Rich console override, mainly for tests.

    Returns:
        The log file path when file logging is enabled, else ``None``.

    Raises:
        ValueError: If ``level`` is not a recognized level name.
    """

    log_level = parse_level(level)

    structlog.reset_defaults()
    structlog.configure(
        processors=[
            *_PRE_CHAIN,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [_console_handler(log_level, console)]
    log_file: Path | None = None
    if log_dir is not None:
        directory = Path(log_dir).expanduser().resolve(strict=False)
        directory.mkdir(parents=True, exist_ok=True)
        log_file = directory / DEFAULT_LOG_FILENAME
        handlers.append(_file_handler(log_file, log_level))

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)

    logging.captureWarnings(True)
    return log_file


def get_logger(name: str | None = None, **initial_context: Any) -> Logger:
    """Return a structured logger bound to optional context.

    Example:
        >>> logger = get_logger(__name__, component="decoder")
        >>> isinstance(logger, structlog.stdlib.BoundLogger)
        True
    """

    return structlog.get_logger(name).bind(**initial_context)


@contextmanager
def bound_context(**values: Any) -> Iterator[None]:
    """Attach ``values`` to every event logged inside the block."""

    with structlog.contextvars.bound_contextvars(**values):
        yield


__all__ = [
    "DEFAULT_LOG_FILENAME",
    "Logger",
    "bound_context",
    "configure_logging",
    "get_logger",
    "parse_level",
]
