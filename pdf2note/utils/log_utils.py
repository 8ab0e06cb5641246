"""Loguru setup for pdf2note.

Two sinks are installed: a Rich console sink and a rotating DEBUG file sink.
The console level comes from ``PDF2NOTE_LOG_LEVEL`` (INFO when unset) and the
file path from ``PDF2NOTE_LOG_FILE``; an empty path disables the file sink.
The CLI calls :func:`configure_logging` again with its ``--verbose`` and
``--log-file`` flags.
"""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger
from rich.logging import RichHandler


LOG_LEVEL_ENV = "PDF2NOTE_LOG_LEVEL"
LOG_FILE_ENV = "PDF2NOTE_LOG_FILE"
DEFAULT_LOG_FILE = "pdf2note_debug.log"

_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"


def console_level(verbose: bool = False) -> str:
    """Return the console level; unknown names from the environment fall back to INFO."""
    if verbose:
        return "DEBUG"
    name = os.getenv(LOG_LEVEL_ENV, "").strip().upper()
    if not name:
        return "INFO"
    try:
        logger.level(name)
    except ValueError:
        return "INFO"
    return name


def log_file_path(log_file: str | Path | None = None) -> Path | None:
    raw = str(log_file) if log_file is not None else os.getenv(LOG_FILE_ENV, DEFAULT_LOG_FILE)
    if not raw.strip():
        return None
    return Path(raw).expanduser().resolve()


def configure_logging(
    *, verbose: bool = False, log_file: str | Path | None = None
) -> Path | None:
    """Replace the installed sinks and return the debug log path (``None`` if disabled)."""
    logger.remove()
    logger.add(
        RichHandler(markup=False, show_time=False),  # type: ignore[arg-type]
        level=console_level(verbose),
        format="{message}",
    )

    path = log_file_path(log_file)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(path),
            level="DEBUG",
            format=_FILE_FORMAT,
            rotation="5 MB",
            retention=2,
            enqueue=True,
        )
    return path


__all__ = ["configure_logging", "console_level", "log_file_path", "logger"]

# Importing `logger` from here is enough for library callers.
configure_logging()
