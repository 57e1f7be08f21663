"""Logging setup shared by the doccheck CLI and library entry points."""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT = "doccheck"
_CONSOLE_FORMAT = "[doccheck] %(levelname)s %(message)s"
_VERBOSE_FORMAT = "[doccheck:%(component)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _ComponentFormatter(logging.Formatter):
    """Adds ``component``: the logger name below the ``doccheck`` root."""

    def format(self, record: logging.LogRecord) -> str:
        _, _, component = record.name.partition(".")
        record.component = component or _ROOT
        return super().format(record)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``doccheck.<name>``, or the root doccheck logger."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach console and optional file handlers to the doccheck logger.

    ``verbose`` enables debug records and tags each console line with the
    emitting component; ``quiet`` limits the console to warnings. The log file,
    when given, always receives debug records. Raises ``OSError`` when the log
    file cannot be opened.
    """
    console_level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    file_level = logging.DEBUG if log_file is not None else console_level

    logger = logging.getLogger(_ROOT)
    logger.setLevel(min(console_level, file_level))
    logger.propagate = False

    # Repeated main() calls in one process would otherwise stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(_ComponentFormatter(_VERBOSE_FORMAT if verbose else _CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(file_level)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


__all__ = ["configure_logging", "get_logger"]
