"""Logging helpers for mirroring decode traces into a file."""

from __future__ import annotations

import logging
from pathlib import Path

__all__ = [
    "configure_debug_file_logger",
    "close_debug_logger",
]

_MARKER = "_timeless_lut_debug"
# Level the logger had before the first debug handler was installed.
_SAVED_LEVEL = "_timeless_lut_saved_level"


def configure_debug_file_logger(
    name: str,
    path: Path,
    *,
    level: int = logging.DEBUG,
    formatter: logging.Formatter | None = None,
) -> logging.Logger:
    """Return ``name``'s logger with an extra handler writing to ``path``.

    Handlers installed by an earlier call are removed first, so repeated runs
    replace the trace instead of appending to it.  Records still propagate to
    the console handlers configured by the CLI.  :func:`close_debug_logger`
    puts the logger's level back.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    close_debug_logger(logger)
    setattr(logger, _SAVED_LEVEL, logger.level)
    logger.setLevel(level)

    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    setattr(handler, _MARKER, True)
    handler.setLevel(level)
    if formatter is None:
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


def close_debug_logger(logger: logging.Logger) -> None:
    """Tear down handlers installed by :func:`configure_debug_file_logger`."""

    for handler in list(logger.handlers):
        if getattr(handler, _MARKER, False):
            logger.removeHandler(handler)
            handler.close()
    if hasattr(logger, _SAVED_LEVEL):
        logger.setLevel(getattr(logger, _SAVED_LEVEL))
        delattr(logger, _SAVED_LEVEL)
