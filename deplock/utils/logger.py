"""
Logging for deplock.

Modules log through :func:`get_logger`, which keeps every logger under the
``deplock`` namespace. That namespace carries a ``NullHandler`` so the
library stays silent until the CLI (or an embedding application) calls
:func:`setup_logging`. The resolver reports everything it drops (failed
fetches, version and constraint mismatches) through these loggers.
"""

from __future__ import annotations

import os
import sys
import logging
from typing import IO, Optional

from deplock.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "deplock"

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def color_enabled(stream: IO[str]) -> bool:
    """True unless ``NO_COLOR``/``CI`` is set or *stream* is not a terminal."""
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return bool(stream.isatty())
    except (AttributeError, OSError, ValueError):
        return False


class ColoredFormatter(logging.Formatter):
    """Formatter that wraps the level name in an ANSI color."""

    LEVEL_COLORS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "35",
    }

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = False,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        code = self.LEVEL_COLORS.get(record.levelno) if self.use_color else None
        if code is None:
            return super().format(record)

        # other handlers see the same record
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"\033[{code}m{record.levelname}\033[0m"
        return super().format(colored)


def verbosity_to_level(verbose: int) -> int:
    """Map a ``-v`` count to a logging level (0=WARNING, 1=INFO, 2+=DEBUG)."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.WARNING,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """Route ``deplock`` records to *stream* (``sys.stderr`` by default).

    Each call replaces the handlers of earlier calls. Records no longer
    propagate to the root logger.

    Args:
        level: Threshold for the ``deplock`` logger.
        verbose: Use the format with timestamps and logger names.
        stream: Output stream.

    Returns:
        The installed handler.
    """
    target = stream if stream is not None else sys.stderr
    handler = logging.StreamHandler(target)
    handler.setFormatter(
        ColoredFormatter(
            LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            use_color=color_enabled(target),
        )
    )

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.handlers = [handler]
    root_logger.setLevel(level)
    root_logger.propagate = False
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the ``deplock`` namespace.

    ``get_logger("resolver")`` and ``get_logger("deplock.resolver")`` return
    the same logger; no name gives the namespace root.
    """
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
