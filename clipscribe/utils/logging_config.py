"""Centralized logging configuration for clipscribe.

Log records go to *stderr* so that transcripts printed by the CLI on stdout
stay machine-readable. The level is chosen, in order of precedence, from an
explicit argument, the ``--verbose``/``--quiet`` switches, and finally the
``CLIPSCRIBE_LOG_LEVEL`` environment variable.
"""

from __future__ import annotations

import logging
import sys
import warnings
from typing import Literal, TextIO

from clipscribe.utils.constant import DEFAULT_LOG_LEVEL, LOG_DATE_FORMAT, LOG_FORMAT

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Decoder/resampler loggers that flood DEBUG output on every file.
_NOISY_LOGGERS = ("numba", "pydub.converter", "audioread")


def resolve_level(level: str | None = None, *, verbose: bool = False, quiet: bool = False) -> int:
    """Translate the CLI switches into a numeric logging level.

    Args:
        level: Explicit level name; wins over the switches.
        verbose: Select DEBUG.
        quiet: Select CRITICAL.

    Returns:
        int: A ``logging`` level constant. Unknown names fall back to INFO.
    """
    if level is None:
        if verbose:
            return logging.DEBUG
        if quiet:
            return logging.CRITICAL
        level = DEFAULT_LOG_LEVEL
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    *,
    level: LogLevel | None = None,
    verbose: bool = False,
    quiet: bool = False,
    format_string: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure the root logger once per process entry point.

    Args:
        level: Explicit log level (overrides verbose/quiet).
        verbose: Enable DEBUG logging.
        quiet: Only CRITICAL records; Python warnings are silenced too.
        format_string: Custom record format, ``LOG_FORMAT`` by default.
        stream: Destination stream, ``sys.stderr`` by default.

    Examples:
        >>> configure_logging(verbose=True)
        >>> configure_logging(level="WARNING")
    """
    log_level = resolve_level(level, verbose=verbose, quiet=quiet)
    logging.basicConfig(
        level=log_level,
        format=format_string or LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=stream or sys.stderr,
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    if quiet:
        warnings.filterwarnings("ignore")
    logging.getLogger(__name__).debug(
        f"Logging configured: level={logging.getLevelName(log_level)}"
    )


def get_logger(name: str) -> logging.Logger:
    """Return the logger for *name* (typically the caller's ``__name__``)."""
    return logging.getLogger(name)
