"""Logging configuration shared by the CLI, the web service and the parser.

Library modules only call ``get_logger("coda.<module>")``. Handlers are
attached once, by ``configure_logging``, from an entry point.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Optional, Union

_PKG_LOGGER_NAME = "coda"
_CONFIGURED = False


def _level_from_name(name: str) -> Optional[int]:
    """Return the numeric level for ``name``, or ``None`` if it names no level."""

    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: Optional[Union[int, str]]) -> int:
    if isinstance(level, int):
        return level
    candidates = [level, os.getenv("CODA_LOG_LEVEL")]
    for candidate in candidates:
        if candidate:
            resolved = _level_from_name(candidate)
            if resolved is not None:
                return resolved
    return logging.INFO


def configure_logging(
    level: Optional[Union[int, str]] = None,
    *,
    fmt: Optional[str] = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach a single ``StreamHandler`` to the ``coda`` logger.

    ``level`` falls back to ``CODA_LOG_LEVEL`` and then to ``INFO``. Calls after
    the first one are ignored.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s"))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
