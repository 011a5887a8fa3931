"""Logging for statement imports.

Modules log through ``get_logger("statement_import.<module>")`` and never
attach handlers. The CLI calls :func:`configure_logging` once; library users
can skip it and wire ``"statement_import"`` into their own logging setup.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "statement_import"
LEVEL_ENV_VAR = "STATEMENT_IMPORT_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def resolve_level(level: int | str | None = None) -> int:
    """Numeric level for ``level``, then ``STATEMENT_IMPORT_LOG_LEVEL``, then INFO.

    Names are case-insensitive; digit strings are taken as numeric levels.
    Unrecognized values fall through to the next source.
    """

    for candidate in (level, os.getenv(LEVEL_ENV_VAR)):
        if isinstance(candidate, int):
            return candidate
        if not candidate:
            continue
        name = candidate.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelNamesMapping().get(name)
        if numeric is not None:
            return numeric
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str = DEFAULT_FORMAT,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send ``statement_import`` records to ``stream``. Later calls are no-ops."""

    global _configured
    if _configured:
        return

    logger = logging.getLogger(PACKAGE_LOGGER)
    for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt))
    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not _configured and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LEVEL_ENV_VAR", "configure_logging", "get_logger", "resolve_level"]
