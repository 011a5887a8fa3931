"""On-disk cache of historical exchange rates.

A rate for a given ``(base, quote, date)`` never changes once published, so
successful lookups are kept and reused across runs.

Cache layout (relative to the cache root, default ``./.cache``):

    ``<cache_root>/rates/<BASE>_<QUOTE>/<YYYY-MM-DD>.json``

Atomicity: writes target ``.tmp`` first and then ``os.replace`` into place.
Unreadable or stale entries are treated as misses.
"""

from __future__ import annotations

import contextlib
import json
import os
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path

from pydantic import ValidationError

from .logging_setup import get_logger
from .models import RateCacheFile

# Bump only when the on-disk JSON shape changes.
SCHEMA_VERSION: int = 1

_CODE_RE = re.compile(r"^[A-Z]{3}$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_logger = get_logger("statement_import.cache")


def get_cache_root() -> Path:
    """Return the cache root directory.

    Default: ``./.cache`` under the current working directory.
    Override: ``SI_CACHE_DIR`` environment variable (absolute or relative).
    """

    root = os.getenv("SI_CACHE_DIR")
    if root and root.strip():
        return Path(root).expanduser().resolve()
    return (Path.cwd() / ".cache").resolve()


def _rate_path(base: str, quote: str, date: str, *, create: bool) -> Path | None:
    # Keys end up in file paths; refuse anything that is not a plain code/date.
    if not (_CODE_RE.match(base) and _CODE_RE.match(quote) and _DATE_RE.match(date)):
        return None
    d = get_cache_root() / "rates" / f"{base}_{quote}"
    if create:
        d.mkdir(parents=True, exist_ok=True)
    return d / f"{date}.json"


def read_rate(base: str, quote: str, date: str) -> Decimal | None:
    """Return a cached rate or ``None`` on miss."""

    path = _rate_path(base, quote, date, create=False)
    if path is None or not path.exists():
        return None
    try:
        parsed = RateCacheFile.model_validate_json(path.read_text(encoding="utf-8"))
        rate = Decimal(parsed.rate)
    except (OSError, UnicodeDecodeError, ValidationError, InvalidOperation):
        _logger.debug("rate_cache:read_failed path=%s", os.fspath(path), exc_info=True)
        return None

    if (
        parsed.schema_version != SCHEMA_VERSION
        or (parsed.base, parsed.quote, parsed.date) != (base, quote, date)
        or not rate.is_finite()
        or rate <= 0
    ):
        return None
    return rate


def write_rate(base: str, quote: str, date: str, rate: Decimal) -> None:
    path = _rate_path(base, quote, date, create=True)
    if path is None:
        return
    tmp = path.with_suffix(path.suffix + ".tmp")
    entry = RateCacheFile(
        schema_version=SCHEMA_VERSION,
        base=base,
        quote=quote,
        date=date,
        rate=str(rate),
    )
    try:
        tmp.write_text(
            json.dumps(entry.model_dump(mode="json"), separators=(",", ":")),
            encoding="utf-8",
        )
        os.replace(tmp, path)
    except Exception:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
        raise


__all__ = ["SCHEMA_VERSION", "get_cache_root", "read_rate", "write_rate"]
