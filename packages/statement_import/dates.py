"""Normalize heterogeneous statement dates to ``YYYY-MM-DD``.

Recognized shapes, tried in order (first match wins):

1. ``2025-11-21``                      already canonical
2. ``21/11/2025``                      day first
3. ``21 November 2025 , 02:37am``      full month name anywhere in the text
4. ``Nov 21, 2025``                    abbreviated month first
5. ``2025-11-21 02:37:00``             timestamp, time dropped

Anything else is returned unchanged. No error is raised: rows with a bad
date are caught downstream by emptiness checks, not by format validation.
"""

from __future__ import annotations

import re

_MONTHS: dict[str, int] = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}
_MONTH_ABBR: dict[str, int] = {name[:3].capitalize(): num for name, num in _MONTHS.items()}

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DMY_SLASH_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_LONG_MONTH_RE = re.compile(
    r"(\d{1,2})\s+(" + "|".join(_MONTHS) + r")\s+(\d{4})",
    re.IGNORECASE,
)
# Full names that start with the abbreviation ("November 21, 2025") are
# tolerated through the optional lowercase tail.
_ABBR_MONTH_RE = re.compile(r"(" + "|".join(_MONTH_ABBR) + r")[a-z]*\s+(\d{1,2}),\s+(\d{4})")
_TIMESTAMP_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})\s+\d{2}:\d{2}:\d{2}$")


def _iso(year: str, month: int, day: str) -> str:
    return f"{year}-{month:02d}-{day.zfill(2)}"


def normalize_date(raw: str) -> str:
    """Return ``raw`` as ``YYYY-MM-DD`` when a known shape matches.

    >>> normalize_date("25/12/2025")
    '2025-12-25'
    >>> normalize_date("21 November 2025 , 02:37am")
    '2025-11-21'
    >>> normalize_date("yesterday")
    'yesterday'
    """

    s = (raw or "").strip()
    if not s:
        return ""

    if _ISO_RE.match(s):
        return s

    m = _DMY_SLASH_RE.match(s)
    if m:
        day, month, year = m.groups()
        return f"{year}-{month}-{day}"

    m = _LONG_MONTH_RE.search(s)
    if m:
        day, month_name, year = m.groups()
        return _iso(year, _MONTHS[month_name.lower()], day)

    m = _ABBR_MONTH_RE.search(s)
    if m:
        abbr, day, year = m.groups()
        return _iso(year, _MONTH_ABBR[abbr], day)

    m = _TIMESTAMP_RE.match(s)
    if m:
        return m.group(1)

    return s


__all__ = ["normalize_date"]
