from __future__ import annotations

import math
import re
from datetime import date
from numbers import Real
from typing import Any

"""Week number extraction and week/year boundary reconciliation.

Reporting weeks run 1-52 inside a nominal year, but source systems often
stamp week-52 lines with a January date of the following year (and week-1
lines with a December date of the previous one). ``reconcile_week_year``
moves such dates back into the reporting year.
"""

__all__ = [
    "DEFAULT_WEEK",
    "extract_week",
    "reconcile_week_year",
]

DEFAULT_WEEK = 1
LAST_WEEK = 52

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def extract_week(raw: Any) -> int:
    """Read a week number from ``W12``, ``w12``, ``12``, ``12.0`` or a numeric cell.

    Falls back to ``DEFAULT_WEEK`` when nothing usable is found. Out of range
    values (0, 53, ...) are returned as read.
    """
    if isinstance(raw, Real) and not isinstance(raw, bool):
        value = float(raw)
        return int(value) if math.isfinite(value) else DEFAULT_WEEK
    if not isinstance(raw, str):
        return DEFAULT_WEEK

    text = raw.strip()
    if text[:1] in ("W", "w"):
        text = text[1:]
    m = _LEADING_INT_RE.match(text)
    if not m:
        return DEFAULT_WEEK
    return int(m.group(1))


def reconcile_week_year(week: int, d: date) -> date:
    """Return ``d`` with its year corrected against ``week``.

    - week 52 dated in January  -> previous year
    - week 1 dated in December  -> next year
    - anything else             -> unchanged

    Raises:
        ValueError: the corrected year is outside 1..9999
    """
    if week == LAST_WEEK and d.month == 1:
        return d.replace(year=d.year - 1)
    if week == DEFAULT_WEEK and d.month == 12:
        return d.replace(year=d.year + 1)
    return d
