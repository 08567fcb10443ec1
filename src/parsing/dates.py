from __future__ import annotations

import re
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

from dateutil import parser as date_parser

"""Sales date parsing for Indonesian / English mixed exports.

Accepted inputs:
- spreadsheet-native dates (``datetime`` / ``date`` / ``pandas.Timestamp``)
- ``"Kamis, 15 Agustus 2024"`` style strings (day-name prefix, Indonesian month)
- ``15/08/2024``, ``15-08-24`` (day first) and ``2024-08-15`` (year first)

Anything else that python-dateutil can read is accepted as well, provided it
names both a month and a year. Numeric forms are always resolved day first.
"""

__all__ = [
    "INDONESIAN_MONTH_TRANSLATIONS",
    "parse_sales_date",
    "translate_month_names",
]

INDONESIAN_MONTH_TRANSLATIONS: MappingProxyType[str, str] = MappingProxyType({
    "januari": "january", "jan": "jan",
    "februari": "february", "feb": "feb", "pebruari": "february",
    "maret": "march", "mar": "mar",
    "april": "april", "apr": "apr",
    "mei": "may",
    "juni": "june", "jun": "jun",
    "juli": "july", "jul": "jul",
    "agustus": "august", "agu": "aug", "ags": "aug", "agt": "aug", "aug": "aug",
    "september": "september", "sep": "sep", "sept": "sep",
    "oktober": "october", "okt": "oct", "oct": "oct",
    "november": "november", "nov": "nov", "nop": "nov",
    "desember": "december", "des": "dec", "dec": "dec",
})

_DAY_PREFIX_RE = re.compile(r"^(senin|selasa|rabu|kamis|jumat|jum'at|sabtu|minggu)\s*,\s*", re.IGNORECASE)
# longest names first so "agustus" wins over "agu"
_MONTH_RE = re.compile(
    r"\b(" + "|".join(sorted(INDONESIAN_MONTH_TRANSLATIONS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
_WHITESPACE_RE = re.compile(r"\s+")
_DMY_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{2}|\d{4})$")
_YMD_RE = re.compile(r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$")

# A missing day falls back to the 1st ("Agustus 2024" -> 2024-08-01). Parsing
# against two defaults exposes a year or month the text never named.
_GENERAL_DEFAULT = datetime(2000, 1, 1)
_ALTERNATE_DEFAULT = datetime(2001, 2, 1)


def translate_month_names(text: str) -> str:
    """Replace Indonesian month names/abbreviations with English ones (case-insensitive)."""
    return _MONTH_RE.sub(lambda m: INDONESIAN_MONTH_TRANSLATIONS[m.group(0).lower()], text)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _clean(raw: str) -> str:
    text = raw.strip()
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    text = text.strip()
    text = _DAY_PREFIX_RE.sub("", text).strip()
    text = _WHITESPACE_RE.sub(" ", text)
    return translate_month_names(text)


def _parse_numeric_forms(text: str) -> date | None | bool:
    """Return a date, ``None`` for an impossible numeric date, or ``False`` if no pattern matched."""
    m = _DMY_RE.match(text)
    if m:
        day_str, month_str, year_str = m.groups()
        year = 2000 + int(year_str) if len(year_str) == 2 else int(year_str)
        return _safe_date(year, int(month_str), int(day_str))
    m = _YMD_RE.match(text)
    if m:
        year_str, month_str, day_str = m.groups()
        return _safe_date(int(year_str), int(month_str), int(day_str))
    return False


def _parse_general(text: str) -> date | None:
    parsed = date_parser.parse(text, dayfirst=True, default=_GENERAL_DEFAULT)
    check = date_parser.parse(text, dayfirst=True, default=_ALTERNATE_DEFAULT)
    if (parsed.year, parsed.month) != (check.year, check.month):
        # "15 Agustus", "00:00", "1 1": no year or month of its own
        return None
    return parsed.date()


def parse_sales_date(raw: Any) -> date | None:
    """Convert a raw cell value into a calendar date, or ``None``.

    Never raises. Native date values are returned as ``date`` without
    reparsing; strings are cleaned, translated and parsed.
    """
    if isinstance(raw, datetime):
        if raw != raw:  # pandas.NaT
            return None
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        return None

    text = _clean(raw)
    if not text:
        return None

    numeric = _parse_numeric_forms(text)
    if numeric is not False:
        return numeric

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    try:
        return _parse_general(text)
    except (ValueError, OverflowError):
        return None
