from __future__ import annotations

import math
import re
from numbers import Real
from typing import Any

"""Locale-tolerant numeric cell parsing.

Distributor exports mix Indonesian (``1.234,56``) and English (``1,234.56``)
notation, sometimes inside one file. ``parse_numeric_value`` never raises:
anything that cannot be read as a number becomes ``0.0``.
"""

__all__ = [
    "parse_numeric_value",
]

# Digits and dots only: "1234.56", "12", "1.500.000"
_PLAIN_DECIMAL_RE = re.compile(r"^[\d.]+$")
_NON_NUMERIC_RE = re.compile(r"[^0-9.,\-]")


def _to_float(text: str) -> float | None:
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _split_on_last(unsigned: str, decimal_sep: str) -> str:
    """Join integer and fraction around the last ``decimal_sep``; every other separator is dropped."""
    integer_part, _, fractional_part = unsigned.rpartition(decimal_sep)
    integer_part = integer_part.replace(".", "").replace(",", "") or "0"
    fractional_part = fractional_part.replace(".", "").replace(",", "")
    return f"{integer_part}.{fractional_part}" if fractional_part else integer_part


def _normalize_separators(unsigned: str) -> str:
    has_comma = "," in unsigned
    has_dot = "." in unsigned

    if has_comma and has_dot:
        # whichever symbol appears later is the decimal separator
        decimal_sep = "," if unsigned.rfind(",") > unsigned.rfind(".") else "."
        return _split_on_last(unsigned, decimal_sep)

    if has_comma:
        parts = unsigned.split(",")
        if len(parts) == 2 and len(parts[1]) <= 2:
            return f"{parts[0]}.{parts[1]}"
        return "".join(parts)

    if has_dot:
        # a single dot is a decimal point; several dots can only be grouping
        if unsigned.count(".") == 1:
            return unsigned
        return unsigned.replace(".", "")

    return unsigned


def parse_numeric_value(raw: Any) -> float:
    """Convert a raw cell value into a signed float.

    Numbers pass through unchanged. Strings are cleaned of currency symbols and
    spaces, the decimal separator is inferred, and the result is parsed.
    Returns ``0.0`` for ``None``, empty strings and garbage.

    Examples:
        >>> parse_numeric_value("1.234,56")
        1234.56
        >>> parse_numeric_value("1,234.56")
        1234.56
        >>> parse_numeric_value("Rp -2.500")
        -2.5
        >>> parse_numeric_value("abc")
        0.0
    """
    if isinstance(raw, Real) and not isinstance(raw, bool):
        value = float(raw)
        if math.isfinite(value):
            return value

    if not isinstance(raw, str):
        return 0.0

    trimmed = raw.strip()
    if not trimmed:
        return 0.0

    if _PLAIN_DECIMAL_RE.match(trimmed):
        fast = _to_float(trimmed)
        if fast is not None:
            return fast

    sanitized = _NON_NUMERIC_RE.sub("", trimmed)
    negative = sanitized.startswith("-")
    unsigned = sanitized.replace("-", "")

    parsed = _to_float(_normalize_separators(unsigned))
    if parsed is None:
        return 0.0
    return -parsed if negative and parsed != 0 else parsed
