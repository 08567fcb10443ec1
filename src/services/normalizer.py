from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Any

from ..models.row_data import RawRow
from ..models.sales_record import RejectionReason, RowRejection, SalesRecordDraft
from ..parsing.dates import parse_sales_date
from ..parsing.numeric import parse_numeric_value
from ..parsing.week import extract_week, reconcile_week_year

"""Row normalization: RawRow -> SalesRecordDraft | RowRejection.

Column lookup goes through HEADER_ALIASES (canonical field -> accepted header
spellings, Indonesian first). Exact header matches win; otherwise headers are
compared case-insensitively with whitespace collapsed.

Rows are never raised on: an unusable row comes back as a RowRejection.
"""

__all__ = [
    "HEADER_ALIASES",
    "REQUIRED_COLUMNS",
    "lookup",
    "normalize_row",
]

logger = logging.getLogger("sales_ingest.normalizer")

HEADER_ALIASES: MappingProxyType[str, tuple[str, ...]] = MappingProxyType({
    "week": ("Minggu", "Week"),
    "date": ("Tanggal", "Date"),
    "product": ("Produk", "Product"),
    "category": ("Kategori", "Category"),
    "customer_number": ("No. Customer", "Customer No", "Customer No."),
    "customer": ("Customer",),
    "customer_type": ("Tipe Customer", "Customer Type"),
    "salesman": ("Salesman",),
    "village": ("Desa", "Village"),
    "district": ("Kecamatan", "District"),
    "city": ("Kota", "City"),
    "units_bks": ("Jual (Bks Net)",),
    "units_slop": ("Jual (Slop Net)",),
    "units_bal": ("Jual (Bal Net)",),
    "units_dos": ("Jual (Dos Net)",),
    "omzet": ("Omzet (Nett)",),
    "grand_total": ("Grand Total",),
})

# Reported to the user when an upload yields no valid rows
REQUIRED_COLUMNS: tuple[str, ...] = ("Grand Total", "Minggu", "Tanggal", "Produk", "Customer", "Omzet (Nett)")

_TEXT_FIELDS = (
    "product", "category", "customer_number", "customer", "customer_type",
    "salesman", "village", "district", "city",
)
_SAMPLE_FIELDS = ("week", "date", "product", "customer", "omzet")

_WHITESPACE_RE = re.compile(r"\s+")


def _header_key(header: str) -> str:
    return _WHITESPACE_RE.sub(" ", str(header)).strip().casefold()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def lookup(row: RawRow, field: str, default: Any = "") -> Any:
    """First non-blank value among the aliases of ``field``, else ``default``."""
    aliases = HEADER_ALIASES[field]
    for header in aliases:
        value = row.values.get(header)
        if not _is_blank(value):
            return value
    wanted = [_header_key(h) for h in aliases]
    loose = {_header_key(h): v for h, v in row.values.items()}
    for key in wanted:
        value = loose.get(key)
        if not _is_blank(value):
            return value
    return default


def _text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        # customer numbers read from spreadsheets arrive as 1234.0
        return str(int(value))
    return str(value).strip()


def _sample(row: RawRow) -> dict[str, str]:
    return {f: str(lookup(row, f)) for f in _SAMPLE_FIELDS}


def normalize_row(row: RawRow, selected_area: str | None) -> SalesRecordDraft | RowRejection:
    """Map one RawRow to a canonical draft, or explain why it cannot be used.

    ``selected_area`` is assigned to the draft as-is (blank -> None); the file
    content never decides the area.
    """
    week = extract_week(lookup(row, "week", None))

    raw_date = lookup(row, "date")
    parsed = parse_sales_date(raw_date)
    if parsed is None:
        logger.debug(f"row {row.row_number}: unparseable date {raw_date!r}")
        return RowRejection(row.row_number, RejectionReason.INVALID_DATE, _sample(row))

    try:
        reconciled = reconcile_week_year(week, parsed)
    except ValueError:
        # year 1 / 9999 cannot move across the year boundary
        logger.debug(f"row {row.row_number}: week {week} cannot reconcile {parsed.isoformat()}")
        return RowRejection(row.row_number, RejectionReason.INVALID_DATE, _sample(row))
    if reconciled != parsed:
        logger.debug(f"row {row.row_number}: week {week} moves {parsed.isoformat()} -> {reconciled.isoformat()}")

    text = {f: _text(lookup(row, f)) for f in _TEXT_FIELDS}
    area = selected_area or None

    draft = SalesRecordDraft(
        grand_total=parse_numeric_value(lookup(row, "grand_total")),
        week=week,
        date=reconciled,
        product=text["product"],
        category=text["category"],
        customer_number=text["customer_number"],
        customer=text["customer"],
        customer_type=text["customer_type"],
        salesman=text["salesman"],
        village=text["village"],
        district=text["district"],
        city=text["city"],
        area=area,
        units_bks=parse_numeric_value(lookup(row, "units_bks")),
        units_slop=parse_numeric_value(lookup(row, "units_slop")),
        units_bal=parse_numeric_value(lookup(row, "units_bal")),
        units_dos=parse_numeric_value(lookup(row, "units_dos")),
        omzet=parse_numeric_value(lookup(row, "omzet")),
    )

    reason = draft.validation_error()
    if reason is not None:
        logger.debug(f"row {row.row_number}: rejected ({reason})")
        return RowRejection(row.row_number, reason, _sample(row))
    return draft
