from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any

"""Canonical sales record shapes produced by the row normalizer.

SalesRecordDraft is one normalized sales line, ready for the storage
collaborator. RowRejection is the diagnostics value emitted instead of a
draft when a row cannot be used.
"""

__all__ = [
    "RejectionReason",
    "RowRejection",
    "SalesRecordDraft",
]


class RejectionReason:
    """Row rejection classification (UPPER_SNAKE, written to the rejection log)."""
    INVALID_DATE = "INVALID_DATE"
    MISSING_PRODUCT = "MISSING_PRODUCT"
    MISSING_CUSTOMER = "MISSING_CUSTOMER"
    INVALID_OMZET = "INVALID_OMZET"
    INVALID_WEEK = "INVALID_WEEK"


# draft attribute -> JSON key used by the upload response
_JSON_KEYS: dict[str, str] = {
    "grand_total": "grandTotal",
    "week": "week",
    "date": "date",
    "product": "product",
    "category": "category",
    "customer_number": "customerNumber",
    "customer": "customer",
    "customer_type": "customerType",
    "salesman": "salesman",
    "village": "village",
    "district": "district",
    "city": "city",
    "area": "area",
    "units_bks": "unitsBks",
    "units_slop": "unitsSlop",
    "units_bal": "unitsBal",
    "units_dos": "unitsDos",
    "omzet": "omzet",
}


@dataclass(frozen=True)
class SalesRecordDraft:
    """Normalized sales transaction line.

    Valid iff product and customer are non-empty, omzet is finite and week is
    a number. ``area`` comes from the upload, not from the file.
    """
    grand_total: float
    week: int
    date: date  # reconciled against week
    product: str
    category: str
    customer_number: str
    customer: str
    customer_type: str
    salesman: str
    village: str
    district: str
    city: str
    area: str | None
    units_bks: float
    units_slop: float
    units_bal: float
    units_dos: float
    omzet: float

    def validation_error(self) -> str | None:
        """Return the first failed validity rule as a RejectionReason, or None."""
        if not self.product:
            return RejectionReason.MISSING_PRODUCT
        if not self.customer:
            return RejectionReason.MISSING_CUSTOMER
        if not isinstance(self.omzet, (int, float)) or not math.isfinite(self.omzet):
            return RejectionReason.INVALID_OMZET
        if not isinstance(self.week, int) or isinstance(self.week, bool):
            return RejectionReason.INVALID_WEEK
        return None

    @property
    def is_valid(self) -> bool:
        return self.validation_error() is None

    def to_dict(self) -> dict[str, Any]:
        """camelCase JSON-ready mapping (date as ISO string)."""
        raw = asdict(self)
        out = {_JSON_KEYS[k]: v for k, v in raw.items()}
        out["date"] = self.date.isoformat()
        return out


@dataclass(frozen=True)
class RowRejection:
    """Diagnostics entry for a row excluded from the accepted batch."""
    row_number: int
    reason: str  # RejectionReason value
    sample: dict[str, Any] | None = None  # offending input, trimmed to a few fields
