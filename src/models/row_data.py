from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""RawRow model for the sales upload ingestion pipeline.

RawRow is the header-keyed row produced by the tabular extractor, before any
normalization. It only lives for the duration of one upload.
"""

__all__ = [
    "RawRow",
]


@dataclass(frozen=True)
class RawRow:
    """One data row of an uploaded CSV / spreadsheet.

    Keys are the headers exactly as they appeared in the file ("Kota" and
    "City" are both possible); values are the raw cells (str, number or
    datetime depending on the source format, ``""`` for empty cells).
    """
    row_number: int  # 1-based source row (header = 1, first data row = 2)
    values: dict[str, Any]

    def get(self, header: str, default: Any = None) -> Any:
        return self.values.get(header, default)

    def is_blank(self) -> bool:
        return all(_is_blank_cell(v) for v in self.values.values())


def _is_blank_cell(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False
