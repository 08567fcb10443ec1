from __future__ import annotations

from dataclasses import dataclass, field

from .sales_record import RowRejection, SalesRecordDraft

"""Ingestion result model.

Built once per upload by the pipeline, handed to the storage collaborator as a
single unit, then discarded.
"""

__all__ = [
    "IngestionResult",
]


@dataclass(frozen=True)
class IngestionResult:
    """Accepted batch plus row diagnostics for one upload."""
    accepted_records: list[SalesRecordDraft]
    total_rows_seen: int  # rows produced by the extractor (blank/summary rows excluded)
    total_omzet: float  # sum of accepted omzet
    rejections: list[RowRejection] = field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.accepted_records)

    @property
    def rejected_count(self) -> int:
        return self.total_rows_seen - len(self.accepted_records)

    def preview(self, size: int = 5) -> list[SalesRecordDraft]:
        return self.accepted_records[:size]
