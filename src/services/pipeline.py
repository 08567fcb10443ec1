from __future__ import annotations

import logging
import math
from collections.abc import Collection, Iterable

from ..excel.reader import extract, resolve_source
from ..logging.error_log import ErrorLogBuffer
from ..models.ingestion_result import IngestionResult
from ..models.row_data import RawRow
from ..models.sales_record import RowRejection, SalesRecordDraft
from ..models.upload import UploadedFile
from .normalizer import REQUIRED_COLUMNS, normalize_row
from .progress import ProgressTracker

"""Ingestion pipeline: uploaded file -> IngestionResult.

extract (TabularExtractor) -> normalize_row per row -> accepted batch + diagnostics.

Policy:
- a bad row never aborts the batch; it is counted and reported as a RowRejection
- a batch with zero accepted rows is a failure (NoValidRowsError), since it
  almost always means the column headers do not match
- nothing is persisted here; the caller hands the result to the storage
  collaborator as one unit
"""

__all__ = [
    "DEFAULT_REJECTION_SAMPLE_SIZE",
    "IngestionError",
    "NoValidRowsError",
    "ingest",
    "normalize_rows",
]

logger = logging.getLogger("sales_ingest.pipeline")

DEFAULT_REJECTION_SAMPLE_SIZE = 20


class IngestionError(Exception):
    """Base exception for batch-level ingestion failures."""
    pass


class NoValidRowsError(IngestionError):
    """Raised when normalization accepts no row at all."""

    def __init__(self, total_rows: int, rejections: list[RowRejection] | None = None) -> None:
        self.total_rows = total_rows
        self.rejections = rejections or []
        super().__init__(
            "No valid data found in file. Please check if your file has the required columns: "
            + ", ".join(REQUIRED_COLUMNS)
        )


def normalize_rows(
    rows: Iterable[RawRow],
    selected_area: str | None,
    *,
    rejection_sample_size: int = DEFAULT_REJECTION_SAMPLE_SIZE,
    show_progress: bool = False,
) -> IngestionResult:
    """Normalize already extracted rows (no zero-row policy applied).

    Only the first ``rejection_sample_size`` rejections keep their input sample.
    """
    rows = list(rows)
    accepted: list[SalesRecordDraft] = []
    rejections: list[RowRejection] = []

    with ProgressTracker(len(rows), enabled=show_progress) as progress:
        for row in rows:
            outcome = normalize_row(row, selected_area)
            if isinstance(outcome, SalesRecordDraft):
                accepted.append(outcome)
            else:
                if len(rejections) >= rejection_sample_size:
                    outcome = RowRejection(outcome.row_number, outcome.reason)
                rejections.append(outcome)
            progress.advance()
        progress.set_postfix(accepted=len(accepted), rejected=len(rejections))

    return IngestionResult(
        accepted_records=accepted,
        total_rows_seen=len(rows),
        total_omzet=math.fsum(r.omzet for r in accepted),
        rejections=rejections,
    )


def ingest(
    upload: UploadedFile,
    selected_area: str | None,
    *,
    allowed_content_types: Collection[str] | None = None,
    rejection_sample_size: int = DEFAULT_REJECTION_SAMPLE_SIZE,
    error_log: ErrorLogBuffer | None = None,
    show_progress: bool = False,
) -> IngestionResult:
    """Turn one uploaded file into a clean batch of sales drafts.

    Args:
        upload: the uploaded file (in memory)
        selected_area: area assigned to every accepted record
        allowed_content_types: restricts accepted MIME types (None = CSV / Excel)
        rejection_sample_size: rejections that keep their offending input
        error_log: when given, every rejection is buffered there (caller flushes)
        show_progress: tqdm bar on a TTY

    Returns:
        IngestionResult with at least one accepted record

    Raises:
        UnsupportedFileTypeError: declared content type not accepted
        FileDecodeError: file content unreadable
        NoValidRowsError: every row was rejected (or the file had no data rows)
    """
    source = resolve_source(upload, allowed_content_types)
    logger.info(f"processing {upload.name} ({upload.content_type}, {upload.size} bytes)")

    rows = extract(source)
    result = normalize_rows(
        rows,
        selected_area,
        rejection_sample_size=rejection_sample_size,
        show_progress=show_progress,
    )

    if error_log is not None:
        error_log.add_rejections(upload.name, result.rejections)

    if result.rejected_count:
        logger.warning(f"{upload.name}: {result.rejected_count} of {result.total_rows_seen} rows rejected")
    if not result.accepted_records:
        raise NoValidRowsError(result.total_rows_seen, result.rejections)

    logger.info(
        f"{upload.name}: {result.record_count} valid records from {result.total_rows_seen} rows"
        + (f", area={selected_area}" if selected_area else "")
    )
    return result
