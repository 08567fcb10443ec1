from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import PurePath
from typing import Any

from ..models.ingestion_result import IngestionResult
from ..models.sales_record import SalesRecordDraft
from ..models.upload import UploadedFile
from .batch_insert import batch_insert

"""Storage collaborator: persists one ingested upload atomically.

Tables (created by the dashboard's own migrations):
- uploaded_files: one batch summary row per upload
- sales_records: one row per accepted draft, file_id -> uploaded_files.id

``commit_batch`` runs in a single transaction: the summary row and every
detail row are committed together, or everything is rolled back.
"""

__all__ = [
    "SALES_COLUMNS",
    "StorageError",
    "commit_batch",
    "stored_file_name",
]

logger = logging.getLogger("sales_ingest.store")

FILES_TABLE = "uploaded_files"
SALES_TABLE = "sales_records"

SALES_COLUMNS: tuple[str, ...] = (
    "file_id", "grand_total", "week", "date", "product", "category", "customer_no",
    "customer", "customer_type", "salesman", "village", "district", "city", "area",
    "units_bks", "units_slop", "units_bal", "units_dos", "omzet",
)

_INSERT_FILE_SQL = (
    f"INSERT INTO {FILES_TABLE} "
    "(filename, original_name, file_size, record_count, total_omzet, status, uploaded_by) "
    "VALUES (%s, %s, %s, %s, %s, %s, %s) RETURNING id"
)
_UPDATE_STATUS_SQL = f"UPDATE {FILES_TABLE} SET status = %s WHERE id = %s"


class StorageError(Exception):
    """Raised when the batch could not be committed (the transaction was rolled back)."""


def stored_file_name(original_name: str, now: float) -> str:
    """``upload_<epoch ms><ext>``; the extension follows the original file (default .xlsx)."""
    suffix = PurePath(original_name).suffix.lower() or ".xlsx"
    return f"upload_{int(now * 1000)}{suffix}"


def _sales_row(file_id: Any, r: SalesRecordDraft) -> tuple[Any, ...]:
    return (
        file_id, r.grand_total, r.week, r.date, r.product, r.category, r.customer_number,
        r.customer, r.customer_type, r.salesman, r.village, r.district, r.city, r.area,
        r.units_bks, r.units_slop, r.units_bal, r.units_dos, r.omzet,
    )


def commit_batch(
    conn: Any,
    upload: UploadedFile,
    result: IngestionResult,
    uploaded_by: str = "admin",
    clock: Callable[[], float] = time.time,
) -> int:
    """Insert the batch summary and all accepted records in one transaction.

    Args:
        conn: psycopg2 connection (autocommit off)
        upload: the uploaded file (name/size go to the summary row)
        result: pipeline output; must contain at least one record
        uploaded_by: recorded on the summary row

    Returns:
        id of the uploaded_files row

    Raises:
        StorageError: on any database error, after ROLLBACK
    """
    if not result.accepted_records:
        raise StorageError("refusing to store an empty batch")

    try:
        with conn.cursor() as cur:
            cur.execute(
                _INSERT_FILE_SQL,
                (
                    stored_file_name(upload.name, clock()),
                    upload.name,
                    upload.size,
                    result.record_count,
                    result.total_omzet,
                    "processing",
                    uploaded_by,
                ),
            )
            file_id = cur.fetchone()[0]
            inserted = batch_insert(
                cur,
                SALES_TABLE,
                SALES_COLUMNS,
                (_sales_row(file_id, r) for r in result.accepted_records),
            )
            cur.execute(_UPDATE_STATUS_SQL, ("completed", file_id))
        conn.commit()
    except Exception as e:
        conn.rollback()
        logger.error(f"storage: rolled back {upload.name}: {e}")
        raise StorageError(f"failed to store {upload.name}: {e}") from e

    logger.info(f"stored {inserted.inserted_rows} records as file_id={file_id}")
    return file_id
