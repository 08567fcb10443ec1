from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..db.sales_store import StorageError
from ..excel.reader import FileDecodeError, UnsupportedFileTypeError
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import IngestConfig
from ..models.ingestion_result import IngestionResult
from ..models.upload import UploadedFile
from .pipeline import NoValidRowsError, ingest

"""Upload endpoint contract, independent of any web framework.

``handle_upload`` maps one multipart upload (file + optional area) to an HTTP
status and the JSON body the dashboard expects:

    200 {"success": true, "data": {"recordCount", "totalOmzet", "preview", ...}}
    400 {"success": false, "error": ...}   no file, bad MIME type, unknown area, no valid rows
    500 {"success": false, "error": ...}   unreadable file, storage failure
"""

__all__ = [
    "GENERIC_FAILURE",
    "StoreFn",
    "UploadResponse",
    "handle_upload",
]

logger = logging.getLogger("sales_ingest.upload")

GENERIC_FAILURE = "Failed to process file upload"

# (upload, result) -> id of the stored batch
StoreFn = Callable[[UploadedFile, IngestionResult], Any]


@dataclass(frozen=True)
class UploadResponse:
    status: int
    payload: dict[str, Any]
    result: IngestionResult | None = None

    @property
    def ok(self) -> bool:
        return self.status == 200


def _failure(status: int, message: str, result: IngestionResult | None = None) -> UploadResponse:
    return UploadResponse(status=status, payload={"success": False, "error": message}, result=result)


def handle_upload(
    upload: UploadedFile | None,
    area: str | None,
    config: IngestConfig | None = None,
    *,
    store: StoreFn | None = None,
    error_log: ErrorLogBuffer | None = None,
    show_progress: bool = False,
) -> UploadResponse:
    """Validate, ingest and (optionally) store one upload.

    ``store`` receives the finished batch only when it has at least one valid
    record; without it the batch is validated but not persisted.
    """
    config = config or IngestConfig()

    if upload is None or not upload.name:
        return _failure(400, "No file provided")

    selected_area = area.strip() if area and area.strip() else None
    if selected_area and config.areas and config.find_area(selected_area) is None:
        known = ", ".join(a.id for a in config.areas)
        return _failure(400, f"Unknown area: {selected_area}. Configured areas: {known}")

    try:
        result = ingest(
            upload,
            selected_area,
            allowed_content_types=config.upload.allowed_content_types,
            rejection_sample_size=config.upload.rejection_sample_size,
            error_log=error_log,
            show_progress=show_progress,
        )
    except UnsupportedFileTypeError as e:
        logger.error(f"upload: {e}")
        return _failure(400, f"{e}. Only Excel and CSV files are allowed")
    except NoValidRowsError as e:
        logger.error(f"upload: {upload.name}: no valid rows out of {e.total_rows}")
        return _failure(400, str(e), IngestionResult([], e.total_rows, 0.0, e.rejections))
    except FileDecodeError as e:
        logger.error(f"upload: {e}")
        return _failure(500, GENERIC_FAILURE)
    except Exception as e:
        logger.error(f"upload: {upload.name}: unexpected {type(e).__name__}: {e}")
        return _failure(500, GENERIC_FAILURE)

    data: dict[str, Any] = {
        "filename": upload.name,
        "recordCount": result.record_count,
        "totalOmzet": result.total_omzet,
        "rejectedCount": result.rejected_count,
        "preview": [r.to_dict() for r in result.preview(config.upload.preview_size)],
    }

    if store is not None:
        try:
            data["fileId"] = store(upload, result)
        except StorageError as e:
            logger.error(f"upload: {e}")
            return _failure(500, GENERIC_FAILURE, result)

    return UploadResponse(status=200, payload={"success": True, "data": data}, result=result)
