"""Domain models for the weekly sales upload ingestion tool."""

from .config_models import AreaConfig, DatabaseConfig, IngestConfig, UploadConfig
from .ingestion_result import IngestionResult
from .row_data import RawRow
from .sales_record import RejectionReason, RowRejection, SalesRecordDraft
from .upload import UploadedFile

__all__ = [
    # Configuration models
    "AreaConfig",
    "DatabaseConfig",
    "IngestConfig",
    "UploadConfig",
    # Processing models
    "IngestionResult",
    "RawRow",
    "RejectionReason",
    "RowRejection",
    "SalesRecordDraft",
    "UploadedFile",
]
