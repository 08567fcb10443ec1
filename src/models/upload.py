from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path

"""UploadedFile handle: the in-memory file the upload endpoint receives."""

__all__ = [
    "CSV_CONTENT_TYPE",
    "LEGACY_EXCEL_CONTENT_TYPE",
    "OOXML_CONTENT_TYPE",
    "UploadedFile",
]

OOXML_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
LEGACY_EXCEL_CONTENT_TYPE = "application/vnd.ms-excel"
CSV_CONTENT_TYPE = "text/csv"

_EXTENSION_TYPES = {
    ".xlsx": OOXML_CONTENT_TYPE,
    ".xls": LEGACY_EXCEL_CONTENT_TYPE,
    ".csv": CSV_CONTENT_TYPE,
}


@dataclass(frozen=True)
class UploadedFile:
    """Uploaded file as received from a multipart form field.

    ``content`` is the whole file body; nothing is written to disk.
    """
    name: str  # original client-side file name
    content_type: str  # declared MIME type
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: Path, content_type: str | None = None) -> UploadedFile:
        """Build an upload from a local file, guessing the MIME type from the extension."""
        if content_type is None:
            content_type = _EXTENSION_TYPES.get(path.suffix.lower())
        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(name=path.name, content_type=content_type, content=path.read_bytes())
