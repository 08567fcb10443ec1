from __future__ import annotations

from dataclasses import dataclass, field

from .upload import CSV_CONTENT_TYPE, LEGACY_EXCEL_CONTENT_TYPE, OOXML_CONTENT_TYPE

"""Config dataclasses for the sales upload ingestion tool.

Built by src/config/loader.py from config/ingest.yml. Every section is
optional; the defaults below reproduce the behaviour of the upload endpoint.
"""

DEFAULT_CONTENT_TYPES: tuple[str, ...] = (
    OOXML_CONTENT_TYPE,
    LEGACY_EXCEL_CONTENT_TYPE,
    CSV_CONTENT_TYPE,
)


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback.

    Environment variables (DATABASE_URL / PGDSN / PGHOST ...) take precedence.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class AreaConfig:
    """An area an upload may be assigned to."""
    id: str
    name: str
    description: str | None = None

    def matches(self, value: str) -> bool:
        v = value.strip().casefold()
        return v in (self.id.casefold(), self.name.casefold())


@dataclass(frozen=True)
class UploadConfig:
    allowed_content_types: tuple[str, ...] = DEFAULT_CONTENT_TYPES
    uploaded_by: str = "admin"  # recorded on the batch summary row
    preview_size: int = 5  # records echoed back in the upload response
    rejection_sample_size: int = 20  # rejections kept with their input sample
    rejection_log: bool = False  # write logs/rejections-*.log


@dataclass(frozen=True)
class IngestConfig:
    """Root configuration object."""
    upload: UploadConfig = field(default_factory=UploadConfig)
    areas: tuple[AreaConfig, ...] = ()
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def find_area(self, value: str) -> AreaConfig | None:
        for area in self.areas:
            if area.matches(value):
                return area
        return None
