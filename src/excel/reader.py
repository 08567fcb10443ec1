from __future__ import annotations

import io
import logging
from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

import pandas as pd

from src.models.row_data import RawRow
from src.models.upload import (
    CSV_CONTENT_TYPE,
    LEGACY_EXCEL_CONTENT_TYPE,
    OOXML_CONTENT_TYPE,
    UploadedFile,
)

"""Tabular extraction for uploaded sales files.

The declared content type is resolved once into a tagged source
(CsvSource | SpreadsheetSource); ``extract`` dispatches on that variant and
returns header-keyed RawRow objects, fully materialized.

- Row 1 is the header row, data starts at row 2.
- Fully blank rows and the trailing "Grand Total" summary row are skipped.
- Files are parsed from the in-memory buffer; nothing touches the disk.
- Decode failures surface as a single FileDecodeError.
"""

__all__ = [
    "CsvSource",
    "FileDecodeError",
    "SheetData",
    "SpreadsheetSource",
    "TabularSource",
    "UnsupportedFileTypeError",
    "extract",
    "read_table",
    "resolve_source",
]

logger = logging.getLogger("sales_ingest.reader")

SUMMARY_LABEL = "Grand Total"
CSV_ENCODINGS = ("utf-8-sig", "cp1252")


class UnsupportedFileTypeError(Exception):
    """Raised when the declared content type is not an accepted tabular format."""


class FileDecodeError(Exception):
    """Raised when file content cannot be decoded (corrupt file, wrong format)."""


@dataclass(frozen=True)
class CsvSource:
    name: str
    content: bytes


@dataclass(frozen=True)
class SpreadsheetSource:
    name: str
    content: bytes
    legacy: bool = False  # .xls (BIFF) instead of OOXML


TabularSource = Union[CsvSource, SpreadsheetSource]


@dataclass
class SheetData:
    name: str
    columns: list[str]
    rows: list[RawRow]


def resolve_source(upload: UploadedFile, allowed_content_types: Collection[str] | None = None) -> TabularSource:
    """Resolve an upload into its tagged source variant.

    Raises:
        UnsupportedFileTypeError: content type is not CSV / Excel, or not in
            ``allowed_content_types`` when given
    """
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if allowed_content_types is not None and content_type not in allowed_content_types:
        raise UnsupportedFileTypeError(f"Invalid file type: {upload.content_type}")
    if content_type == CSV_CONTENT_TYPE:
        return CsvSource(name=upload.name, content=upload.content)
    if content_type == OOXML_CONTENT_TYPE:
        return SpreadsheetSource(name=upload.name, content=upload.content)
    if content_type == LEGACY_EXCEL_CONTENT_TYPE:
        return SpreadsheetSource(name=upload.name, content=upload.content, legacy=True)
    raise UnsupportedFileTypeError(f"Invalid file type: {upload.content_type}")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _clean_cell(value: Any) -> Any:
    """Missing cells become "", pandas timestamps become plain datetimes."""
    if _is_blank(value):
        return ""
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def _is_summary_row(values: dict[str, Any]) -> bool:
    """A "Grand Total" footer: only the Grand Total column populated, or a row labelled Grand Total."""
    populated = [(k, v) for k, v in values.items() if not _is_blank(v)]
    if not populated:
        return False
    if len(populated) == 1 and populated[0][0] == SUMMARY_LABEL:
        return True
    first_value = populated[0][1]
    return isinstance(first_value, str) and first_value.strip().lower() == SUMMARY_LABEL.lower()


def _frame_to_rows(df: pd.DataFrame, columns: list[str], name: str) -> list[RawRow]:
    rows: list[RawRow] = []
    skipped_blank = 0
    skipped_summary = 0
    for position, (_, raw) in enumerate(df.iterrows()):
        row_dict: dict[str, Any] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            if not col:  # unnamed column
                continue
            row_dict[col] = _clean_cell(val)
        row = RawRow(row_number=position + 2, values=row_dict)
        if row.is_blank():
            skipped_blank += 1
            continue
        if _is_summary_row(row_dict):
            skipped_summary += 1
            continue
        rows.append(row)
    logger.debug(
        f"{name}: {len(rows)} data rows (skipped blank={skipped_blank} summary={skipped_summary})"
    )
    return rows


def _header(values: list[Any]) -> list[str]:
    columns: list[str] = []
    for v in values:
        if _is_blank(v) or (isinstance(v, str) and v.startswith("Unnamed:")):
            columns.append("")
        elif isinstance(v, float) and v.is_integer():
            columns.append(str(int(v)))
        elif isinstance(v, datetime):
            columns.append(v.date().isoformat())
        else:
            columns.append(str(v).strip())
    return columns


def _read_csv(source: CsvSource) -> SheetData:
    last_error: Exception | None = None
    for encoding in CSV_ENCODINGS:
        try:
            df = pd.read_csv(
                io.BytesIO(source.content),
                dtype=str,
                keep_default_na=False,
                # a trailing delimiter must not turn the first column into the index
                index_col=False,
                skip_blank_lines=True,
                encoding=encoding,
            )
            break
        except UnicodeDecodeError as e:
            last_error = e
            continue
        except pd.errors.EmptyDataError:
            return SheetData(name=source.name, columns=[], rows=[])
        except Exception as e:
            raise FileDecodeError(f"failed to read CSV '{source.name}': {e}") from e
    else:
        raise FileDecodeError(f"failed to decode CSV '{source.name}': {last_error}") from last_error

    columns = _header(list(df.columns))
    return SheetData(name=source.name, columns=columns, rows=_frame_to_rows(df, columns, source.name))


def _read_spreadsheet(source: SpreadsheetSource) -> SheetData:
    engine = "xlrd" if source.legacy else "openpyxl"
    try:
        # first worksheet, raw (header applied below)
        df = pd.read_excel(
            io.BytesIO(source.content), sheet_name=0, header=None, dtype=object, engine=engine
        )
    except Exception as e:
        raise FileDecodeError(f"failed to read spreadsheet '{source.name}': {e}") from e

    if df.shape[0] == 0:
        return SheetData(name=source.name, columns=[], rows=[])
    columns = _header(df.iloc[0].tolist())
    data_part = df.iloc[1:]
    return SheetData(name=source.name, columns=columns, rows=_frame_to_rows(data_part, columns, source.name))


def read_table(source: TabularSource) -> SheetData:
    """Read a tabular source into headers + RawRows."""
    if isinstance(source, CsvSource):
        return _read_csv(source)
    if isinstance(source, SpreadsheetSource):
        return _read_spreadsheet(source)
    raise UnsupportedFileTypeError(f"unsupported source: {type(source).__name__}")


def extract(source: TabularSource) -> list[RawRow]:
    """Return every data row of ``source`` as RawRow, in file order."""
    return read_table(source).rows
