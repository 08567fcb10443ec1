from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from src.models.error_record import ErrorRecord
from src.models.sales_record import RowRejection

"""Rejection log: every row the pipeline refused, as JSON Lines.

File: ``logs/rejections-YYYYMMDD-HHMMSS.log`` (UTC stamp taken on the first
write). Nothing is created for an upload without rejections.
"""

__all__ = [
    "ErrorLogBuffer",
    "ErrorRecord",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


def _rejection_message(rejection: RowRejection) -> str:
    # sample is dropped past the configured rejection_sample_size
    if not rejection.sample:
        return ""
    return json.dumps(rejection.sample, ensure_ascii=False, default=str)


class ErrorLogBuffer:
    """Collects ErrorRecords in memory; ``flush`` appends them to the log file.

    One buffer per upload (or per CLI run); it is not shared between threads.
    """

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._logs_dir = logs_dir or LOGS_DIR
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def add_rejections(self, file_name: str, rejections: Iterable[RowRejection]) -> int:
        """Buffer one record per rejected row; returns how many were added."""
        before = len(self._pending)
        for r in rejections:
            self.append(ErrorRecord.create(file_name, r.row_number, r.reason, _rejection_message(r)))
        return len(self._pending) - before

    def _target(self) -> Path:
        if self._path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._path = self._logs_dir / f"rejections-{stamp}.log"
        return self._path

    def flush(self) -> Path | None:
        """Write pending records; returns the log path, or None when nothing was pending."""
        if not self._pending:
            return None
        target = self._target()
        lines = "".join(r.to_json_line() + "\n" for r in self._pending)
        with target.open("a", encoding="utf-8") as f:
            f.write(lines)
        self._pending.clear()
        return target
