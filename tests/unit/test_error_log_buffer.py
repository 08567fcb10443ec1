from __future__ import annotations

import json
import re
from pathlib import Path

from src.logging.error_log import ErrorLogBuffer, ErrorRecord
from src.models.sales_record import RejectionReason, RowRejection


def test_flush_writes_json_lines(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    buf.append(ErrorRecord.create("w1.csv", 3, "INVALID_DATE", '{"date": "xx"}'))
    buf.append(ErrorRecord.create("w1.csv", 5, "MISSING_PRODUCT", ""))
    path = buf.flush()
    assert path is not None and path.parent == tmp_path / "logs"
    assert re.fullmatch(r"rejections-\d{8}-\d{6}\.log", path.name)
    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["row"] for r in records] == [3, 5]
    assert set(records[0]) == {"timestamp", "file", "row", "error_type", "message"}
    assert records[0]["timestamp"].endswith("Z")


def test_flush_empty_buffer_creates_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_second_flush_appends_to_same_file(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("a.csv", 2, "INVALID_DATE", ""))
    first = buf.flush()
    buf.append(ErrorRecord.create("a.csv", 4, "MISSING_CUSTOMER", ""))
    second = buf.flush()
    assert first == second
    assert len(first.read_text(encoding="utf-8").splitlines()) == 2


def test_default_logs_dir_is_relative_to_cwd(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("a.csv", 2, "INVALID_DATE", ""))
    path = buf.flush()
    assert path.resolve().parent == (temp_workdir / "logs").resolve()


def test_record_json_line_keeps_unicode():
    rec = ErrorRecord("2024-08-15T00:00:00Z", "Penjualan Agustus.csv", 2, "INVALID_DATE", "Jum'at, 99 Mei")
    line = rec.to_json_line()
    assert "Jum'at" in line
    assert json.loads(line)["file"] == "Penjualan Agustus.csv"


def test_add_rejections_keeps_sample_as_message(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    added = buf.add_rejections(
        "w33.xlsx",
        [
            RowRejection(4, RejectionReason.INVALID_DATE, {"date": "31/02/2024", "product": "Rokok A"}),
            RowRejection(9, RejectionReason.MISSING_CUSTOMER),
        ],
    )
    assert added == 2
    records = [json.loads(line) for line in buf.flush().read_text(encoding="utf-8").splitlines()]
    assert [(r["row"], r["error_type"]) for r in records] == [(4, "INVALID_DATE"), (9, "MISSING_CUSTOMER")]
    assert json.loads(records[0]["message"]) == {"date": "31/02/2024", "product": "Rokok A"}
    assert records[1]["message"] == ""
