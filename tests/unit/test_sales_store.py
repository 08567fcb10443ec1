from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from src.db.batch_insert import InsertResult
from src.db.sales_store import SALES_COLUMNS, StorageError, commit_batch, stored_file_name
from src.models.ingestion_result import IngestionResult
from src.models.sales_record import SalesRecordDraft
from src.models.upload import CSV_CONTENT_TYPE, UploadedFile


def _draft(product: str, omzet: float) -> SalesRecordDraft:
    return SalesRecordDraft(
        grand_total=0.0, week=33, date=date(2024, 8, 15), product=product, category="SKT",
        customer_number="C-1", customer="Toko X", customer_type="Retail", salesman="Budi",
        village="", district="", city="Jember", area="jember",
        units_bks=1.0, units_slop=0.0, units_bal=0.0, units_dos=0.0, omzet=omzet,
    )


def _mock_conn(file_id: int = 42):
    conn = MagicMock()
    cur = MagicMock()
    cur.fetchone.return_value = (file_id,)
    conn.cursor.return_value.__enter__.return_value = cur
    return conn, cur


UPLOAD = UploadedFile("Minggu 33.CSV", CSV_CONTENT_TYPE, b"0123456789")
RESULT = IngestionResult([_draft("A", 100.0), _draft("B", 200.0)], 3, 300.0)


def test_stored_file_name():
    assert stored_file_name("Minggu 33.CSV", 1723700000.5) == "upload_1723700000500.csv"
    assert stored_file_name("noext", 1.0) == "upload_1000.xlsx"


def test_commit_batch_inserts_summary_and_records():
    conn, cur = _mock_conn(42)
    with patch("src.db.sales_store.batch_insert", return_value=InsertResult(inserted_rows=2)) as bi:
        file_id = commit_batch(conn, UPLOAD, RESULT, uploaded_by="tester", clock=lambda: 1.0)

    assert file_id == 42
    insert_sql, params = cur.execute.call_args_list[0].args
    assert insert_sql.startswith("INSERT INTO uploaded_files")
    assert params == ("upload_1000.csv", "Minggu 33.CSV", 10, 2, 300.0, "processing", "tester")
    assert cur.execute.call_args_list[-1].args == (
        "UPDATE uploaded_files SET status = %s WHERE id = %s", ("completed", 42)
    )

    _, table, columns, rows = bi.call_args.args
    assert table == "sales_records"
    assert columns == SALES_COLUMNS
    rows = list(rows)
    assert len(rows) == 2
    assert rows[0][0] == 42
    assert rows[0][SALES_COLUMNS.index("product")] == "A"
    assert rows[1][SALES_COLUMNS.index("omzet")] == 200.0
    assert rows[0][SALES_COLUMNS.index("area")] == "jember"

    conn.commit.assert_called_once()
    conn.rollback.assert_not_called()


def test_commit_batch_rolls_back_on_failure():
    conn, cur = _mock_conn()
    with patch("src.db.sales_store.batch_insert", side_effect=RuntimeError("insert fail")):
        with pytest.raises(StorageError, match="insert fail"):
            commit_batch(conn, UPLOAD, RESULT)
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()


def test_commit_failure_is_rolled_back():
    conn, _ = _mock_conn()
    conn.commit.side_effect = RuntimeError("commit fail")
    with patch("src.db.sales_store.batch_insert", return_value=InsertResult(inserted_rows=2)):
        with pytest.raises(StorageError):
            commit_batch(conn, UPLOAD, RESULT)
    conn.rollback.assert_called_once()


def test_empty_batch_is_refused():
    conn, _ = _mock_conn()
    with pytest.raises(StorageError, match="empty batch"):
        commit_batch(conn, UPLOAD, IngestionResult([], 4, 0.0))
    conn.cursor.assert_not_called()
