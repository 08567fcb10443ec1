# Shared pytest fixtures
from __future__ import annotations

import io
import logging
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from src.models.upload import CSV_CONTENT_TYPE, OOXML_CONTENT_TYPE, UploadedFile

SALES_HEADER = [
    "Grand Total", "Minggu", "Tanggal", "Produk", "Kategori", "No. Customer", "Customer",
    "Tipe Customer", "Salesman", "Desa", "Kecamatan", "Kota",
    "Jual (Bks Net)", "Jual (Slop Net)", "Jual (Bal Net)", "Jual (Dos Net)", "Omzet (Nett)",
]


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """upload:
  uploaded_by: tester
  preview_size: 2
  rejection_sample_size: 10
  rejection_log: true
areas:
  - id: jember
    name: Area Jember
  - id: malang
    name: Area Malang
    description: Wilayah Malang Raya
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def csv_upload(text: str, name: str = "weekly.csv") -> UploadedFile:
    return UploadedFile(name=name, content_type=CSV_CONTENT_TYPE, content=text.encode("utf-8"))


def xlsx_bytes(rows: list[list[object]]) -> bytes:
    """Write ``rows`` (first row = header) to an in-memory workbook, no index/header added by pandas."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return buf.getvalue()


def xlsx_upload(rows: list[list[object]], name: str = "weekly.xlsx") -> UploadedFile:
    return UploadedFile(name=name, content_type=OOXML_CONTENT_TYPE, content=xlsx_bytes(rows))


@pytest.fixture()
def scenario_csv() -> str:
    return (
        "Minggu,Tanggal,Produk,Customer,Omzet (Nett)\n"
        'W1,01/01/2024,Rokok A,Toko X,"1.500.000"\n'
        "W52,28/12/2023,Rokok B,Toko Y,2000000\n"
        "Grand Total,,,,3500000\n"
    )


@pytest.fixture()
def full_sales_rows() -> list[list[object]]:
    return [
        SALES_HEADER,
        ["", "W33", "Kamis, 15 Agustus 2024", "Rokok A", "SKT", "C-001", "Toko Makmur",
         "Retail", "Budi", "Sukorejo", "Bangorejo", "Banyuwangi", "120", "12", "1", "0,5", "1.234.567,89"],
        ["", "W33", "16/08/2024", "Rokok B", "SKM", "C-002", "Toko Sentosa",
         "Grosir", "Andi", "Kebalenan", "Banyuwangi", "Banyuwangi", "-10", "0", "0", "0", "-250.000"],
        ["", "W33", "17/08/2024", "", "SKM", "C-003", "Toko Kosong",
         "Retail", "Andi", "", "", "Banyuwangi", "1", "0", "0", "0", "5000"],
    ]


@pytest.fixture()
def make_csv_upload():
    return csv_upload


@pytest.fixture()
def make_xlsx_upload():
    return xlsx_upload


@pytest.fixture(autouse=True)
def _isolated_logging():
    # handlers bound to a previous test's captured stdout must not leak
    from src.logging.init import APP_LOGGER_NAME, reset_logging

    reset_logging()
    yield
    logger = logging.getLogger(APP_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    reset_logging()
