from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from src.models.ingestion_result import IngestionResult
from src.models.row_data import RawRow
from src.models.sales_record import RejectionReason, RowRejection, SalesRecordDraft


def make_draft(**overrides) -> SalesRecordDraft:
    fields = dict(
        grand_total=0.0,
        week=1,
        date=date(2024, 1, 1),
        product="Rokok A",
        category="SKT",
        customer_number="C-1",
        customer="Toko X",
        customer_type="Retail",
        salesman="Budi",
        village="",
        district="",
        city="Jember",
        area="jember",
        units_bks=1.0,
        units_slop=0.0,
        units_bal=0.0,
        units_dos=0.0,
        omzet=1500000.0,
    )
    fields.update(overrides)
    return SalesRecordDraft(**fields)


def test_valid_draft():
    d = make_draft()
    assert d.is_valid
    assert d.validation_error() is None


@pytest.mark.parametrize(
    "overrides, reason",
    [
        ({"product": ""}, RejectionReason.MISSING_PRODUCT),
        ({"customer": ""}, RejectionReason.MISSING_CUSTOMER),
        ({"omzet": float("nan")}, RejectionReason.INVALID_OMZET),
        ({"omzet": float("inf")}, RejectionReason.INVALID_OMZET),
        ({"week": None}, RejectionReason.INVALID_WEEK),
        ({"week": True}, RejectionReason.INVALID_WEEK),
    ],
)
def test_invalid_drafts(overrides, reason):
    d = make_draft(**overrides)
    assert not d.is_valid
    assert d.validation_error() == reason


def test_product_is_checked_before_customer():
    assert make_draft(product="", customer="").validation_error() == RejectionReason.MISSING_PRODUCT


def test_negative_omzet_is_valid():
    assert make_draft(omzet=-250.0).is_valid


def test_to_dict_uses_camel_case_and_iso_date():
    out = make_draft(date=date(2024, 8, 15)).to_dict()
    assert out["date"] == "2024-08-15"
    assert out["customerNumber"] == "C-1"
    assert out["unitsBks"] == 1.0
    assert out["grandTotal"] == 0.0
    assert out["area"] == "jember"
    assert "customer_number" not in out
    assert len(out) == 18


def test_draft_is_immutable():
    d = make_draft()
    with pytest.raises(AttributeError):
        d.omzet = 0  # type: ignore[misc]
    assert replace(d, omzet=5.0).omzet == 5.0


def test_ingestion_result_counts_and_preview():
    records = [make_draft(product=f"P{i}") for i in range(7)]
    result = IngestionResult(
        accepted_records=records,
        total_rows_seen=9,
        total_omzet=7 * 1500000.0,
        rejections=[RowRejection(3, RejectionReason.INVALID_DATE), RowRejection(5, RejectionReason.MISSING_PRODUCT)],
    )
    assert result.record_count == 7
    assert result.rejected_count == 2
    assert [r.product for r in result.preview()] == ["P0", "P1", "P2", "P3", "P4"]
    assert len(result.preview(2)) == 2
    assert len(result.preview(50)) == 7


def test_raw_row_blank_detection():
    assert RawRow(2, {"A": "", "B": "  ", "C": None}).is_blank()
    assert not RawRow(2, {"A": "", "B": 0}).is_blank()
    assert RawRow(2, {"A": "x"}).get("A") == "x"
    assert RawRow(2, {}).get("missing", "d") == "d"
