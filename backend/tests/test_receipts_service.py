"""Tests for the receipts service: sync aggregation, demo data,
monthly summary and XLSX export."""

import io
import random
from datetime import datetime, timedelta

import pytest
from openpyxl import load_workbook

from config.receipt_config import ReceiptConfig
from receipt_engine import imap_client
from receipt_engine.models import ExtractedItem, ParseResult, RawReceiptEmail, ReceiptRow
from services import receipts_service


def _row(date, price, order_id="ORDER1", app_name="Game Plus"):
    return ReceiptRow(
        uid="1",
        platform="Apple",
        subject="영수증",
        date=date,
        order_id=order_id,
        app_name=app_name,
        product_name="월간 구독권",
        price=price,
    )


# ============================================================================
# DATES
# ============================================================================


def test_subtract_months_clamps_day():
    """Month-end dates clamp to the shorter month."""
    assert receipts_service.subtract_months(datetime(2025, 5, 31), 3) == datetime(2025, 2, 28)


def test_subtract_months_crosses_year():
    assert receipts_service.subtract_months(datetime(2025, 1, 15), 3) == datetime(2024, 10, 15)


def test_get_start_date_from_query():
    """An explicit ISO date is used as given."""
    assert receipts_service.get_start_date("2025-01-01") == datetime(2025, 1, 1)


def test_get_start_date_default_window():
    """Without a date the lookback window applies."""
    start = receipts_service.get_start_date(None, lookback_months=3)

    assert datetime.now() - timedelta(days=93) <= start <= datetime.now() - timedelta(days=88)


def test_get_start_date_rejects_garbage():
    with pytest.raises(ValueError):
        receipts_service.get_start_date("last tuesday")


# ============================================================================
# SYNC
# ============================================================================


def test_build_receipt_rows_one_row_per_item():
    """An N-item receipt yields N rows sharing the order ID."""
    receipt = RawReceiptEmail(
        uid="42",
        subject="Your receipt",
        received_at=datetime(2025, 1, 14),
        body="",
        platform="Apple",
    )
    result = ParseResult(
        order_id="MLB2K3J4QX",
        items=[
            ExtractedItem("Photo Editor", "필터 팩", "₩2,200"),
            ExtractedItem("Music Pro", "Premium", "₩9,900"),
        ],
    )

    rows = receipts_service.build_receipt_rows(receipt, result, categorize=lambda name: "엔터")

    assert len(rows) == 2
    assert {row.order_id for row in rows} == {"MLB2K3J4QX"}
    assert {row.uid for row in rows} == {"42"}
    assert [row.app_name for row in rows] == ["Photo Editor", "Music Pro"]
    assert all(row.category == "엔터" for row in rows)


def test_sync_receipts_parses_and_sorts(monkeypatch, apple_multi_qp, samsung_html):
    """Fetched receipts become categorized rows, newest first."""
    fetched = [
        RawReceiptEmail("1", "Your receipt", datetime(2025, 1, 10), apple_multi_qp, "Apple"),
        RawReceiptEmail("2", "구매 영수증", datetime(2025, 2, 3), samsung_html, "Samsung"),
        RawReceiptEmail("3", "Your receipt", datetime(2025, 2, 5), "<p>Apple ID</p>", "Apple"),
    ]
    monkeypatch.setattr(imap_client, "fetch_all_receipts", lambda start_date, config: fetched)

    rows = receipts_service.sync_receipts(
        datetime(2025, 1, 1),
        ReceiptConfig(parse_workers=2),
        categorize=lambda name: "기타",
    )

    assert [row.uid for row in rows] == ["2", "1", "1"]
    assert rows[0].app_name == "Fitness Tracker"
    assert rows[0].order_id == "P20250101123456ABC"
    assert {row.app_name for row in rows[1:]} == {"Photo Editor", "Music Pro"}


def test_sync_receipts_default_categorizer(monkeypatch, apple_single_html):
    """Without an explicit categorizer the app categorizer is used."""
    fetched = [RawReceiptEmail("1", "receipt", datetime(2025, 1, 10), apple_single_html, "Apple")]
    monkeypatch.setattr(imap_client, "fetch_all_receipts", lambda start_date, config: fetched)
    monkeypatch.setattr(
        receipts_service, "get_app_category", lambda app_name, config=None: "게임"
    )

    rows = receipts_service.sync_receipts(datetime(2025, 1, 1), ReceiptConfig())

    assert [row.category for row in rows] == ["게임"]


def test_sync_receipts_nothing_fetched(monkeypatch):
    monkeypatch.setattr(imap_client, "fetch_all_receipts", lambda start_date, config: [])

    assert receipts_service.sync_receipts(datetime(2025, 1, 1), ReceiptConfig()) == []


def test_sort_rows_puts_undated_last():
    rows = [_row(None, "₩1"), _row(datetime(2025, 1, 1), "₩2"), _row(datetime(2025, 3, 1), "₩3")]

    assert [row.price for row in receipts_service.sort_rows(rows)] == ["₩3", "₩2", "₩1"]


# ============================================================================
# DEMO DATA
# ============================================================================


def test_generate_demo_rows():
    """Demo rows look like real rows and are sorted newest first."""
    rows = receipts_service.generate_demo_rows(10, rng=random.Random(7))

    assert len(rows) == 10
    assert [row.date for row in rows] == sorted((row.date for row in rows), reverse=True)
    for row in rows:
        assert row.price.startswith("₩")
        assert row.order_id.startswith("ML" if row.platform == "Apple" else "GS")
        assert row.category != ""


# ============================================================================
# SUMMARY AND EXPORT
# ============================================================================


def test_build_monthly_summary():
    """Rows are grouped by month, oldest first, undated rows ignored."""
    rows = [
        _row(datetime(2025, 2, 3), "₩12,000"),
        _row(datetime(2025, 1, 10), "₩2,200"),
        _row(datetime(2025, 1, 10), "₩9,900"),
        _row(datetime(2025, 2, 20), "미확인"),
        _row(None, "₩1,000"),
    ]

    summary = receipts_service.build_monthly_summary(rows)

    assert summary == [
        {"year": 2025, "month": 1, "total": 12100.0, "count": 2},
        {"year": 2025, "month": 2, "total": 12000.0, "count": 2},
    ]


def test_export_receipts_xlsx():
    """The workbook has a summary sheet and a detail sheet."""
    rows = [
        _row(datetime(2025, 1, 10), "₩2,200"),
        _row(datetime(2025, 2, 3), "", order_id=""),
    ]

    workbook = load_workbook(io.BytesIO(receipts_service.export_receipts_xlsx(rows)))

    assert workbook.sheetnames == [receipts_service.SUMMARY_SHEET, receipts_service.DETAIL_SHEET]

    summary = workbook[receipts_service.SUMMARY_SHEET]
    assert [cell.value for cell in summary[1]] == ["연도", "월", "총 금액", "구매 건수"]
    assert summary.max_row == 3
    assert summary[1][0].font.bold

    detail = workbook[receipts_service.DETAIL_SHEET]
    assert detail.max_row == 3
    assert detail["A2"].value == "2025-01-10"
    assert detail["C3"].value == "N/A"
    assert detail["F3"].value == "미확인"
    assert detail["G2"].value == 2200


def test_export_empty_rows():
    """An empty export still produces both sheets with headers."""
    workbook = load_workbook(io.BytesIO(receipts_service.export_receipts_xlsx([])))

    assert workbook[receipts_service.DETAIL_SHEET].max_row == 1
    assert workbook[receipts_service.SUMMARY_SHEET]["A1"].value == "연도"
