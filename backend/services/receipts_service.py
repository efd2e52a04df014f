"""
Receipts Service - Business Logic

Orchestrates in-app purchase receipt sync including:
- Mailbox retrieval (iCloud for Apple, Gmail for Samsung)
- Batch receipt parsing
- Aggregation rows (one row per purchased item) with app categories
- Monthly summary and XLSX export
- Demo data for screenshots

Separates business logic from HTTP routing concerns.
"""

import calendar
import io
import random
from collections import OrderedDict
from datetime import datetime, timedelta
from functools import partial
from typing import Callable, Optional

import pandas as pd
from openpyxl.styles import Font, PatternFill

from config.receipt_config import ReceiptConfig, load_receipt_config
from receipt_engine import imap_client
from receipt_engine.categorizer import get_app_category
from receipt_engine.logging_config import get_logger
from receipt_engine.models import ParseResult, RawReceiptEmail, ReceiptRow
from receipt_engine.receipt_parsers.base import parse_price
from receipt_engine.receipt_parsing import format_price, parse_receipts

logger = get_logger(__name__)

SUMMARY_SHEET = '월별 요약'
DETAIL_SHEET = '전체 내역'

SUMMARY_COLUMNS = [
    ('year', '연도', 10),
    ('month', '월', 8),
    ('total', '총 금액', 15),
    ('count', '구매 건수', 12),
]

DETAIL_COLUMNS = [
    ('date', '날짜', 12),
    ('platform', '플랫폼', 10),
    ('orderId', '주문번호', 20),
    ('appName', '앱이름', 20),
    ('productName', '상품명', 25),
    ('price', '금액', 12),
    ('numericPrice', '금액(숫자)', 12),
]

HEADER_FILL = PatternFill(fill_type='solid', fgColor='FFE0E0E0')


# ============================================================================
# Sync
# ============================================================================


def subtract_months(value: datetime, months: int) -> datetime:
    """Go back a number of calendar months, clamping the day (May 31 -> Feb 28)."""
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def get_start_date(query_date: Optional[str], lookback_months: int = 3) -> datetime:
    """
    Resolve the sync start date.

    Args:
        query_date: ISO date string (YYYY-MM-DD) from the request, optional
        lookback_months: Window used when no date is given

    Returns:
        Start datetime

    Raises:
        ValueError: If query_date is not a valid ISO date
    """
    if query_date:
        return datetime.fromisoformat(query_date)
    return subtract_months(datetime.now(), lookback_months)


def build_receipt_rows(
    receipt: RawReceiptEmail,
    result: ParseResult,
    categorize: Optional[Callable[[str], str]] = None,
) -> list[ReceiptRow]:
    """
    Merge a parse result with its email metadata.

    An N-item receipt yields N rows sharing uid and order id.
    """
    rows = []
    for item in result.items:
        row = ReceiptRow(
            uid=receipt.uid,
            platform=receipt.platform,
            subject=receipt.subject,
            date=receipt.received_at,
            order_id=result.order_id,
            app_name=item.app_name,
            product_name=item.product_name,
            price=item.price,
        )
        if categorize:
            row.category = categorize(item.app_name)
        rows.append(row)
    return rows


def _row_sort_key(row: ReceiptRow) -> float:
    return row.date.timestamp() if row.date else float('-inf')


def sort_rows(rows: list[ReceiptRow]) -> list[ReceiptRow]:
    """Newest first; rows without a date go last."""
    return sorted(rows, key=_row_sort_key, reverse=True)


def sync_receipts(
    start_date: datetime,
    config: Optional[ReceiptConfig] = None,
    categorize: Optional[Callable[[str], str]] = None,
) -> list[ReceiptRow]:
    """
    Fetch, parse and aggregate receipts since a date.

    Args:
        start_date: Earliest received date to include
        config: Receipt configuration (loaded from environment if omitted)
        categorize: Category lookup (defaults to the iTunes-backed categorizer)

    Returns:
        Aggregation rows sorted by date, newest first
    """
    config = config or load_receipt_config()
    if categorize is None:
        categorize = partial(get_app_category, config=config)

    logger.info(f"Fetching receipts from all sources since {start_date.date().isoformat()}")
    receipts = imap_client.fetch_all_receipts(start_date, config)
    logger.info(f"Found {len(receipts)} total raw receipts")

    results = parse_receipts([r.body for r in receipts], max_workers=config.parse_workers)

    rows = []
    empty = 0
    for receipt, result in zip(receipts, results):
        if not result.items:
            empty += 1
            logger.warning(
                f"No items extracted from '{receipt.subject}'",
                extra={'receipt_uid': receipt.uid, 'brand': result.brand.value},
            )
        rows.extend(build_receipt_rows(receipt, result, categorize))

    if receipts and empty == len(receipts):
        logger.warning("No items extracted from any receipt; vendor templates may have changed")

    return sort_rows(rows)


# ============================================================================
# Demo Data
# ============================================================================

DEMO_APPS = [
    ('Apple', 'Game Plus', ['월간 구독권', '스타터 팩', '보석 500개'], '게임'),
    ('Apple', 'Music Pro', ['프리미엄 구독', '고음질 패키지'], '엔터'),
    ('Apple', 'Photo Editor', ['필터 팩', '프로 기능 해제', '클라우드 저장소'], '엔터'),
    ('Samsung', 'Fitness Tracker', ['연간 멤버십', '개인 코치', '식단 플래너'], '건강'),
    ('Samsung', 'Study Notes', ['광고 제거', '무제한 노트', 'PDF 내보내기'], '생산성'),
    ('Apple', 'Weather Live', ['프리미엄 업그레이드', '위젯 팩'], '생산성'),
    ('Samsung', 'Video Player', ['4K 지원', '자막 다운로드'], '엔터'),
    ('Apple', 'Task Manager', ['팀 협업', '캘린더 연동'], '생산성'),
]

DEMO_PRICES = [1000, 1200, 2200, 3300, 4400, 5500, 6500, 7700, 9900, 12000, 15000]


def generate_demo_rows(count: int = 25, rng: Optional[random.Random] = None) -> list[ReceiptRow]:
    """Generate random receipt rows over the past three months."""
    rng = rng or random.Random()
    now = datetime.now()
    rows = []

    for i in range(count):
        platform, app_name, products, category = rng.choice(DEMO_APPS)
        prefix = 'ML' if platform == 'Apple' else 'GS'
        rows.append(
            ReceiptRow(
                uid=f"demo-{i + 1}",
                platform=platform,
                subject=f"{app_name} 구매 확인",
                date=now - timedelta(days=rng.randrange(90)),
                order_id=f"{prefix}{rng.randrange(100000000, 1000000000)}",
                app_name=app_name,
                product_name=rng.choice(products),
                price=format_price(rng.choice(DEMO_PRICES)),
                category=category,
            )
        )

    return sort_rows(rows)


# ============================================================================
# Summary and Export
# ============================================================================


def build_monthly_summary(rows: list[ReceiptRow]) -> list[dict]:
    """
    Group rows by calendar month.

    Returns:
        List of {'year', 'month', 'total', 'count'} sorted oldest first.
        Rows without a date are left out.
    """
    monthly = OrderedDict()
    for row in rows:
        if row.date is None:
            continue
        key = (row.date.year, row.date.month)
        if key not in monthly:
            monthly[key] = {'year': key[0], 'month': key[1], 'total': 0.0, 'count': 0}
        monthly[key]['total'] += parse_price(row.price)
        monthly[key]['count'] += 1

    return [monthly[key] for key in sorted(monthly)]


def _detail_record(row: ReceiptRow) -> dict:
    return {
        'date': row.date.strftime('%Y-%m-%d') if row.date else '',
        'platform': row.platform,
        'orderId': row.order_id or 'N/A',
        'appName': row.app_name or '',
        'productName': row.product_name or '',
        'price': row.price or '미확인',
        'numericPrice': parse_price(row.price),
    }


def _write_sheet(writer: pd.ExcelWriter, sheet_name: str, records: list[dict], columns: list) -> None:
    keys = [key for key, _, _ in columns]
    frame = pd.DataFrame(records, columns=keys)
    frame.columns = [header for _, header, _ in columns]
    frame.to_excel(writer, sheet_name=sheet_name, index=False)

    worksheet = writer.sheets[sheet_name]
    for index, (_, _, width) in enumerate(columns, start=1):
        cell = worksheet.cell(row=1, column=index)
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL
        worksheet.column_dimensions[cell.column_letter].width = width


def export_receipts_xlsx(rows: list[ReceiptRow]) -> bytes:
    """
    Build an XLSX workbook with a monthly summary sheet and a detail sheet.

    Returns:
        Workbook bytes
    """
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        _write_sheet(writer, SUMMARY_SHEET, build_monthly_summary(rows), SUMMARY_COLUMNS)
        _write_sheet(writer, DETAIL_SHEET, [_detail_record(r) for r in rows], DETAIL_COLUMNS)

    return buffer.getvalue()
