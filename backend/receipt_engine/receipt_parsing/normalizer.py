"""
Receipt Result Normalizer

Assembles the final ParseResult and derives the displayable total.
"""

from typing import Optional

from receipt_engine.models import Brand, ExtractedItem, ParseResult
from receipt_engine.receipt_parsers.base import parse_price

from .utilities import format_price


def compute_total(items: list[ExtractedItem]) -> float:
    """Sum item prices; unparseable prices count as zero."""
    return sum(parse_price(item.price) for item in items)


def normalize_result(
    order_id: Optional[str],
    items: list[ExtractedItem],
    brand: Brand = Brand.UNKNOWN,
) -> ParseResult:
    """
    Build a ParseResult from extracted data.

    The total is always derived from the items, never scraped, and is the
    empty string unless the sum is strictly positive.
    """
    total = compute_total(items)

    return ParseResult(
        order_id=order_id or "",
        total_price=format_price(total) if total > 0 else "",
        items=list(items),
        brand=brand,
    )
