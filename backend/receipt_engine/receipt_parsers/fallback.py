"""
Generic Fallback Parser

Last-resort extraction for receipts with no recognised template, or whose
brand parser found no items. Picks the largest won amount in the body as a
single unlabeled item.

The "largest amount is the total" rule is a heuristic: receipts usually
list unit prices and subtotals before the final total, but nothing
guarantees it.
"""

import re

from bs4 import BeautifulSoup

from receipt_engine.models import Brand, ExtractedItem, UNKNOWN_APP_NAME

from .base import WON_SIGN, parse_price, register_brand

WON_AMOUNT_PATTERN = re.compile(r"[₩￦]\s*(\d[\d,]*)")


@register_brand(Brand.UNKNOWN)
def parse_generic_receipt(soup: BeautifulSoup, html: str) -> dict:
    """Parse a receipt with no brand-specific template."""
    return {
        'order_id': '',
        'items': extract_fallback_items(html),
        'parse_method': 'fallback',
    }


def extract_fallback_items(text: str) -> list[ExtractedItem]:
    """
    Emit one item priced at the largest won amount in the text.

    Returns:
        A single-item list, or an empty list when no amount is present
    """
    best_amount = None
    best_value = -1.0

    for match in WON_AMOUNT_PATTERN.finditer(text or ""):
        amount = match.group(1).rstrip(',')
        value = parse_price(amount)
        # Strictly greater: ties keep the first occurrence
        if value > best_value:
            best_amount = amount
            best_value = value

    if best_amount is None:
        return []

    return [
        ExtractedItem(
            app_name=UNKNOWN_APP_NAME,
            product_name="",
            price=f"{WON_SIGN}{best_amount}",
        )
    ]
