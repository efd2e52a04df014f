"""
Samsung Receipt Parser

Handles Samsung Galaxy Store purchase receipts (Korean storefront).

Galaxy Store mails nest label/value pairs across several table levels
inconsistently, so this parser matches positional patterns over the raw
markup instead of walking the tree. Every row follows the same layout:

    <td>애플리케이션 이름</td><td>:</td><td>Fit App</td>
     label cell               spacer     value cell
"""

import re

from bs4 import BeautifulSoup

from receipt_engine.models import Brand, ExtractedItem, UNKNOWN_APP_NAME

from .base import normalize_currency_glyph, register_brand, strip_tags

APP_NAME_LABEL = "애플리케이션 이름"
PRODUCT_NAME_LABEL = "상품 이름"
ORDER_NUMBER_LABEL = "주문 번호"
TOTAL_LABEL = "합계"

# Galaxy Store order numbers look like P20250101123456ABC
ORDER_NUMBER_SHAPE = re.compile(r"^P\d{10,20}[A-Z0-9]*$")


def _label_value_pattern(label: str) -> re.Pattern:
    """Label cell close, then two cell openings, then the value cell text."""
    return re.compile(
        re.escape(label) + r"</td>[\s\S]*?<td[^>]*>[\s\S]*?<td[^>]*>([\s\S]*?)</td>",
        re.IGNORECASE,
    )


FIELD_PATTERNS = {
    'app_name': _label_value_pattern(APP_NAME_LABEL),
    'product_name': _label_value_pattern(PRODUCT_NAME_LABEL),
    'order_id': _label_value_pattern(ORDER_NUMBER_LABEL),
    'total': _label_value_pattern(TOTAL_LABEL),
}


@register_brand(Brand.SAMSUNG)
def parse_samsung_receipt(soup: BeautifulSoup, html: str) -> dict:
    """
    Parse a Samsung Galaxy Store purchase receipt.

    A Galaxy Store mail always represents a single purchase, so at most one
    item is produced. The soup argument is unused; it keeps the registry
    signature uniform.
    """
    app_name = extract_field(html, 'app_name')
    product_name = extract_field(html, 'product_name')
    total = normalize_currency_glyph(extract_field(html, 'total'))

    items = []
    if app_name or total:
        items.append(
            ExtractedItem(
                app_name=app_name or UNKNOWN_APP_NAME,
                product_name=product_name,
                price=total,
            )
        )

    return {
        'order_id': extract_samsung_order_id(html),
        'items': items,
        'parse_method': 'vendor_samsung',
    }


def extract_field(html: str, field: str) -> str:
    """Return the tag-stripped value cell for a labelled row, or ''."""
    match = FIELD_PATTERNS[field].search(html or "")
    if not match:
        return ""
    return strip_tags(match.group(1))


def extract_samsung_order_id(html: str) -> str:
    """
    Extract the Galaxy Store order number.

    Candidates that do not look like a Galaxy Store order number are
    dropped rather than accepted loosely.
    """
    candidate = extract_field(html, 'order_id')
    if ORDER_NUMBER_SHAPE.match(candidate):
        return candidate
    return ""
