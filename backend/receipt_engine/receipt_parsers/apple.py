"""
Apple Receipt Parser

Handles Apple App Store / iCloud purchase receipts (Korean storefront).
Apple's 2024+ template wraps each purchased item in a
``subscription-lockup`` table and uses generated ``custom-*`` class names,
so lookups match class tokens by fragment as well as by exact name.
"""

import re

from bs4 import BeautifulSoup

from receipt_engine.models import Brand, ExtractedItem, UNKNOWN_APP_NAME

from .base import class_matcher, register_brand, strip_tags

ORDER_ID_LABEL = "주문 ID:"

ORDER_ID_SHAPE = re.compile(r"^[A-Za-z0-9]{6,15}$")

# Label, optional tags in between, then the identifier
ORDER_ID_MARKUP_PATTERN = re.compile(
    r"주문\s*ID\s*:?\s*(?:<[^>]*>)*\s*([A-Za-z0-9]{6,15})(?![A-Za-z0-9])",
    re.IGNORECASE,
)

LOCKUP_CONTAINER = class_matcher("subscription-lockup__container", "subscription-lockup")
APP_NAME_CLASS = class_matcher("custom-gzadzy", "gzadzy")
PRODUCT_NAME_CLASS = class_matcher("custom-wogfc8", "wogfc8")
PRICE_CLASS = class_matcher("custom-137u684", "137u684")


@register_brand(Brand.APPLE)
def parse_apple_receipt(soup: BeautifulSoup, html: str) -> dict:
    """
    Parse an Apple purchase receipt.

    Returns:
        Dictionary with 'order_id', 'items' and 'parse_method'. Missing data
        yields an empty order id and/or an empty item list, never an error.
    """
    return {
        'order_id': extract_apple_order_id(soup, html),
        'items': extract_apple_items(soup),
        'parse_method': 'vendor_apple',
    }


def extract_apple_order_id(soup: BeautifulSoup, html: str) -> str:
    """
    Extract the order ID.

    Apple renders ``<p>주문 ID:</p>`` followed by ``<p>MM61N78HGZ</p>``.
    The structural lookup wins; the raw markup pattern is only consulted
    when it finds nothing.
    """
    order_id = _order_id_from_label_sibling(soup)
    if order_id:
        return order_id

    match = ORDER_ID_MARKUP_PATTERN.search(html or "")
    if match:
        return match.group(1)

    return ""


def _order_id_from_label_sibling(soup: BeautifulSoup) -> str:
    for label in soup.find_all('p'):
        if ORDER_ID_LABEL not in label.get_text().strip():
            continue

        value = label.find_next_sibling()
        if value is None or value.name != 'p':
            continue

        candidate = value.get_text().strip()
        if ORDER_ID_SHAPE.match(candidate):
            return candidate

    return ""


def extract_apple_items(soup: BeautifulSoup) -> list[ExtractedItem]:
    """
    Extract one item per subscription lockup block.

    A block with neither app name nor price is skipped; otherwise missing
    fields fall back to defaults so partial rows are kept. When lockup
    tables are nested, the innermost block that yields an item wins and its
    enclosing blocks are not counted again.
    """
    blocks = soup.find_all('table', class_=LOCKUP_CONTAINER)
    found = {}

    # Innermost blocks come later in document order
    for index in reversed(range(len(blocks))):
        block = blocks[index]
        if any(_is_ancestor(block, blocks[i]) for i in found):
            continue

        app_name = _first_text(block, APP_NAME_CLASS)
        product_name = _first_text(block, PRODUCT_NAME_CLASS)
        price = strip_tags(_first_text(block, PRICE_CLASS))

        if app_name or price:
            found[index] = ExtractedItem(
                app_name=app_name or UNKNOWN_APP_NAME,
                product_name=product_name or "",
                price=price or "",
            )

    return [found[index] for index in sorted(found)]


def _is_ancestor(candidate, node) -> bool:
    # Identity check; Tag equality is structural
    return any(parent is candidate for parent in node.parents)


def _first_text(block, css_class) -> str:
    elem = block.find('p', class_=css_class)
    if elem is None:
        return ""
    return elem.get_text().strip()
