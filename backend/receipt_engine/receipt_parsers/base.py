"""
Receipt Parser Base - Shared Utilities and Registry

Contains:
- Parser registry and decorator for brand-specific parsers
- Class-token predicates for tolerant markup queries
- Common helpers for price parsing and markup stripping
"""

import re
from typing import Callable, Optional

from bs4 import BeautifulSoup

from receipt_engine.models import Brand

# Type alias for parser functions: (soup, decoded_html) -> {'order_id', 'items', 'parse_method'}
BrandParser = Callable[[BeautifulSoup, str], dict]


# Registry of brand -> parser function
BRAND_PARSERS: dict[Brand, BrandParser] = {}

WON_SIGN = "₩"
FULLWIDTH_WON_SIGN = "￦"

_TAG_RE = re.compile(r"<[^>]*>")
_PRICE_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?")


def register_brand(brand: Brand):
    """Decorator to register a parser for a receipt brand."""
    def decorator(func: BrandParser):
        BRAND_PARSERS[brand] = func
        return func
    return decorator


def get_brand_parser(brand: Brand) -> Optional[BrandParser]:
    """
    Get the parser registered for a brand.

    Args:
        brand: Detected receipt brand

    Returns:
        Parser function or None if no parser is registered
    """
    return BRAND_PARSERS.get(brand)


def class_matcher(exact: str, fragment: str) -> Callable[[Optional[str]], bool]:
    """
    Build a class predicate for BeautifulSoup queries.

    Vendor templates are regenerated with hashed class names, so a block
    matches when one of its class tokens equals ``exact`` or contains
    ``fragment``.

    Usage:
        soup.find_all('table', class_=class_matcher('subscription-lockup__container',
                                                     'subscription-lockup'))
    """
    def matches(css_class: Optional[str]) -> bool:
        if not css_class:
            return False
        return css_class == exact or fragment in css_class
    return matches


def strip_tags(text: str) -> str:
    """Remove markup fragments and surrounding whitespace."""
    if not text:
        return ""
    return _TAG_RE.sub("", text).strip()


def normalize_currency_glyph(text: str) -> str:
    """Rewrite the full-width won sign to the standard glyph."""
    if not text:
        return ""
    return text.replace(FULLWIDTH_WON_SIGN, WON_SIGN)


def parse_price(text: str) -> float:
    """
    Extract the numeric value of a KRW price string like '₩1,200'.

    Non-numeric or empty input contributes 0.0; this never raises.
    """
    if not text:
        return 0.0

    cleaned = re.sub(r"[₩￦,\s]", "", text)
    match = _PRICE_NUMBER_RE.match(cleaned)
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0
