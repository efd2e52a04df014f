"""
Receipt Parsers - Brand-Specific Email Parsers

This package contains brand-specific receipt parsers:
- apple.py: Apple App Store / iCloud receipts (structural, BeautifulSoup)
- samsung.py: Samsung Galaxy Store receipts (positional regex over markup)
- fallback.py: Largest-amount heuristic for unrecognised receipts

Apple markup is queried as a tree while Samsung markup is matched as raw
text; the Galaxy Store tables are too irregular for structural queries.

Usage:
    from receipt_engine.receipt_parsers import get_brand_parser

    parser = get_brand_parser(Brand.APPLE)
    result = parser(soup, decoded_html)
"""

# Import registry and utilities from base
from .base import (
    BRAND_PARSERS,
    class_matcher,
    get_brand_parser,
    normalize_currency_glyph,
    parse_price,
    strip_tags,
)

# Import brand modules to trigger @register_brand decorators
from . import apple
from . import samsung
from . import fallback
from .fallback import extract_fallback_items

__all__ = [
    'BRAND_PARSERS',
    'get_brand_parser',
    'class_matcher',
    'strip_tags',
    'normalize_currency_glyph',
    'parse_price',
    'extract_fallback_items',
]
