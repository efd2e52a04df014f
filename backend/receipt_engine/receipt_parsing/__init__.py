"""
Receipt Parsing Package

Brand-aware parsing pipeline for in-app purchase receipt emails.

Architecture:
- utilities: Transport decoding and price formatting
- filtering: Brand classification and receipt subject/body filters
- normalizer: Derived totals and ParseResult assembly
- orchestrator: Main parsing coordination and batch parsing

Public API:
- parse_receipt(raw_body) - Parse a single email body
- parse_receipts(bodies, max_workers) - Parse a batch in parallel
"""

from .filtering import (
    BRAND_RULES,
    classify_brand,
    is_apple_receipt_email,
    is_samsung_receipt_email,
)
from .normalizer import (
    compute_total,
    normalize_result,
)
from .orchestrator import (
    parse_receipt,
    parse_receipts,
)
from .utilities import (
    decode_transport,
    format_price,
)

__all__ = [
    # Main orchestrator functions (primary API)
    "parse_receipt",
    "parse_receipts",
    # Pipeline stages
    "decode_transport",
    "classify_brand",
    "normalize_result",
    "compute_total",
    "format_price",
    "BRAND_RULES",
    # Filtering functions
    "is_apple_receipt_email",
    "is_samsung_receipt_email",
]
