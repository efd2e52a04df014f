"""
Receipt Parser Orchestrator

Main parsing coordination.
Orchestrates the parsing flow: decode → classify → brand parser → fallback → normalize

The pipeline is a pure function of the email body: no I/O and no shared
state, so batches are fanned out over a thread pool.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional, Union

from bs4 import BeautifulSoup

from receipt_engine.logging_config import get_logger
from receipt_engine.models import Brand, ParseResult
from receipt_engine.receipt_parsers import extract_fallback_items, get_brand_parser

from .filtering import classify_brand
from .normalizer import normalize_result
from .utilities import decode_transport

logger = get_logger(__name__)

# Brands whose empty structural parse escalates to the fallback heuristic
FALLBACK_BRANDS = (Brand.APPLE, Brand.UNKNOWN)

DEFAULT_PARSE_WORKERS = 4


def parse_receipt(raw_body: Union[str, bytes, None], uid: Optional[str] = None) -> ParseResult:
    """
    Main entry point for parsing a receipt body.

    Flow:
    1. Decode quoted-printable transport encoding (passthrough on failure)
    2. Classify brand from signature strings
    3. Run the brand-specific parser
    4. Fall back to the largest-amount heuristic when no items were found
    5. Normalize into a ParseResult with a derived total

    Args:
        raw_body: Email body as received (possibly quoted-printable)
        uid: Optional mailbox UID, used only for log context

    Returns:
        ParseResult; empty fields and an empty item list when nothing was
        recognised. Never raises for malformed input.
    """
    html = decode_transport(raw_body)
    brand = classify_brand(html)
    log_extra = {"receipt_uid": uid, "brand": brand.value}

    parsed = _run_brand_parser(brand, html, log_extra)
    order_id = parsed.get("order_id", "")
    items = parsed.get("items", [])
    parse_method = parsed.get("parse_method")

    if not items and brand in FALLBACK_BRANDS:
        items = extract_fallback_items(html)
        if items:
            parse_method = "fallback"

    result = normalize_result(order_id, items, brand)

    if result.items:
        logger.debug(
            f"Parsed {len(result.items)} item(s), total {result.total_price or '-'}",
            extra={**log_extra, "parse_method": parse_method},
        )
    else:
        logger.info(
            "No items recognised in receipt body",
            extra={**log_extra, "parse_method": parse_method},
        )

    return result


def _run_brand_parser(brand: Brand, html: str, log_extra: dict) -> dict:
    parser = get_brand_parser(brand)
    if parser is None:
        return {}

    try:
        soup = BeautifulSoup(html, "html.parser")
        return parser(soup, html) or {}
    except Exception:
        # A template change must not take the whole batch down
        logger.exception("Brand parser failed, treating as no items", extra=log_extra)
        return {}


def parse_receipts(
    bodies: Iterable[Union[str, bytes, None]],
    max_workers: Optional[int] = None,
) -> list[ParseResult]:
    """
    Parse many receipt bodies in parallel.

    Args:
        bodies: Email bodies to parse
        max_workers: Thread pool size (defaults to DEFAULT_PARSE_WORKERS)

    Returns:
        One ParseResult per body, in input order
    """
    bodies = list(bodies)
    if not bodies:
        return []

    workers = min(max_workers or DEFAULT_PARSE_WORKERS, len(bodies))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(parse_receipt, bodies))
