"""
Receipt Filtering and Brand Detection

Decides which template family a decoded receipt body belongs to, and which
mailbox messages are worth parsing at all.
"""

import re
from typing import Callable

from receipt_engine.models import Brand

APPLE_SIGNATURES = ('apple.com', 'Apple ID', '주문 ID:')
SAMSUNG_SIGNATURES = ('samsung.com', 'Galaxy Store', '애플리케이션 이름')

# Subject/body keywords that mark an Apple mail as a purchase receipt
APPLE_RECEIPT_PATTERN = re.compile(
    r'receipt|영수증|주문|구입|purchase|₩|총계|합계', re.IGNORECASE
)

SAMSUNG_RECEIPT_SUBJECTS = ('구매 영수증', 'Purchase Receipt')


def _contains_any(signatures: tuple) -> Callable[[str], bool]:
    def predicate(text: str) -> bool:
        return any(signature in text for signature in signatures)
    return predicate


# Evaluated in order; the first match wins (forwarded mail can carry both)
BRAND_RULES: list[tuple[Callable[[str], bool], Brand]] = [
    (_contains_any(APPLE_SIGNATURES), Brand.APPLE),
    (_contains_any(SAMSUNG_SIGNATURES), Brand.SAMSUNG),
]


def classify_brand(decoded: str) -> Brand:
    """
    Detect the receipt brand from decoded body text.

    Args:
        decoded: Transport-decoded email body

    Returns:
        The first brand whose signature matches, or Brand.UNKNOWN
    """
    text = decoded or ""
    for predicate, brand in BRAND_RULES:
        if predicate(text):
            return brand
    return Brand.UNKNOWN


def is_apple_receipt_email(subject: str, body: str) -> bool:
    """Check whether an Apple mail is a purchase receipt rather than a notice."""
    return bool(APPLE_RECEIPT_PATTERN.search(f"{subject or ''}{body or ''}"))


def is_samsung_receipt_email(subject: str) -> bool:
    """Check whether a Galaxy Store mail is a purchase receipt."""
    if not subject:
        return False
    return any(marker in subject for marker in SAMSUNG_RECEIPT_SUBJECTS)
