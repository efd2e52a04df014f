"""
Receipt Parsing Utilities

Common helpers for the receipt pipeline:
- Transport decoding of quoted-printable email bodies
- KRW price formatting for derived totals
"""

import quopri
import re
from typing import Union

from receipt_engine.receipt_parsers.base import WON_SIGN

# An encoded '=' or an encoded UTF-8 lead/continuation byte; a line ending
# in a bare '=' alone does not mark a body as encoded
QUOTED_PRINTABLE_MARKER = re.compile(r"=(?:3D|[89A-F][0-9A-F])")


def decode_transport(raw: Union[str, bytes, None]) -> str:
    """
    Decode a quoted-printable email body into UTF-8 text.

    Mail from Apple and Samsung arrives quoted-printable encoded, e.g.
    ``=EC=A3=BC=EB=AC=B8 ID:`` for ``주문 ID:``. Bodies without any
    quoted-printable markers are returned unchanged, and a body that fails
    to decode is returned as it was received.

    Args:
        raw: Email body as received from the mailbox

    Returns:
        Decoded text, or the original text on any decoding problem
    """
    if raw is None:
        return ""

    if isinstance(raw, bytes):
        text = raw.decode("utf-8", errors="replace")
    else:
        text = raw

    if not QUOTED_PRINTABLE_MARKER.search(text):
        return text

    try:
        return quopri.decodestring(text.encode("utf-8")).decode("utf-8")
    except (ValueError, UnicodeError):
        return text


def format_price(value: float) -> str:
    """
    Format an amount in the KRW convention: '₩1,200'.

    Whole amounts carry no decimals; fractional amounts keep two.
    """
    if float(value).is_integer():
        return f"{WON_SIGN}{int(value):,}"
    return f"{WON_SIGN}{value:,.2f}"
