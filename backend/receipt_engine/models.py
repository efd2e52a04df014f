"""
Receipt Data Models

Plain dataclasses shared by the parsing pipeline, the retrieval layer and
the aggregation service. Nothing here is persisted; every instance lives for
a single sync or parse call.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

# Sentinel app name used whenever a receipt carries no recognisable app name
UNKNOWN_APP_NAME = "알 수 없음"


class Brand(str, Enum):
    """Receipt template families the engine knows how to parse."""
    APPLE = "apple"
    SAMSUNG = "samsung"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RawReceiptEmail:
    """A candidate receipt email as handed over by the retrieval layer."""
    uid: str
    subject: str
    received_at: Optional[datetime]
    body: Union[str, bytes]
    platform: str
    mailbox: str = ""


@dataclass
class ExtractedItem:
    """A single purchased item recovered from a receipt."""
    app_name: str = UNKNOWN_APP_NAME
    product_name: str = ""
    price: str = ""

    def to_dict(self) -> dict:
        return {
            "appName": self.app_name,
            "productName": self.product_name,
            "price": self.price,
        }


@dataclass
class ParseResult:
    """
    Normalized output of one parse call.

    total_price is always derived from items by the normalizer and is the
    empty string when the items sum to zero.
    """
    order_id: str = ""
    total_price: str = ""
    items: list[ExtractedItem] = field(default_factory=list)
    brand: Brand = Brand.UNKNOWN

    def to_dict(self) -> dict:
        return {
            "orderId": self.order_id,
            "totalPrice": self.total_price,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class ReceiptRow:
    """One aggregation row: a single item merged with its email metadata."""
    uid: str
    platform: str
    subject: str
    date: Optional[datetime]
    order_id: str
    app_name: str
    product_name: str
    price: str
    category: str = "기타"

    def to_dict(self) -> dict:
        return {
            "uid": self.uid,
            "platform": self.platform,
            "subject": self.subject,
            "date": self.date.isoformat() if self.date else None,
            "orderId": self.order_id,
            "appName": self.app_name,
            "productName": self.product_name,
            "price": self.price,
            "category": self.category,
        }
