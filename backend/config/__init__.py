"""Backend configuration module"""

from .receipt_config import (
    APPLE_SOURCE,
    SAMSUNG_SOURCE,
    MailboxSource,
    ReceiptConfig,
    load_receipt_config,
)

__all__ = [
    "ReceiptConfig",
    "MailboxSource",
    "APPLE_SOURCE",
    "SAMSUNG_SOURCE",
    "load_receipt_config",
]
