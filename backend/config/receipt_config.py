"""
Receipt Sync Configuration Management
Handles environment variables, validation, and mailbox/source configuration
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load from .env in the backend directory
ENV_PATH = Path(__file__).parent.parent / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)


@dataclass
class MailboxSource:
    """IMAP source for one receipt platform"""
    platform: str
    host: str
    sender: str
    port: int = 993


APPLE_SOURCE = MailboxSource(
    platform="Apple",
    host="imap.mail.me.com",
    sender="no_reply@email.apple.com",
)

SAMSUNG_SOURCE = MailboxSource(
    platform="Samsung",
    host="imap.gmail.com",
    sender="applicationstore@samsung.com",
)


@dataclass
class ReceiptConfig:
    """Receipt sync configuration object"""
    icloud_email: str = ""
    icloud_password: str = ""
    gmail_email: str = ""
    gmail_password: str = ""
    parse_workers: int = 4
    fetch_lookback_months: int = 3
    category_lookup_timeout: float = 3.0
    category_country: str = "kr"
    category_cache_ttl: int = 7 * 24 * 3600  # One week

    def __post_init__(self):
        """Validate configuration after initialization"""
        self.validate()

    def validate(self):
        """Validate receipt sync configuration"""
        if self.parse_workers < 1:
            raise ValueError("RECEIPT_PARSE_WORKERS must be at least 1")

        if self.fetch_lookback_months < 1:
            raise ValueError("RECEIPT_LOOKBACK_MONTHS must be at least 1")

        if self.category_lookup_timeout <= 0:
            raise ValueError("CATEGORY_LOOKUP_TIMEOUT must be greater than 0")

        if self.category_cache_ttl < 0:
            raise ValueError("CATEGORY_CACHE_TTL must be non-negative")

        if len(self.category_country) != 2:
            raise ValueError(f"Invalid CATEGORY_COUNTRY: {self.category_country}")

    @property
    def has_icloud_credentials(self) -> bool:
        return bool(self.icloud_email and self.icloud_password)

    @property
    def has_gmail_credentials(self) -> bool:
        return bool(self.gmail_email and self.gmail_password)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw}")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw}")


def load_receipt_config(env_path: Optional[Path] = None) -> ReceiptConfig:
    """
    Load receipt sync configuration from environment variables.

    Environment Variables:
    - ICLOUD_EMAIL / ICLOUD_PASSWORD: iCloud IMAP login (Apple receipts)
    - GMAIL_EMAIL / GMAIL_PASSWORD: Gmail IMAP login (Samsung receipts, optional)
    - RECEIPT_PARSE_WORKERS: Thread pool size for batch parsing (default: 4)
    - RECEIPT_LOOKBACK_MONTHS: Default sync window in months (default: 3)
    - CATEGORY_LOOKUP_TIMEOUT: iTunes Search API timeout in seconds (default: 3)
    - CATEGORY_COUNTRY: iTunes storefront country code (default: kr)
    - CATEGORY_CACHE_TTL: Category cache TTL in seconds (default: one week)

    Returns:
        ReceiptConfig object

    Raises:
        ValueError: If a variable is malformed or out of range
    """
    # Reload .env file to pick up any changes
    path = env_path or ENV_PATH
    if path.exists():
        load_dotenv(path, override=True)

    return ReceiptConfig(
        icloud_email=os.getenv("ICLOUD_EMAIL", "").strip(),
        icloud_password=os.getenv("ICLOUD_PASSWORD", "").strip(),
        gmail_email=os.getenv("GMAIL_EMAIL", "").strip(),
        gmail_password=os.getenv("GMAIL_PASSWORD", "").strip(),
        parse_workers=_int_env("RECEIPT_PARSE_WORKERS", 4),
        fetch_lookback_months=_int_env("RECEIPT_LOOKBACK_MONTHS", 3),
        category_lookup_timeout=_float_env("CATEGORY_LOOKUP_TIMEOUT", 3.0),
        category_country=os.getenv("CATEGORY_COUNTRY", "kr").strip().lower(),
        category_cache_ttl=_int_env("CATEGORY_CACHE_TTL", 7 * 24 * 3600),
    )
