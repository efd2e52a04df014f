"""
IMAP Receipt Client

Fetches candidate purchase receipt emails from iCloud (Apple receipts) and
Gmail (Samsung Galaxy Store receipts) over IMAP with SSL.

Bodies are handed to the parser as received: quoted-printable HTML parts
stay encoded and are decoded by the receipt pipeline.
"""

import email
import imaplib
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from email import policy
from email.message import EmailMessage
from email.utils import parsedate_to_datetime
from typing import Optional

from config.receipt_config import APPLE_SOURCE, SAMSUNG_SOURCE, MailboxSource, ReceiptConfig
from receipt_engine.logging_config import get_logger
from receipt_engine.models import RawReceiptEmail
from receipt_engine.receipt_parsing.filtering import (
    is_apple_receipt_email,
    is_samsung_receipt_email,
)

logger = get_logger(__name__)

# IMAP dates always use English month abbreviations, whatever the locale
IMAP_MONTHS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
               'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

# '(\\HasNoChildren \\All) "/" "[Gmail]/All Mail"'
LIST_LINE_PATTERN = re.compile(r'^\((?P<flags>[^)]*)\)\s+"?[^"\s]*"?\s+(?P<name>.+)$')


def imap_date(value: datetime) -> str:
    """Format a date for IMAP SEARCH SINCE (e.g. '05-Jan-2025')."""
    return f"{value.day:02d}-{IMAP_MONTHS[value.month - 1]}-{value.year}"


def connect(source: MailboxSource, user: str, password: str) -> imaplib.IMAP4_SSL:
    """Open an authenticated IMAP connection for a mailbox source."""
    client = imaplib.IMAP4_SSL(source.host, source.port)
    client.login(user, password)
    return client


def find_all_mail_mailbox(client: imaplib.IMAP4_SSL) -> str:
    """
    Locate Gmail's 'All Mail' folder.

    Prefers the special-use \\All flag (localized names such as
    '전체 보관함' arrive modified-UTF-7 encoded), then an 'All Mail' name,
    then INBOX.
    """
    typ, lines = client.list()
    if typ != 'OK':
        return 'INBOX'

    by_name = None
    for raw in lines or []:
        if not raw:
            continue
        line = raw.decode('utf-8', errors='replace') if isinstance(raw, bytes) else str(raw)
        match = LIST_LINE_PATTERN.match(line)
        if not match:
            continue
        name = match.group('name').strip().strip('"')
        if '\\All' in match.group('flags'):
            return name
        if by_name is None and 'All Mail' in name:
            by_name = name

    return by_name or 'INBOX'


def search_sender_since(client: imaplib.IMAP4_SSL, sender: str, start_date: datetime) -> list[bytes]:
    """Return UIDs of messages from a sender since a date."""
    typ, data = client.uid('SEARCH', None, 'FROM', f'"{sender}"', 'SINCE', imap_date(start_date))
    if typ != 'OK' or not data or not data[0]:
        return []
    return data[0].split()


def extract_body(message: EmailMessage) -> str:
    """
    Return the HTML (or plain text) body of a message.

    Quoted-printable parts are returned still encoded; other transfer
    encodings are decoded here.
    """
    part = message.get_body(preferencelist=('html', 'plain'))
    if part is None:
        return ''

    if part.get('Content-Transfer-Encoding', '').lower() == 'quoted-printable':
        return part.get_payload(decode=False)
    return part.get_content()


def fetch_message(client: imaplib.IMAP4_SSL, uid: bytes) -> Optional[tuple[str, Optional[datetime], str]]:
    """Fetch one message and return (subject, date, body)."""
    typ, data = client.uid('FETCH', uid, '(RFC822)')
    if typ != 'OK' or not data or not isinstance(data[0], tuple):
        return None

    message = email.message_from_bytes(data[0][1], policy=policy.default)
    subject = str(message.get('Subject', '') or '')

    received_at = None
    if message.get('Date'):
        try:
            received_at = parsedate_to_datetime(str(message['Date']))
        except (TypeError, ValueError):
            received_at = None

    return subject, received_at, extract_body(message)


def _fetch_receipts(
    source: MailboxSource,
    user: str,
    password: str,
    start_date: datetime,
    mailbox: Optional[str],
    is_receipt,
) -> list[RawReceiptEmail]:
    client = connect(source, user, password)
    receipts = []

    try:
        selected = mailbox or find_all_mail_mailbox(client)
        client.select(f'"{selected}"', readonly=True)

        logger.info(
            f"Searching {source.platform} receipts in {selected} since {start_date.date().isoformat()}"
        )

        for uid in search_sender_since(client, source.sender, start_date):
            fetched = fetch_message(client, uid)
            if fetched is None:
                continue
            subject, received_at, body = fetched
            uid_str = uid.decode() if isinstance(uid, bytes) else str(uid)
            logger.debug(f"Found {source.platform} mail: {subject}", extra={'receipt_uid': uid_str})

            if is_receipt(subject, body):
                receipts.append(
                    RawReceiptEmail(
                        uid=uid_str,
                        subject=subject,
                        received_at=received_at,
                        body=body,
                        platform=source.platform,
                        mailbox=user,
                    )
                )
    finally:
        try:
            client.logout()
        except imaplib.IMAP4.error as e:
            logger.warning(f"IMAP logout failed for {source.host}: {e}")

    return receipts


def fetch_apple_receipts(start_date: datetime, config: ReceiptConfig) -> list[RawReceiptEmail]:
    """
    Fetch Apple receipts from the iCloud inbox.

    Args:
        start_date: Earliest received date to include
        config: Receipt configuration with iCloud credentials

    Returns:
        Receipt emails whose subject or body looks like a purchase receipt
    """
    if not config.has_icloud_credentials:
        logger.warning("iCloud credentials not configured, skipping Apple receipts")
        return []

    return _fetch_receipts(
        APPLE_SOURCE,
        config.icloud_email,
        config.icloud_password,
        start_date,
        mailbox='INBOX',
        is_receipt=is_apple_receipt_email,
    )


def fetch_samsung_receipts(start_date: datetime, config: ReceiptConfig) -> list[RawReceiptEmail]:
    """
    Fetch Samsung Galaxy Store receipts from Gmail's All Mail folder.

    Gmail is optional: without credentials this returns an empty list.
    """
    if not config.has_gmail_credentials:
        logger.info("Gmail credentials not found, skipping Samsung receipts")
        return []

    return _fetch_receipts(
        SAMSUNG_SOURCE,
        config.gmail_email,
        config.gmail_password,
        start_date,
        mailbox=None,
        is_receipt=lambda subject, body: is_samsung_receipt_email(subject),
    )


def fetch_all_receipts(start_date: datetime, config: ReceiptConfig) -> list[RawReceiptEmail]:
    """
    Fetch receipts from both sources in parallel.

    A failing source is logged and contributes no receipts.
    """
    fetchers = {
        'Apple': fetch_apple_receipts,
        'Samsung': fetch_samsung_receipts,
    }

    receipts = []
    with ThreadPoolExecutor(max_workers=len(fetchers)) as executor:
        futures = {
            platform: executor.submit(fetcher, start_date, config)
            for platform, fetcher in fetchers.items()
        }
        for platform, future in futures.items():
            try:
                receipts.extend(future.result())
            except Exception as e:
                # Failures stay per source
                logger.exception(f"{platform} fetch error: {e}")

    return receipts
