"""Centralized logging configuration for the receipt workflow.

Every receipt module logs through get_logger(). Records can carry receipt
context through ``extra=``:

- receipt_uid: Mailbox UID of the receipt being processed
- brand: Detected receipt brand (apple, samsung, unknown)
- parse_method: Parser that produced the items (vendor_apple, fallback, ...)

Usage:
    from receipt_engine.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Parsed receipt", extra={'receipt_uid': uid, 'brand': 'apple'})
"""

import logging
import os
from logging.handlers import RotatingFileHandler

# Defaults to backend/logs
LOG_DIR = os.getenv(
    "LOG_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs"),
)

CONTEXT_FIELDS = ("receipt_uid", "brand", "parse_method")

MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 5

CONSOLE_FORMAT = "[%(levelname)s] [receipt:%(receipt_uid)s] %(message)s"
FILE_FORMAT = (
    "[%(asctime)s] [%(levelname)s] [%(name)s] "
    "[receipt:%(receipt_uid)s brand:%(brand)s method:%(parse_method)s] %(message)s"
)

# (filename, level) for each rotating file
LOG_FILES = (
    ("receipts.log", logging.DEBUG),
    ("receipt_errors.log", logging.ERROR),
)


class StructuredFormatter(logging.Formatter):
    """Formatter that fills missing receipt context fields with None."""

    def format(self, record):
        for field in CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, None)
        return super().format(record)


def _file_handler(filename: str, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        os.path.join(LOG_DIR, filename),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(StructuredFormatter(FILE_FORMAT))
    return handler


def get_logger(name: str) -> logging.Logger:
    """Get configured logger for receipt operations.

    The first call for a name attaches a console handler (INFO) and the
    rotating files under LOG_DIR: all records (DEBUG) and errors only.
    Later calls return the same logger untouched.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logging.Logger instance
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(StructuredFormatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    os.makedirs(LOG_DIR, exist_ok=True)
    for filename, level in LOG_FILES:
        logger.addHandler(_file_handler(filename, level))

    return logger
