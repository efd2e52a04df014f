"""Core test fixtures for the receipt engine.

Provides reusable fixtures for the Flask test client, sample receipt
bodies and isolation from external services.

Tests never talk to Redis, IMAP or the iTunes Search API: the cache is
forced into its degraded mode and network calls are mocked with
``responses`` or monkeypatched per test.
"""

import os
import sys
import tempfile
from pathlib import Path

import pytest
from flask import Flask

# Add backend directory to Python path
BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

# Keep test runs out of the real log directory (read at import time)
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="receipt-logs-"))

SAMPLE_EMAILS_DIR = Path(__file__).parent / "fixtures" / "sample_emails"


def load_sample_email(name: str) -> str:
    """Read a sample receipt body from fixtures/sample_emails."""
    with open(SAMPLE_EMAILS_DIR / name, encoding="utf-8") as f:
        return f.read()


# ============================================================================
# ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    """Run every test with the category cache in degraded mode."""
    import cache_manager

    monkeypatch.setattr(cache_manager, "get_redis_client", lambda: None)


@pytest.fixture(autouse=True)
def clear_categories():
    """Drop in-process category lookups between tests."""
    from receipt_engine.categorizer import clear_category_cache

    clear_category_cache()
    yield
    clear_category_cache()


@pytest.fixture
def receipt_env(monkeypatch):
    """Environment with no mailbox credentials and default tuning."""
    for name in (
        "ICLOUD_EMAIL",
        "ICLOUD_PASSWORD",
        "GMAIL_EMAIL",
        "GMAIL_PASSWORD",
        "RECEIPT_PARSE_WORKERS",
        "RECEIPT_LOOKBACK_MONTHS",
        "CATEGORY_LOOKUP_TIMEOUT",
        "CATEGORY_COUNTRY",
        "CATEGORY_CACHE_TTL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ============================================================================
# FLASK APP FIXTURES
# ============================================================================


@pytest.fixture
def app() -> Flask:
    """Flask app with test configuration.

    Returns:
        Flask: Configured Flask application instance
    """
    from app import app as flask_app

    flask_app.config["TESTING"] = True

    return flask_app


@pytest.fixture
def client(app: Flask):
    """Flask test client for making HTTP requests.

    Example:
        def test_health_endpoint(client):
            response = client.get('/api/health')
            assert response.status_code == 200
    """
    return app.test_client()


# ============================================================================
# SAMPLE RECEIPTS
# ============================================================================


@pytest.fixture
def apple_single_html():
    """Apple receipt with one subscription lockup."""
    return load_sample_email("apple_single.html")


@pytest.fixture
def apple_multi_qp():
    """Apple receipt with two items, quoted-printable encoded as received."""
    return load_sample_email("apple_multi_qp.txt")


@pytest.fixture
def samsung_html():
    """Galaxy Store purchase receipt."""
    return load_sample_email("samsung_receipt.html")
