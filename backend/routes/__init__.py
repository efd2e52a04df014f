"""Routes package for API endpoints."""

from routes.health import health_bp
from routes.receipts import receipts_bp

__all__ = [
    "health_bp",
    "receipts_bp",
]
