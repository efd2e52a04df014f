"""
Services Package - Business Logic Layer

This package contains service modules that encapsulate business logic,
separating it from HTTP routing concerns.

Services can be called from:
- Flask routes (HTTP requests)
- CLI scripts
- Tests

Available services:
- receipts_service: Receipt sync, aggregation rows, summary and export
"""

from . import receipts_service

__all__ = [
    'receipts_service',
]
