"""Receipt engine components for the in-app purchase tracker.

This package contains:
- Receipt parsing pipeline (transport decoding, brand detection, normalization)
- Brand-specific receipt parsers (Apple App Store, Samsung Galaxy Store)
- IMAP mail retrieval for iCloud and Gmail mailboxes
- App category lookup (iTunes Search API with keyword fallback)
"""
