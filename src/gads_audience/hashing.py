"""Normalization and hashing of user identifiers."""
from __future__ import annotations

import hashlib


def normalize_and_hash(raw: str) -> str:
    """Trim, lowercase and SHA-256 a raw identifier, returning lowercase hex.

    Formatting follows the Customer Match guidelines:
    https://support.google.com/google-ads/answer/7476159
    """
    normalized = raw.strip().lower()
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


__all__ = ["normalize_and_hash"]
