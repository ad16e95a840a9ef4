"""Unit tests for identifier normalization and hashing."""
from __future__ import annotations

import hashlib

from gads_audience.hashing import normalize_and_hash


def _sha256(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def test_normalize_and_hash_trims_and_lowercases() -> None:
    assert normalize_and_hash("  Lukas@Example.com ") == _sha256("lukas@example.com")


def test_normalize_and_hash_is_stable_across_variants() -> None:
    variants = ["lukas@example.com", "LUKAS@EXAMPLE.COM", "\tLukas@example.COM\n"]
    digests = {normalize_and_hash(value) for value in variants}
    assert digests == {_sha256("lukas@example.com")}


def test_normalize_and_hash_accepts_empty_string() -> None:
    digest = normalize_and_hash("")
    assert digest == _sha256("")
    assert digest == digest.lower()
    assert len(digest) == 64
