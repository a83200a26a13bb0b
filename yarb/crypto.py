"""Hashing helpers."""

from __future__ import annotations

import hashlib


def compute_sha256(data: bytes | bytearray | memoryview) -> str:
    """Return the lowercase hexadecimal SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()