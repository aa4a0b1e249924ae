"""Canonical hashing helpers for archive verification and tree checksums."""

from __future__ import annotations

import hashlib
import json
from typing import Any

from cratevendor.models.fetch import HashAlgorithm


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def digest_hex(data: bytes, algorithm: HashAlgorithm) -> str:
    """Return the hex digest of ``data`` under ``algorithm``."""
    if algorithm is HashAlgorithm.BLAKE2B:
        return hashlib.blake2b(data).hexdigest()
    return hashlib.new(algorithm.value, data).hexdigest()
