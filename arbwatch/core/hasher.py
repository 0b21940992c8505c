"""Canonical JSON helpers for flat record values.

Build payloads are stored as JSON text inside the flat record (they are
"redundantly" encoded so a changed build shows up as a changed string).
Encoding them canonically keeps that string stable for identical builds.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any


def canonical_json(obj: Any) -> str:
    """Produce canonical JSON text — deterministic, sorted, compact."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def canonical_json_bytes(obj: Any) -> bytes:
    """UTF-8 bytes of :func:`canonical_json`."""
    return canonical_json(obj).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def record_digest(record: Mapping[str, Any]) -> str:
    """Digest of a whole flat record, independent of key insertion order.

    Used to tell whether a re-scraped push actually changed.
    """
    return sha256_hex(canonical_json_bytes(dict(record)))
