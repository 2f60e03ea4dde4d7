# padwatch/fingerprint.py
"""Fixed-size content digests for cheap snapshot comparison."""
from __future__ import annotations

import hashlib


def fingerprint(content: str) -> bytes:
    """Return the SHA-256 digest of `content` encoded as UTF-8."""
    return hashlib.sha256(content.encode("utf-8")).digest()
