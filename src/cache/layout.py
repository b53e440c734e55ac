# src/cache/layout.py — v1
"""Cache directory layout and filesystem-safe naming.

Every entry is stored as two sibling files under the cache root:

    <cache_root>/<safe_name>.json   metadata (CacheMetadata)
    <cache_root>/<safe_name>.pdf    payload bytes (suffix is configurable)
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path

METADATA_SUFFIX = ".json"
DEFAULT_PAYLOAD_SUFFIX = ".pdf"
PREFIX_MAX_LENGTH = 40
DIGEST_LENGTH = 16

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9-]+")


def safe_name(key: str) -> str:
    """Return a readable, collision-resistant file stem for ``key``.

    The stem is a sanitized prefix (alphanumerics and hyphens, truncated)
    followed by a truncated SHA-256 digest of the full key, so two keys that
    sanitize to the same prefix still map to different files.
    """
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]
    prefix = _UNSAFE_CHARS.sub("-", key).strip("-")[:PREFIX_MAX_LENGTH].rstrip("-")
    if not prefix:
        return digest
    return f"{prefix}-{digest}"


def metadata_path(root: Path, name: str) -> Path:
    return root / f"{name}{METADATA_SUFFIX}"


def payload_path(root: Path, name: str, suffix: str = DEFAULT_PAYLOAD_SUFFIX) -> Path:
    return root / f"{name}{suffix}"


def staging_path(path: Path) -> Path:
    """Sibling path used to stage a write before the atomic rename."""
    return path.with_name(f".{path.name}.tmp")
