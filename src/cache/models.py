# src/cache/models.py — v2
"""Cache domain models: CacheMetadata, CachedArtifact, CacheResult, CacheStats.

CacheMetadata is the on-disk schema written next to every cached payload:

    {"fingerprint": str, "size": int, "expires_at": float | null,
     "last_accessed_at": float}

Timestamps are epoch seconds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class CacheMetadata(BaseModel):
    """Persisted record describing one cached artifact."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    fingerprint: str
    size: int = Field(ge=0)
    expires_at: float | None = None
    last_accessed_at: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def is_valid_for(self, fingerprint: str, now: float) -> bool:
        """True when this entry may be served as a hit for ``fingerprint``."""
        return self.fingerprint == fingerprint and not self.is_expired(now)

    def touched(self, now: float) -> CacheMetadata:
        return self.model_copy(update={"last_accessed_at": now})


def parse_metadata(text: str | bytes) -> CacheMetadata | None:
    """Parse a metadata document, returning None when it is malformed."""
    try:
        return CacheMetadata.model_validate_json(text)
    except ValidationError as e:
        logger.debug("Rejected cache metadata: %s", e.errors(include_url=False))
        return None


@dataclass(frozen=True)
class CachedArtifact:
    """A persisted entry as seen during sweeps and eviction."""

    name: str
    metadata: CacheMetadata
    metadata_path: Path
    payload_path: Path

    @property
    def size(self) -> int:
        return self.metadata.size

    @property
    def last_accessed_at(self) -> float:
        return self.metadata.last_accessed_at


@dataclass
class CacheResult:
    """Materialized artifact handed back to the caller.

    ``cached`` tells a hit from a fresh generation. When the artifact lives
    outside the managed cache directory, ``cleanup_action`` deletes it and the
    caller must invoke ``cleanup()`` once done with the file.
    """

    path: Path
    cached: bool
    size_bytes: int
    cleanup_action: Callable[[], None] | None = field(default=None, repr=False)

    @property
    def owns_file(self) -> bool:
        """True when the caller is responsible for releasing ``path``."""
        return self.cleanup_action is not None

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def cleanup(self) -> None:
        """Release the underlying temporary file; no-op for cached artifacts."""
        action, self.cleanup_action = self.cleanup_action, None
        if action is not None:
            action()


class CacheStats(BaseModel):
    """Point-in-time occupancy of a DiskCache."""

    root: Path
    entries: int
    total_bytes: int
    max_entries: int
    max_bytes: int
