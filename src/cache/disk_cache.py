# src/cache/disk_cache.py — v3
"""Disk-backed artifact cache with fingerprint validation, TTL and LRU eviction.

Each entry is a payload file plus a JSON metadata sidecar (see cache.layout).
A lookup is a hit only when the stored fingerprint equals the caller's
current fingerprint and the entry has not expired.

Locking: one mutex per instance serializes every metadata mutation (sweep,
touch, persist, eviction). The generation callback runs *outside* the lock,
so two concurrent misses on the same key may both generate; the last writer
wins. There is no cross-process locking.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
import time
from datetime import timedelta
from pathlib import Path
from typing import Callable

from reportcache.cache.layout import (
    DEFAULT_PAYLOAD_SUFFIX,
    METADATA_SUFFIX,
    metadata_path,
    payload_path,
    safe_name,
    staging_path,
)
from reportcache.cache.models import (
    CachedArtifact,
    CacheMetadata,
    CacheResult,
    CacheStats,
    parse_metadata,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50
DEFAULT_MAX_BYTES = 250 * 1024 * 1024

ArtifactFactory = Callable[[], "Path | str | None"]


class DiskCache:
    """Key/fingerprint addressed artifact store on the local filesystem.

    Args:
        root: Managed cache directory (created if missing).
        max_entries: Maximum number of entries retained.
        max_bytes: Maximum aggregate payload size.
        payload_suffix: Extension of the stored payload files.
        clock: Returns the current time as epoch seconds.
    """

    def __init__(
        self,
        root: Path | str,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_bytes: int = DEFAULT_MAX_BYTES,
        payload_suffix: str = DEFAULT_PAYLOAD_SUFFIX,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if max_bytes <= 0:
            raise ValueError("max_bytes must be > 0")
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)
        self._max_entries = max_entries
        self._max_bytes = max_bytes
        self._suffix = payload_suffix
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    # --- Public API ---

    def fetch(
        self,
        key: str,
        fingerprint: str,
        generate: ArtifactFactory,
        ttl: float | int | timedelta | None = None,
    ) -> CacheResult | None:
        """Return the cached artifact for ``key`` or generate and store it.

        Args:
            key: Stable logical identity of the artifact.
            fingerprint: Digest of the current source state.
            generate: Called on a miss; returns the path of a freshly
                produced file (which is moved into the cache) or None.
            ttl: Lifetime in seconds or as a timedelta; None never expires.

        Returns:
            CacheResult, or None when generation produced nothing or the
            artifact could not be persisted.
        """
        name = safe_name(key)
        meta_file = metadata_path(self._root, name)
        payload_file = payload_path(self._root, name, self._suffix)

        with self._lock:
            now = self._clock()
            self._sweep_expired_locked(now)
            metadata = self._read_metadata_locked(name)
            if (
                metadata is not None
                and metadata.is_valid_for(fingerprint, now)
                and payload_file.is_file()
            ):
                touched = metadata.touched(now)
                if self._write_metadata_locked(meta_file, touched):
                    logger.debug("Cache hit for %s (%d bytes)", key, touched.size)
                    return CacheResult(
                        path=payload_file, cached=True, size_bytes=touched.size
                    )

        logger.debug("Cache miss for %s; generating", key)
        produced = generate()
        if produced is None:
            logger.info("Generator returned nothing for %s; not caching", key)
            return None
        source = Path(produced)
        if not source.is_file():
            logger.warning("Generator output %s for %s does not exist", source, key)
            return None

        with self._lock:
            now = self._clock()
            persisted = self._persist_locked(name, source, fingerprint, _ttl_seconds(ttl), now)
            if persisted is None:
                return None
            self._enforce_limits_locked(keep=name)
            return CacheResult(path=payload_file, cached=False, size_bytes=persisted.size)

    def reset(self) -> None:
        """Delete every entry by recreating the cache directory."""
        with self._lock:
            shutil.rmtree(self._root, ignore_errors=True)
            self._root.mkdir(parents=True, exist_ok=True)
        logger.info("Cache reset: %s", self._root)

    def sweep_expired(self) -> int:
        """Remove expired (and corrupt) entries; return how many were removed."""
        with self._lock:
            return self._sweep_expired_locked(self._clock())

    def entries(self) -> list[CachedArtifact]:
        """All valid entries, least recently accessed first."""
        with self._lock:
            return self._load_entries_locked()

    def stats(self) -> CacheStats:
        entries = self.entries()
        return CacheStats(
            root=self._root,
            entries=len(entries),
            total_bytes=sum(e.size for e in entries),
            max_entries=self._max_entries,
            max_bytes=self._max_bytes,
        )

    # --- Locked helpers (caller holds self._lock) ---

    def _read_metadata_locked(self, name: str) -> CacheMetadata | None:
        """Load metadata for ``name``; corrupt entries are removed."""
        meta_file = metadata_path(self._root, name)
        try:
            raw = meta_file.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Cannot read cache metadata %s: %s", meta_file, e)
            return None

        metadata = parse_metadata(raw)
        if metadata is None:
            logger.warning("Discarding corrupt cache metadata %s", meta_file.name)
            self._remove_entry_locked(name)
        return metadata

    def _write_metadata_locked(self, meta_file: Path, metadata: CacheMetadata) -> bool:
        staged = staging_path(meta_file)
        try:
            staged.write_text(metadata.model_dump_json(), encoding="utf-8")
            os.replace(staged, meta_file)
        except OSError as e:
            logger.warning("Cannot write cache metadata %s: %s", meta_file, e)
            staged.unlink(missing_ok=True)
            return False
        return True

    def _persist_locked(
        self,
        name: str,
        source: Path,
        fingerprint: str,
        ttl: float | None,
        now: float,
    ) -> CacheMetadata | None:
        """Move ``source`` into the cache and write its metadata.

        The payload is first moved to a staging file inside the cache root
        (a copy when ``source`` is on another filesystem) and then renamed
        over the target, so readers of a previous payload keep their bytes.
        Any filesystem failure leaves no entry behind for ``name``.
        """
        target = payload_path(self._root, name, self._suffix)
        staged = staging_path(target)
        try:
            shutil.move(str(source), str(staged))
            os.replace(staged, target)
            size = target.stat().st_size
        except FileNotFoundError:
            logger.warning("Artifact %s vanished before it could be cached", source)
            staged.unlink(missing_ok=True)
            self._remove_entry_locked(name)
            return None
        except OSError as e:
            logger.warning("Cannot cache artifact %s: %s", source, e)
            staged.unlink(missing_ok=True)
            self._remove_entry_locked(name)
            return None

        metadata = CacheMetadata(
            fingerprint=fingerprint,
            size=size,
            expires_at=now + ttl if ttl is not None else None,
            last_accessed_at=now,
        )
        if not self._write_metadata_locked(metadata_path(self._root, name), metadata):
            self._remove_entry_locked(name)
            return None
        return metadata

    def _load_entries_locked(self) -> list[CachedArtifact]:
        entries: list[CachedArtifact] = []
        if not self._root.is_dir():
            return entries

        for meta_file in self._root.glob(f"*{METADATA_SUFFIX}"):
            name = meta_file.name[: -len(METADATA_SUFFIX)]
            metadata = self._read_metadata_locked(name)
            if metadata is None:
                continue
            entries.append(
                CachedArtifact(
                    name=name,
                    metadata=metadata,
                    metadata_path=meta_file,
                    payload_path=payload_path(self._root, name, self._suffix),
                )
            )

        entries.sort(key=lambda e: (e.last_accessed_at, e.name))
        return entries

    def _sweep_expired_locked(self, now: float) -> int:
        removed = 0
        for entry in self._load_entries_locked():
            if entry.metadata.is_expired(now):
                self._remove_entry_locked(entry.name)
                removed += 1
        if removed:
            logger.info("Swept %d expired cache entries", removed)
        self._sweep_strays_locked()
        return removed

    def _sweep_strays_locked(self) -> None:
        """Delete payloads without a sidecar and leftover staging files.

        Both are left behind only by a process dying mid-persist.
        """
        strays = [
            payload
            for payload in self._root.glob(f"*{self._suffix}")
            if not payload.name.startswith(".")
            and not metadata_path(self._root, payload.name[: -len(self._suffix)]).exists()
        ]
        strays.extend(self._root.glob(".*.tmp"))
        for path in strays:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Cannot remove stray cache file %s: %s", path, e)
        if strays:
            logger.info("Removed %d stray cache files", len(strays))

    def _enforce_limits_locked(self, keep: str | None = None) -> None:
        """Evict least recently accessed entries until both limits hold.

        ``keep`` names the entry persisted by the current call; it is never
        evicted by that same call.
        """
        entries = self._load_entries_locked()
        count = len(entries)
        total = sum(e.size for e in entries)
        candidates = [e for e in entries if e.name != keep]

        evicted = 0
        while count > self._max_entries and candidates:
            victim = candidates.pop(0)
            self._remove_entry_locked(victim.name)
            count -= 1
            total -= victim.size
            evicted += 1

        while total > self._max_bytes and candidates:
            victim = candidates.pop(0)
            self._remove_entry_locked(victim.name)
            count -= 1
            total -= victim.size
            evicted += 1

        if evicted:
            logger.info(
                "Evicted %d cache entries (remaining=%d, bytes=%d)",
                evicted, count, total,
            )

    def _remove_entry_locked(self, name: str) -> None:
        for path in (
            metadata_path(self._root, name),
            payload_path(self._root, name, self._suffix),
        ):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Cannot remove cache file %s: %s", path, e)


def _ttl_seconds(ttl: float | int | timedelta | None) -> float | None:
    if ttl is None:
        return None
    if isinstance(ttl, timedelta):
        return ttl.total_seconds()
    return float(ttl)
