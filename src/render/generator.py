# src/render/generator.py — v3
"""Render pipeline: dependency check → fingerprint → cache lookup-or-generate.

ReportGenerator turns a renderable into a verified, non-empty artifact on
disk. With a DiskCache the artifact lives in the managed cache directory;
without one it is a standalone temp file whose cleanup the caller owns.

Failure modes:
  - MissingDependency: the converter is unavailable. Never wrapped.
  - GenerationError: anything else (data loading, conversion, I/O),
    logged with truncated context and re-raised with the original message.
"""

from __future__ import annotations

import asyncio
import logging
import time
import traceback
import uuid
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from reportcache.cache.models import CacheResult
from reportcache.logging.context import (
    clear_context,
    set_component_context,
    set_render_context,
)
from reportcache.render.tempfiles import TemporaryArtifact

if TYPE_CHECKING:
    from reportcache.cache.disk_cache import DiskCache
    from reportcache.render.base_converter import BaseConverter
    from reportcache.render.base_renderable import BaseRenderable

logger = logging.getLogger(__name__)

CACHE_TTL = timedelta(hours=6)
TRACEBACK_FRAMES = 10
ARTIFACT_SUFFIX = ".pdf"


class MissingDependency(Exception):
    """The external renderer is not installed or not configured."""


class GenerationError(Exception):
    """Rendering failed; carries the original failure's message."""


class RenderTimeout(GenerationError):
    """The caller's deadline passed before the artifact was produced."""


class ReportGenerator:
    """Render (or retrieve) the artifact for one renderable.

    Args:
        renderable: Source of cache key, snapshot, fingerprint and HTML.
        converter: HTML-to-PDF engine.
        cache: Shared DiskCache; None disables caching.
        ttl: Lifetime of cached artifacts of this class.
        temp_dir: Where intermediate files are created (system default if None).
    """

    def __init__(
        self,
        renderable: BaseRenderable,
        converter: BaseConverter,
        cache: DiskCache | None = None,
        ttl: float | int | timedelta | None = CACHE_TTL,
        temp_dir: Path | str | None = None,
    ) -> None:
        self._renderable = renderable
        self._converter = converter
        self._cache = cache
        self._ttl = ttl
        self._temp_dir = temp_dir

    @property
    def cache_key(self) -> str:
        return self._renderable.cache_key

    def cache_fingerprint(self) -> str:
        """Fingerprint of the renderable's current state (loads fresh data)."""
        return self._renderable.fingerprint(self._renderable.load())

    def render(self, deadline: float | None = None) -> CacheResult:
        """Produce the artifact, from cache when the fingerprint still matches.

        Args:
            deadline: Absolute ``time.monotonic()`` value after which no new
                conversion is started; also bounds the converter's timeout.

        Raises:
            MissingDependency: The converter is unavailable.
            GenerationError: Anything else went wrong.
        """
        set_render_context(self.cache_key, uuid.uuid4().hex[:12])
        try:
            return self._render(deadline)
        finally:
            clear_context()

    async def render_async(self, deadline: float | None = None) -> CacheResult:
        """Run render() on a worker thread for event-loop callers."""
        return await asyncio.to_thread(self.render, deadline)

    # --- Internals ---

    def _render(self, deadline: float | None) -> CacheResult:
        set_component_context("generator", "dependency_check")
        self._ensure_dependency()

        try:
            set_component_context("generator", "fingerprint")
            snapshot = self._renderable.load()
            fingerprint = self._renderable.fingerprint(snapshot)

            if self._cache is None:
                return self._render_uncached(snapshot, deadline)
            return self._render_cached(self._cache, snapshot, fingerprint, deadline)
        except MissingDependency:
            raise
        except GenerationError as e:
            self._log_failure(e)
            raise
        except Exception as e:
            self._log_failure(e)
            raise GenerationError(str(e)) from e

    def _ensure_dependency(self) -> None:
        if not self._converter.is_available():
            raise MissingDependency(f"{self._converter.name} is not available")

    def _render_cached(
        self,
        cache: DiskCache,
        snapshot: Any,
        fingerprint: str,
        deadline: float | None,
    ) -> CacheResult:
        with TemporaryArtifact(suffix=ARTIFACT_SUFFIX, directory=self._temp_dir) as tmp:

            def generate() -> Path:
                path = self._generate(snapshot, tmp.path, deadline)
                _verify_artifact(path)
                return path

            set_component_context("cache", "fetch")
            result = cache.fetch(self.cache_key, fingerprint, generate, ttl=self._ttl)

        if result is None:
            raise GenerationError(f"no artifact produced for {self.cache_key}")
        _verify_artifact(result.path)
        logger.info(
            "Rendered %s (cached=%s, %d bytes)",
            self._renderable.label, result.cached, result.size_bytes,
        )
        return result

    def _render_uncached(self, snapshot: Any, deadline: float | None) -> CacheResult:
        with TemporaryArtifact(suffix=ARTIFACT_SUFFIX, directory=self._temp_dir) as tmp:
            path = self._generate(snapshot, tmp.path, deadline)
            size = _verify_artifact(path)
            cleanup = tmp.detach()

        logger.info("Rendered %s uncached (%d bytes)", self._renderable.label, size)
        return CacheResult(path=path, cached=False, size_bytes=size, cleanup_action=cleanup)

    def _generate(self, snapshot: Any, output_path: Path, deadline: float | None) -> Path:
        _remaining(deadline)
        set_component_context("generator", "render_html")
        html = self._renderable.render_html(snapshot)

        timeout = _remaining(deadline)
        set_component_context("converter", "convert")
        return self._converter.convert(html, output_path, timeout=timeout)

    def _log_failure(self, exc: BaseException) -> None:
        frames = "".join(traceback.format_tb(exc.__traceback__, limit=TRACEBACK_FRAMES))
        logger.error(
            "Generation failed for %s: %s - %s\n%s",
            self._renderable.label, type(exc).__name__, exc, frames,
        )


def _remaining(deadline: float | None) -> float | None:
    """Seconds left before ``deadline``; raises once it has passed."""
    if deadline is None:
        return None
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise RenderTimeout("render deadline exceeded")
    return remaining


def _verify_artifact(path: Path) -> int:
    """Return the artifact size, failing unless it is a non-empty file."""
    try:
        size = path.stat().st_size
    except OSError as e:
        raise GenerationError(f"artifact missing at {path}") from e
    if size == 0:
        raise GenerationError(f"artifact at {path} is empty")
    return size
