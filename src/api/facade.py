# src/api/facade.py — v1
"""Public API facade — the report rendering service.

Usage:
    from reportcache.api.facade import ReportService
    service = ReportService(load_settings())      # once, at startup
    result = service.render(CompositeReport(42, repository))
    try:
        send_file(result.path)
    finally:
        result.cleanup()

The web layer maps failures with http_status_for() / public_message().
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from reportcache.cache.cache_factory import create_disk_cache
from reportcache.cache.models import CacheResult, CacheStats
from reportcache.config.settings import Settings
from reportcache.render.composite_report import CompositeReport, ReportRepository
from reportcache.render.generator import GenerationError, MissingDependency, ReportGenerator
from reportcache.render.wkhtmltopdf_converter import WkhtmltopdfConverter

if TYPE_CHECKING:
    from reportcache.cache.disk_cache import DiskCache
    from reportcache.render.base_converter import BaseConverter
    from reportcache.render.base_renderable import BaseRenderable

logger = logging.getLogger(__name__)

_CACHE_FROM_SETTINGS = object()


class ReportService:
    """Long-lived service holding the shared cache and converter.

    Args:
        settings: Application settings. Loaded from .env if None.
        cache: Explicit cache instance; built from settings when omitted.
            Pass None to disable caching regardless of settings.
        converter: Explicit converter; wkhtmltopdf from settings when omitted.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: DiskCache | None | object = _CACHE_FROM_SETTINGS,
        converter: BaseConverter | None = None,
    ) -> None:
        self._settings = settings or Settings()
        if cache is _CACHE_FROM_SETTINGS:
            cache = create_disk_cache(self._settings)
        self._cache: DiskCache | None = cache  # type: ignore[assignment]
        self._converter = converter or WkhtmltopdfConverter.from_settings(self._settings)
        logger.info(
            "Report service ready: cache=%s, converter=%s",
            self._cache.root if self._cache else "disabled",
            self._converter.name,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def cache(self) -> DiskCache | None:
        return self._cache

    @property
    def converter(self) -> BaseConverter:
        return self._converter

    def generator_for(self, renderable: BaseRenderable) -> ReportGenerator:
        return ReportGenerator(
            renderable=renderable,
            converter=self._converter,
            cache=self._cache,
            ttl=self._settings.composite_report_ttl,
            temp_dir=self._settings.temp_dir,
        )

    def composite_report(
        self, response_id: int | str, repository: ReportRepository
    ) -> CompositeReport:
        """Build a CompositeReport with the configured payload-shaping knobs."""
        return CompositeReport(
            response_id,
            repository,
            max_evidence_history=self._settings.max_evidence_history,
        )

    def render(
        self, renderable: BaseRenderable, deadline: float | None = None
    ) -> CacheResult:
        return self.generator_for(renderable).render(deadline)

    async def render_async(
        self, renderable: BaseRenderable, deadline: float | None = None
    ) -> CacheResult:
        return await self.generator_for(renderable).render_async(deadline)

    def reset_cache(self) -> None:
        if self._cache is not None:
            self._cache.reset()

    def sweep_cache(self) -> int:
        return self._cache.sweep_expired() if self._cache is not None else 0

    def stats(self) -> CacheStats | None:
        return self._cache.stats() if self._cache is not None else None


def http_status_for(exc: BaseException) -> int:
    """HTTP status the calling layer should answer with for ``exc``."""
    if isinstance(exc, MissingDependency):
        return 503
    return 500


def public_message(exc: BaseException) -> str:
    """User-facing message that does not leak internal details."""
    if isinstance(exc, MissingDependency):
        return "PDF export is currently unavailable."
    if isinstance(exc, GenerationError):
        return "The report could not be generated. Please try again later."
    return "An unexpected error occurred."


def copy_artifact(result: CacheResult, destination: Path) -> Path:
    """Copy a rendered artifact out of the cache and release the original."""
    destination = destination.expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        shutil.copyfile(result.path, destination)
    finally:
        result.cleanup()
    return destination
