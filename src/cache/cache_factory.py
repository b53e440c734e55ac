# src/cache/cache_factory.py — v3
"""Factory for the process-wide DiskCache instance.

The cache is built once at startup from Settings and passed by reference to
every component that needs it; nothing looks it up implicitly.
"""

from __future__ import annotations

from reportcache.cache.disk_cache import DiskCache
from reportcache.config.settings import Settings

DEFAULT_CACHE_ROOT = "~/.reportcache/artifacts"


def create_disk_cache(settings: Settings | None = None) -> DiskCache | None:
    """Instantiate the artifact cache described by ``settings``.

    Args:
        settings: Application settings. Defaults to built-in limits under
            DEFAULT_CACHE_ROOT.

    Returns:
        Configured DiskCache, or None when caching is disabled.
    """
    if settings is None:
        return DiskCache(root=DEFAULT_CACHE_ROOT)

    if not settings.cache_enabled:
        return None

    return DiskCache(
        root=settings.cache_root,
        max_entries=settings.cache_max_entries,
        max_bytes=settings.cache_max_bytes,
    )
