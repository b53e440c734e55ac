# src/render/base_renderable.py — v1
"""Abstract renderable interface consumed by the render pipeline.

A renderable supplies a stable cache key, a snapshot of its source data
(loaded once per render call), a fingerprint of that snapshot, and the HTML
produced from it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseRenderable(ABC):
    """Object that can be turned into a cached document."""

    @property
    @abstractmethod
    def cache_key(self) -> str:
        """Stable identity across content changes, e.g. 'composite-report:42'."""

    @property
    def label(self) -> str:
        """Short description used in log messages."""
        return self.cache_key

    @abstractmethod
    def load(self) -> Any:
        """Pull all related records once and return them as a snapshot."""

    @abstractmethod
    def fingerprint(self, snapshot: Any) -> str:
        """Digest of everything in ``snapshot`` that affects the output."""

    @abstractmethod
    def render_html(self, snapshot: Any) -> str:
        """Render ``snapshot`` to a complete HTML document."""
