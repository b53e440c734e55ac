# src/render/html_document.py — v1
"""Static HTML file as a renderable (used by the CLI)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from reportcache.cache.fingerprint import compute_file_fingerprint
from reportcache.render.base_renderable import BaseRenderable


@dataclass(frozen=True)
class HtmlSnapshot:
    path: Path
    html: str
    fingerprint: str


class HtmlDocument(BaseRenderable):
    """Renders an HTML file as-is; the cache key is derived from its path."""

    def __init__(self, path: Path | str, key: str | None = None) -> None:
        self._path = Path(path).expanduser()
        self._key = key

    @property
    def cache_key(self) -> str:
        return self._key or f"html-document:{self._path.resolve()}"

    @property
    def label(self) -> str:
        return f"HtmlDocument={self._path.name}"

    def load(self) -> HtmlSnapshot:
        return HtmlSnapshot(
            path=self._path,
            html=self._path.read_text(encoding="utf-8"),
            fingerprint=compute_file_fingerprint(self._path),
        )

    def fingerprint(self, snapshot: HtmlSnapshot) -> str:
        return snapshot.fingerprint

    def render_html(self, snapshot: HtmlSnapshot) -> str:
        return snapshot.html
