# src/render/options.py — v1
"""HTML-to-PDF rendering options and their wkhtmltopdf command-line form."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from reportcache.config.settings import Settings


class RenderOptions(BaseModel):
    """Page geometry, resolution, media emulation and time limit."""

    page_size: str = "Letter"
    orientation: Literal["Portrait", "Landscape"] = "Landscape"
    dpi: int = Field(default=96, ge=72, le=600)
    margin_mm: int = Field(default=10, ge=0)
    print_media_type: bool = True
    timeout_seconds: float = Field(default=60.0, gt=0)
    extra_args: list[str] = Field(default_factory=list)

    @classmethod
    def from_settings(cls, settings: Settings) -> RenderOptions:
        return cls(
            page_size=settings.render_page_size,
            orientation=settings.render_orientation,
            dpi=settings.render_dpi,
            margin_mm=settings.render_margin_mm,
            print_media_type=settings.render_print_media_type,
            timeout_seconds=settings.render_timeout_seconds,
        )

    def to_args(self) -> list[str]:
        """Build the wkhtmltopdf flags for these options."""
        margin = f"{self.margin_mm}mm"
        args = [
            "--quiet",
            "--encoding", "utf-8",
            "--page-size", self.page_size,
            "--orientation", self.orientation,
            "--dpi", str(self.dpi),
            "--margin-top", margin,
            "--margin-bottom", margin,
            "--margin-left", margin,
            "--margin-right", margin,
        ]
        args.append("--print-media-type" if self.print_media_type else "--no-print-media-type")
        args.extend(self.extra_args)
        return args
