# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache limits, renderer options and logging.
Read once at process startup through load_settings() and passed explicitly
to the components that need it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Artifact cache ===
    cache_enabled: bool = True
    cache_root: Path = Path("~/.reportcache/artifacts")
    cache_max_entries: int = 50
    cache_max_bytes: int = 250 * 1024 * 1024
    composite_report_ttl_seconds: int = 6 * 60 * 60
    temp_dir: Path | None = None

    # === Renderer (wkhtmltopdf) ===
    wkhtmltopdf_path: str = ""
    render_page_size: str = "Letter"
    render_orientation: Literal["Portrait", "Landscape"] = "Landscape"
    render_dpi: int = 96
    render_margin_mm: int = 10
    render_print_media_type: bool = True
    render_timeout_seconds: float = 60.0

    # === Report payload shaping ===
    max_evidence_history: int = 5

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("composite_report_ttl_seconds", "max_evidence_history")
    @classmethod
    def validate_non_negative(cls, v: int, info) -> int:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules C-01 to C-04."""
        errors: list[str] = []

        # C-01
        if self.cache_max_entries < 1:
            errors.append("CACHE_MAX_ENTRIES must be >= 1")

        # C-02
        if self.cache_max_bytes <= 0:
            errors.append("CACHE_MAX_BYTES must be > 0")

        # C-03
        if not 72 <= self.render_dpi <= 600:
            errors.append("RENDER_DPI must be between 72 and 600")

        # C-04
        if self.render_timeout_seconds <= 0:
            errors.append("RENDER_TIMEOUT_SECONDS must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def composite_report_ttl(self) -> int | None:
        """TTL passed to the cache; 0 disables TTL expiry."""
        return self.composite_report_ttl_seconds or None


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-process config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
