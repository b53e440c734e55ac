# src/render/wkhtmltopdf_converter.py — v1
"""wkhtmltopdf-backed converter.

The binary is resolved from, in order: the explicit path, WKHTMLTOPDF_PATH,
the PATH, then a few well-known install locations. When none exists the
converter reports itself unavailable and the pipeline fails fast.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from reportcache.config.settings import Settings
from reportcache.render.base_converter import BaseConverter, ConversionError
from reportcache.render.options import RenderOptions

logger = logging.getLogger(__name__)

ENV_VAR = "WKHTMLTOPDF_PATH"
FALLBACK_PATHS = (
    "/usr/local/bin/wkhtmltopdf",
    "/usr/bin/wkhtmltopdf",
    "/app/bin/wkhtmltopdf",
)
STDERR_LIMIT = 2000


def resolve_executable(explicit: str | Path | None = None) -> Path | None:
    """Locate the wkhtmltopdf binary, or None when it is not installed."""
    candidates: list[str] = []
    if explicit:
        candidates.append(str(explicit))
    env_path = os.environ.get(ENV_VAR, "").strip()
    if env_path:
        candidates.append(env_path)
    on_path = shutil.which("wkhtmltopdf")
    if on_path:
        candidates.append(on_path)
    candidates.extend(FALLBACK_PATHS)

    for candidate in candidates:
        path = Path(candidate).expanduser()
        if path.is_file() and os.access(path, os.X_OK):
            return path
    return None


class WkhtmltopdfConverter(BaseConverter):
    """Run wkhtmltopdf as a subprocess, feeding the HTML on stdin."""

    def __init__(
        self,
        executable: str | Path | None = None,
        options: RenderOptions | None = None,
    ) -> None:
        self._options = options or RenderOptions()
        self._executable = resolve_executable(executable)
        if self._executable is None:
            logger.warning(
                "wkhtmltopdf executable not found; PDF rendering will fail until configured"
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> WkhtmltopdfConverter:
        return cls(
            executable=settings.wkhtmltopdf_path or None,
            options=RenderOptions.from_settings(settings),
        )

    @property
    def executable(self) -> Path | None:
        return self._executable

    @property
    def options(self) -> RenderOptions:
        return self._options

    def is_available(self) -> bool:
        return self._executable is not None

    def convert(self, html: str, output_path: Path, timeout: float | None = None) -> Path:
        if self._executable is None:
            raise ConversionError("wkhtmltopdf executable not configured")

        command = [str(self._executable), *self._options.to_args(), "-", str(output_path)]
        limit = self._options.timeout_seconds
        if timeout is not None:
            limit = min(limit, timeout)
        logger.debug("Running %s (timeout=%.1fs)", command[0], limit)

        try:
            proc = subprocess.run(
                command,
                input=html.encode("utf-8"),
                capture_output=True,
                timeout=limit,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ConversionError(f"wkhtmltopdf timed out after {limit:.1f}s") from e
        stderr = proc.stderr.decode("utf-8", errors="replace")[:STDERR_LIMIT]
        if proc.returncode != 0:
            raise ConversionError(
                f"wkhtmltopdf exited with status {proc.returncode}: {stderr.strip()}"
            )
        if not output_path.is_file() or output_path.stat().st_size == 0:
            raise ConversionError(f"wkhtmltopdf produced no output: {stderr.strip()}")
        return output_path
