# src/render/base_converter.py — v1
"""Abstract HTML-to-binary converter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class ConversionError(RuntimeError):
    """Raised when the converter fails or produces no usable output."""


class BaseConverter(ABC):
    """Turns an HTML document into a binary artifact on disk."""

    @abstractmethod
    def is_available(self) -> bool:
        """True when the underlying engine is installed and configured."""

    @abstractmethod
    def convert(self, html: str, output_path: Path, timeout: float | None = None) -> Path:
        """Render ``html`` into ``output_path``.

        Args:
            html: Complete HTML document.
            output_path: File to write (may already exist, empty).
            timeout: Upper bound in seconds; None uses the converter default.

        Returns:
            The path of the written artifact.

        Raises:
            ConversionError: If the engine fails or writes nothing.
        """

    @property
    def name(self) -> str:
        return type(self).__name__
