# src/render/tempfiles.py — v1
"""Scoped ownership of temporary artifact files.

TemporaryArtifact reserves a file path on entry and deletes whatever is left
at that path on exit, whether the block returns normally or raises. A file
moved away by the cache is simply gone by then; a file handed to the caller
is detached first and released later through the returned callback.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

TEMP_PREFIX = "reportcache-"


class TemporaryArtifact:
    """Context manager owning one temporary file path."""

    def __init__(
        self,
        suffix: str = ".pdf",
        directory: Path | str | None = None,
        prefix: str = TEMP_PREFIX,
    ) -> None:
        self._suffix = suffix
        self._directory = Path(directory).expanduser() if directory else None
        self._prefix = prefix
        self._path: Path | None = None
        self._detached = False

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("TemporaryArtifact used outside its context")
        return self._path

    def __enter__(self) -> TemporaryArtifact:
        if self._directory is not None:
            self._directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            suffix=self._suffix,
            prefix=self._prefix,
            dir=str(self._directory) if self._directory else None,
        )
        os.close(fd)
        self._path = Path(name)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._detached:
            self.discard()

    def detach(self) -> Callable[[], None]:
        """Hand ownership of the file to the caller.

        Returns:
            Callback that deletes the file when invoked.
        """
        path = self.path
        self._detached = True
        return lambda: _unlink_quietly(path)

    def discard(self) -> None:
        """Delete the file if it still exists."""
        if self._path is not None:
            _unlink_quietly(self._path)


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Cannot remove temporary artifact %s: %s", path, e)
