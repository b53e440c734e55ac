# tests/unit/logging/test_unit_handlers.py — v1
"""Tests for logging/handlers.py."""

from __future__ import annotations

import pytest

from reportcache.logging.handlers import create_rotating_handler, parse_size


class TestParseSize:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("10MB", 10 * 1024 * 1024),
            ("512KB", 512 * 1024),
            ("1gb", 1024**3),
            ("100B", 100),
            ("2048", 2048),
            (" 5 MB ", 5 * 1024 * 1024),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_size(text) == expected

    @pytest.mark.parametrize("text", ["", "ten MB", "10TB", "-1MB", "1.5MB"])
    def test_invalid(self, text):
        with pytest.raises(ValueError, match="Invalid size format"):
            parse_size(text)


class TestRotatingHandler:
    def test_creates_parent_directory(self, tmp_path):
        log_file = tmp_path / "logs" / "nested" / "reportcache.log"
        handler = create_rotating_handler(log_file, rotation="1KB", retention=3)
        try:
            assert log_file.parent.is_dir()
            assert handler.maxBytes == 1024
            assert handler.backupCount == 3
        finally:
            handler.close()
