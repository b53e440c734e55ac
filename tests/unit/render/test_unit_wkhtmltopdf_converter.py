# tests/unit/render/test_unit_wkhtmltopdf_converter.py — v1
"""Tests for render/wkhtmltopdf_converter.py — subprocess is always mocked."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from reportcache.config.settings import Settings
from reportcache.render.base_converter import ConversionError
from reportcache.render.options import RenderOptions
from reportcache.render.wkhtmltopdf_converter import (
    ENV_VAR,
    WkhtmltopdfConverter,
    resolve_executable,
)

_RUN = "reportcache.render.wkhtmltopdf_converter.subprocess.run"


@pytest.fixture
def fake_binary(tmp_path):
    binary = tmp_path / "bin" / "wkhtmltopdf"
    binary.parent.mkdir()
    binary.write_text("#!/bin/sh\nexit 0\n")
    binary.chmod(0o755)
    return binary


@pytest.fixture
def no_system_binary(monkeypatch):
    monkeypatch.delenv(ENV_VAR, raising=False)
    monkeypatch.setattr("reportcache.render.wkhtmltopdf_converter.shutil.which", lambda _: None)
    monkeypatch.setattr("reportcache.render.wkhtmltopdf_converter.FALLBACK_PATHS", ())


def _completed(returncode: int = 0, stderr: bytes = b"") -> MagicMock:
    return MagicMock(returncode=returncode, stderr=stderr, stdout=b"")


class TestResolveExecutable:
    def test_explicit_path(self, fake_binary, no_system_binary):
        assert resolve_executable(fake_binary) == fake_binary

    def test_env_var(self, fake_binary, no_system_binary, monkeypatch):
        monkeypatch.setenv(ENV_VAR, str(fake_binary))
        assert resolve_executable() == fake_binary

    def test_explicit_wins_over_env(self, fake_binary, tmp_path, no_system_binary, monkeypatch):
        other = tmp_path / "other"
        other.write_text("")
        other.chmod(0o755)
        monkeypatch.setenv(ENV_VAR, str(other))
        assert resolve_executable(fake_binary) == fake_binary

    def test_non_executable_skipped(self, tmp_path, no_system_binary):
        plain = tmp_path / "wkhtmltopdf"
        plain.write_text("")
        plain.chmod(0o644)
        assert resolve_executable(plain) is None

    def test_not_found(self, no_system_binary):
        assert resolve_executable("/nonexistent/wkhtmltopdf") is None


class TestAvailability:
    def test_available_with_binary(self, fake_binary, no_system_binary):
        converter = WkhtmltopdfConverter(fake_binary)
        assert converter.is_available()
        assert converter.executable == fake_binary
        assert converter.name == "WkhtmltopdfConverter"

    def test_unavailable_without_binary(self, no_system_binary):
        converter = WkhtmltopdfConverter()
        assert not converter.is_available()
        with pytest.raises(ConversionError, match="not configured"):
            converter.convert("<p/>", MagicMock())

    def test_from_settings(self, fake_binary, no_system_binary):
        settings = Settings(_env_file=None, wkhtmltopdf_path=str(fake_binary), render_dpi=150)
        converter = WkhtmltopdfConverter.from_settings(settings)
        assert converter.executable == fake_binary
        assert converter.options.dpi == 150


class TestConvert:
    def test_runs_binary_with_stdin(self, fake_binary, no_system_binary, tmp_path):
        output = tmp_path / "out.pdf"

        def run(command, **kwargs):
            output.write_bytes(b"%PDF-1.4")
            return _completed()

        converter = WkhtmltopdfConverter(fake_binary, RenderOptions(timeout_seconds=20))
        with patch(_RUN, side_effect=run) as mock_run:
            assert converter.convert("<p>hi</p>", output) == output

        command = mock_run.call_args.args[0]
        kwargs = mock_run.call_args.kwargs
        assert command[0] == str(fake_binary)
        assert command[-2:] == ["-", str(output)]
        assert "--page-size" in command
        assert kwargs["input"] == b"<p>hi</p>"
        assert kwargs["timeout"] == 20
        assert kwargs["check"] is False

    def test_timeout_is_min_of_option_and_caller(self, fake_binary, no_system_binary, tmp_path):
        output = tmp_path / "out.pdf"
        output.write_bytes(b"%PDF")
        converter = WkhtmltopdfConverter(fake_binary, RenderOptions(timeout_seconds=20))
        with patch(_RUN, return_value=_completed()) as mock_run:
            converter.convert("<p/>", output, timeout=3.5)
            assert mock_run.call_args.kwargs["timeout"] == 3.5
            converter.convert("<p/>", output, timeout=99)
            assert mock_run.call_args.kwargs["timeout"] == 20

    def test_nonzero_exit(self, fake_binary, no_system_binary, tmp_path):
        converter = WkhtmltopdfConverter(fake_binary)
        with patch(_RUN, return_value=_completed(1, b"Exit with code 1 due to network error")):
            with pytest.raises(ConversionError, match="status 1: Exit with code 1"):
                converter.convert("<p/>", tmp_path / "out.pdf")

    def test_empty_output(self, fake_binary, no_system_binary, tmp_path):
        output = tmp_path / "out.pdf"
        output.write_bytes(b"")
        converter = WkhtmltopdfConverter(fake_binary)
        with patch(_RUN, return_value=_completed()):
            with pytest.raises(ConversionError, match="no output"):
                converter.convert("<p/>", output)

    def test_subprocess_timeout(self, fake_binary, no_system_binary, tmp_path):
        converter = WkhtmltopdfConverter(fake_binary)
        with patch(_RUN, side_effect=subprocess.TimeoutExpired("wkhtmltopdf", 60)):
            with pytest.raises(ConversionError, match="timed out after 60.0s") as excinfo:
                converter.convert("<p/>", tmp_path / "out.pdf")
        assert isinstance(excinfo.value.__cause__, subprocess.TimeoutExpired)
