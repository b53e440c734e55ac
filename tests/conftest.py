# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides a controllable clock, a fake converter, an in-memory report
repository, sample records and temp directories. No external binaries —
wkhtmltopdf is always faked.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from reportcache.cache.disk_cache import DiskCache
from reportcache.render.base_converter import BaseConverter, ConversionError
from reportcache.render.composite_report import ReportRepository
from reportcache.render.models import (
    CategoryRecord,
    EvidenceRecord,
    FeedbackRecord,
    QuestionResponseRecord,
    SurveyRecord,
    SurveyResponseRecord,
    UserStamp,
)

T0 = datetime(2026, 2, 7, 14, 0, 0, tzinfo=timezone.utc)


# === HELPERS ===


class FakeClock:
    """Epoch-seconds clock advanced explicitly by tests."""

    def __init__(self, start: float = 1_770_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeConverter(BaseConverter):
    """Writes ``b"%PDF-" + html`` to the output path, or fails on demand."""

    def __init__(self, available: bool = True, fail_with: Exception | None = None) -> None:
        self.available = available
        self.fail_with = fail_with
        self.calls: list[tuple[str, Path, float | None]] = []

    def is_available(self) -> bool:
        return self.available

    def convert(self, html: str, output_path: Path, timeout: float | None = None) -> Path:
        self.calls.append((html, output_path, timeout))
        if self.fail_with is not None:
            # Leave a partial file behind, like a crashed renderer would.
            output_path.write_bytes(b"%PDF-partial")
            raise self.fail_with
        output_path.write_bytes(b"%PDF-" + html.encode("utf-8"))
        return output_path


class InMemoryRepository(ReportRepository):
    """Mutable record store backing CompositeReport in tests."""

    def __init__(self) -> None:
        self.response = SurveyResponseRecord(
            id=42, student_id=7, survey_id=3, advisor_id=9, status="submitted",
        )
        self.student: UserStamp | None = UserStamp(
            id=7, name="Ada Student", updated_at=T0, user_updated_at=T0,
        )
        self.advisor: UserStamp | None = UserStamp(
            id=9, name="Grace Advisor", updated_at=T0, user_updated_at=T0,
        )
        self.survey: SurveyRecord | None = SurveyRecord(
            id=3,
            title="Competency Survey",
            updated_at=T0,
            categories=[
                CategoryRecord(id=1, name="Leadership", question_ids=[11, 12]),
                CategoryRecord(id=2, name="Teamwork", question_ids=[21]),
            ],
        )
        self.question_responses = [
            QuestionResponseRecord(id=101, question_id=11, answer="Yes", created_at=T0, updated_at=T0),
            QuestionResponseRecord(id=102, question_id=12, answer="", created_at=T0, updated_at=T0),
        ]
        self.feedback = [
            FeedbackRecord(id=501, category_id=1, advisor_id=9, average_score=4.0,
                           comments="Strong", created_at=T0, updated_at=T0),
            FeedbackRecord(id=502, category_id=1, advisor_id=8, average_score=2.0,
                           comments="Other advisor", created_at=T0, updated_at=T0),
        ]
        self.evidence: list[EvidenceRecord] = []
        self.calls: dict[str, int] = {}

    def _count(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1

    def get_response(self, response_id):
        self._count("get_response")
        return self.response

    def get_student(self, student_id):
        self._count("get_student")
        return self.student

    def get_advisor(self, advisor_id):
        self._count("get_advisor")
        return self.advisor

    def get_survey(self, survey_id):
        self._count("get_survey")
        return self.survey

    def list_question_responses(self, response_id):
        self._count("list_question_responses")
        return list(self.question_responses)

    def list_feedback(self, student_id, survey_id, advisor_id=None):
        self._count("list_feedback")
        return [f for f in self.feedback if advisor_id is None or f.advisor_id == advisor_id]

    def list_evidence(self, response_id):
        self._count("list_evidence")
        return list(self.evidence)


# === FIXTURES ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Temporary cache directory."""
    cache = tmp_path / "cache"
    cache.mkdir()
    return cache


@pytest.fixture
def tmp_work_dir(tmp_path: Path) -> Path:
    """Directory for intermediate render files."""
    work = tmp_path / "work"
    work.mkdir()
    return work


@pytest.fixture
def disk_cache(tmp_cache_dir: Path, clock: FakeClock) -> DiskCache:
    return DiskCache(root=tmp_cache_dir, max_entries=5, max_bytes=10_000, clock=clock)


@pytest.fixture
def fake_converter() -> FakeConverter:
    return FakeConverter()


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def make_artifact(tmp_path: Path):
    """Factory writing ``content`` to a fresh file outside the cache."""
    counter = {"n": 0}

    def _make(content: bytes | str) -> Path:
        counter["n"] += 1
        src = tmp_path / "src"
        src.mkdir(exist_ok=True)
        path = src / f"artifact-{counter['n']}.pdf"
        path.write_bytes(content.encode("utf-8") if isinstance(content, str) else content)
        return path

    return _make
