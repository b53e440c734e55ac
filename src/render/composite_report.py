# src/render/composite_report.py — v1
"""Composite assessment report: student answers merged with advisor feedback.

CompositeReport pulls its records through a ReportRepository exactly once per
render call (load()), then derives both the fingerprint inputs and the view
model from that snapshot.
"""

from __future__ import annotations

import html
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from reportcache.cache.fingerprint import compute_report_fingerprint
from reportcache.render.base_renderable import BaseRenderable
from reportcache.render.models import (
    CompositeReportView,
    EvidenceRecord,
    FeedbackRecord,
    FeedbackSummary,
    QuestionResponseRecord,
    RecordStamp,
    ReportSources,
    SurveyRecord,
    SurveyResponseRecord,
    UserStamp,
)

DEFAULT_MAX_EVIDENCE_HISTORY = 5
CACHE_KEY_PREFIX = "composite-report"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ReportRepository(ABC):
    """Data-gathering collaborator supplying the report's records."""

    @abstractmethod
    def get_response(self, response_id: int | str) -> SurveyResponseRecord:
        """Load the survey response; raises if it does not exist."""

    @abstractmethod
    def get_student(self, student_id: int | str) -> UserStamp | None: ...

    @abstractmethod
    def get_advisor(self, advisor_id: int | str) -> UserStamp | None: ...

    @abstractmethod
    def get_survey(self, survey_id: int | str) -> SurveyRecord | None: ...

    @abstractmethod
    def list_question_responses(
        self, response_id: int | str
    ) -> list[QuestionResponseRecord]: ...

    @abstractmethod
    def list_feedback(
        self,
        student_id: int | str,
        survey_id: int | str,
        advisor_id: int | str | None = None,
    ) -> list[FeedbackRecord]:
        """Feedback for the student on the survey, limited to ``advisor_id`` if set."""

    def list_evidence(self, response_id: int | str) -> list[EvidenceRecord]:
        return []


@dataclass
class CompositeReportSnapshot:
    """Records loaded for one render call."""

    response: SurveyResponseRecord
    student: UserStamp | None = None
    advisor: UserStamp | None = None
    survey: SurveyRecord | None = None
    question_responses: list[QuestionResponseRecord] = field(default_factory=list)
    feedback: list[FeedbackRecord] = field(default_factory=list)
    evidence: list[EvidenceRecord] = field(default_factory=list)

    def sources(self) -> ReportSources:
        return ReportSources(
            student_id=self.response.student_id,
            student=self.student,
            survey=self.survey,
            advisor=self.advisor,
            responses=[
                RecordStamp(id=r.id, created_at=r.created_at, updated_at=r.updated_at)
                for r in self.question_responses
            ],
            feedback=[
                RecordStamp(id=f.id, created_at=f.created_at, updated_at=f.updated_at)
                for f in self.feedback
            ],
            status=self.response.status,
            completion_date=self.response.completion_date,
        )


Template = Callable[[CompositeReportView], str]


class CompositeReport(BaseRenderable):
    """Renderable composite report for one survey response.

    Args:
        response_id: Survey response the report is built for.
        repository: Source of the underlying records.
        template: Turns the view model into HTML.
        max_evidence_history: Evidence entries kept per category.
    """

    def __init__(
        self,
        response_id: int | str,
        repository: ReportRepository,
        template: Template | None = None,
        max_evidence_history: int = DEFAULT_MAX_EVIDENCE_HISTORY,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._response_id = response_id
        self._repository = repository
        self._template = template or default_template
        self._max_evidence_history = max_evidence_history
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def cache_key(self) -> str:
        return f"{CACHE_KEY_PREFIX}:{self._response_id}"

    @property
    def label(self) -> str:
        return f"SurveyResponse={self._response_id}"

    def load(self) -> CompositeReportSnapshot:
        repo = self._repository
        response = repo.get_response(self._response_id)
        advisor = repo.get_advisor(response.advisor_id) if response.advisor_id is not None else None
        return CompositeReportSnapshot(
            response=response,
            student=repo.get_student(response.student_id),
            advisor=advisor,
            survey=repo.get_survey(response.survey_id),
            question_responses=list(repo.list_question_responses(response.id)),
            feedback=list(
                repo.list_feedback(
                    response.student_id,
                    response.survey_id,
                    advisor.id if advisor is not None else None,
                )
            ),
            evidence=list(repo.list_evidence(response.id)),
        )

    def fingerprint(self, snapshot: CompositeReportSnapshot) -> str:
        return compute_report_fingerprint(snapshot.sources())

    def build_view(self, snapshot: CompositeReportSnapshot) -> CompositeReportView:
        survey = snapshot.survey
        categories = sorted(survey.categories, key=lambda c: str(c.id)) if survey else []
        total_questions = sum(len(c.question_ids) for c in categories)
        return CompositeReportView(
            response=snapshot.response,
            student=snapshot.student,
            advisor=snapshot.advisor,
            survey=survey,
            categories=categories,
            responses_by_question={
                str(r.question_id): r for r in snapshot.question_responses
            },
            feedbacks_by_category=group_feedback(snapshot.feedback),
            feedback_summary=summarize_feedback(snapshot.feedback),
            evidence_history_by_category=limit_evidence(
                snapshot.evidence, self._max_evidence_history
            ),
            answered_count=sum(
                1 for r in snapshot.question_responses if _is_answered(r.answer)
            ),
            total_questions=total_questions or len(snapshot.question_responses),
            generated_at=self._clock(),
        )

    def render_html(self, snapshot: CompositeReportSnapshot) -> str:
        return self._template(self.build_view(snapshot))


# --- View shaping ---


def group_feedback(entries: list[FeedbackRecord]) -> dict[str, list[FeedbackRecord]]:
    """Group feedback by category, newest first within each group."""
    grouped: dict[str, list[FeedbackRecord]] = defaultdict(list)
    for entry in entries:
        grouped[str(entry.category_id)].append(entry)
    return {
        category: sorted(items, key=_feedback_time, reverse=True)
        for category, items in grouped.items()
    }


def summarize_feedback(entries: list[FeedbackRecord]) -> FeedbackSummary:
    scores = [float(e.average_score) for e in entries if e.average_score is not None]
    times = [_as_aware(e.sort_time) for e in entries if e.sort_time is not None]
    return FeedbackSummary(
        total_entries=len(entries),
        scored_entries=len(scores),
        average_score=round(sum(scores) / len(scores), 2) if scores else None,
        latest_feedback_at=max(times) if times else None,
    )


def limit_evidence(
    entries: list[EvidenceRecord], max_per_category: int
) -> dict[str, list[EvidenceRecord]]:
    """Keep the ``max_per_category`` newest evidence entries per category."""
    grouped: dict[str, list[EvidenceRecord]] = defaultdict(list)
    for entry in entries:
        grouped[str(entry.category_id)].append(entry)
    return {
        category: sorted(
            items, key=lambda e: _as_aware(e.created_at or _EPOCH), reverse=True
        )[:max_per_category]
        for category, items in grouped.items()
    }


def _feedback_time(entry: FeedbackRecord) -> datetime:
    return _as_aware(entry.sort_time or _EPOCH)


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _is_answered(answer: object) -> bool:
    if answer is None:
        return False
    if isinstance(answer, str):
        return bool(answer.strip())
    return True


# --- Default template ---


def default_template(view: CompositeReportView) -> str:
    """Minimal printable HTML; real deployments inject their own template."""
    esc = html.escape
    title = view.survey.title if view.survey else "Assessment"
    student = view.student.name if view.student else str(view.response.student_id)
    advisor = view.advisor.name if view.advisor else "Unassigned"

    sections: list[str] = []
    for category in view.categories:
        rows = []
        for question_id in category.question_ids:
            response = view.responses_by_question.get(str(question_id))
            answer = "" if response is None or response.answer is None else str(response.answer)
            rows.append(f"<tr><td>{esc(str(question_id))}</td><td>{esc(answer)}</td></tr>")
        feedback = "".join(
            f"<li>{esc(f.comments)}</li>"
            for f in view.feedbacks_by_category.get(str(category.id), [])
        )
        sections.append(
            f"<section><h2>{esc(category.name)}</h2>"
            f"<table>{''.join(rows)}</table><ul>{feedback}</ul></section>"
        )

    summary = view.feedback_summary
    average = "n/a" if summary.average_score is None else f"{summary.average_score:.2f}"
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{esc(title)}</title></head><body>"
        f"<h1>{esc(title)}</h1>"
        f"<p>Student: {esc(student)} | Advisor: {esc(advisor)}</p>"
        f"<p>Answered {view.answered_count} of {view.total_questions} | "
        f"Feedback entries: {summary.total_entries} | Average score: {average}</p>"
        f"{''.join(sections)}"
        f"<footer>Generated {esc(view.generated_at.isoformat())}</footer>"
        "</body></html>"
    )
