# src/render/models.py — v1
"""Render domain models: source records, fingerprint inputs, view model.

Records are plain snapshots of what the data-gathering collaborator loaded;
this package never talks to a database itself.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# === SOURCE RECORDS ===


class UserStamp(BaseModel):
    """Identity and freshness of a person (student or advisor)."""

    id: int | str
    name: str = ""
    updated_at: datetime | None = None
    user_updated_at: datetime | None = None


class CategoryRecord(BaseModel):
    id: int | str
    name: str
    question_ids: list[int | str] = Field(default_factory=list)


class SurveyRecord(BaseModel):
    id: int | str
    title: str = ""
    updated_at: datetime | None = None
    categories: list[CategoryRecord] = Field(default_factory=list)


class SurveyResponseRecord(BaseModel):
    """The response a composite report is built for."""

    id: int | str
    student_id: int | str
    survey_id: int | str
    advisor_id: int | str | None = None
    status: str | None = None
    completion_date: datetime | None = None


class QuestionResponseRecord(BaseModel):
    id: int | str
    question_id: int | str
    answer: Any = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FeedbackRecord(BaseModel):
    id: int
    category_id: int | str | None = None
    advisor_id: int | str | None = None
    average_score: float | None = None
    comments: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def sort_time(self) -> datetime | None:
        return self.updated_at or self.created_at


class EvidenceRecord(BaseModel):
    category_id: int | str
    link: str
    status: str | None = None
    created_at: datetime | None = None


# === FINGERPRINT INPUTS ===


class RecordStamp(BaseModel):
    """Identity plus timestamps of one record in a dependent collection."""

    id: int | str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReportSources(BaseModel):
    """Everything whose change would change the rendered composite report."""

    student_id: int | str
    student: UserStamp | None = None
    survey: SurveyRecord | None = None
    advisor: UserStamp | None = None
    responses: list[RecordStamp] = Field(default_factory=list)
    feedback: list[RecordStamp] = Field(default_factory=list)
    status: str | None = None
    completion_date: datetime | None = None


# === VIEW MODEL ===


class FeedbackSummary(BaseModel):
    total_entries: int = 0
    scored_entries: int = 0
    average_score: float | None = None
    latest_feedback_at: datetime | None = None


class CompositeReportView(BaseModel):
    """Assigns handed to the HTML template."""

    response: SurveyResponseRecord
    student: UserStamp | None = None
    advisor: UserStamp | None = None
    survey: SurveyRecord | None = None
    categories: list[CategoryRecord] = Field(default_factory=list)
    responses_by_question: dict[str, QuestionResponseRecord] = Field(default_factory=dict)
    feedbacks_by_category: dict[str, list[FeedbackRecord]] = Field(default_factory=dict)
    feedback_summary: FeedbackSummary = Field(default_factory=FeedbackSummary)
    evidence_history_by_category: dict[str, list[EvidenceRecord]] = Field(default_factory=dict)
    answered_count: int = 0
    total_questions: int = 0
    generated_at: datetime

