"""Pydantic schemas for activity logging, grading and monitoring."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ActivityEventSchema(BaseModel):
    event_type: str | None = None
    event_time: datetime | None = None
    payload: dict[str, Any] | None = None


class ActivityBatchSchema(BaseModel):
    events: list[ActivityEventSchema] = Field(default_factory=list)


class ActivityBatchOutSchema(BaseModel):
    inserted_count: int


class ManualGradeSchema(BaseModel):
    question_id: str
    awarded_points: float = Field(ge=0)
    notes: str | None = None


class ExamResultSchema(BaseModel):
    attempt_id: str
    total_questions: int
    correct_count: int
    score_percentage: float
    auto_points: float
    manual_points: float
    max_points: float
    final_score_percentage: float

    class Config:
        from_attributes = True


class AttemptSummarySchema(BaseModel):
    id: str
    exam_id: str
    started_at: datetime | None = None
    submitted_at: datetime | None = None
    completion_status: str
    ip_address: str | None = None
    student_name: str | None = None
    student_code: str | None = None
    version: int
    score_percentage: float | None = None
    final_score_percentage: float | None = None


class ActiveExamSummarySchema(BaseModel):
    exam_id: str
    exam_title: str
    active_count: int
    recent_submissions: int
    avg_duration_minutes: float | None = None


class SweepResultSchema(BaseModel):
    count: int
