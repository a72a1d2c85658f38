"""Pydantic schemas for attempt state, save and submit."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ExamSummarySchema(BaseModel):
    id: str
    title: str
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration_minutes: int | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    access_type: str

    class Config:
        from_attributes = True


class QuestionOutSchema(BaseModel):
    """Question as shown to the student (no correct answers)."""

    id: str
    question_text: str
    question_type: str
    options: Any = None
    points: int | None = None
    required: bool = False
    order_index: int | None = None
    question_image_url: str | None = None
    option_image_urls: Any = None

    class Config:
        from_attributes = True


class AttemptStateSchema(BaseModel):
    attempt_id: str
    version: int
    completion_status: str
    started_at: datetime | None = None
    submitted_at: datetime | None = None
    exam: ExamSummarySchema
    questions: list[QuestionOutSchema]
    answers: dict[str, Any] = Field(default_factory=dict)
    auto_save_data: dict[str, Any] = Field(default_factory=dict)


class SaveRequestSchema(BaseModel):
    answers: dict[str, Any] = Field(default_factory=dict)
    auto_save_data: dict[str, Any] = Field(default_factory=dict)
    expected_version: int = Field(ge=1)


class SaveResponseSchema(BaseModel):
    new_version: int


class SubmitResponseSchema(BaseModel):
    ok: bool = True
    submitted_at: datetime


class ClientConfigSchema(BaseModel):
    autosave_interval_seconds: int
    autosave_debounce_ms: int
