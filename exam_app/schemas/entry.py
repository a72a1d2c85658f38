"""Pydantic schemas for exam entry."""
from pydantic import BaseModel, Field


class StartAttemptSchema(BaseModel):
    code: str | None = Field(default=None, max_length=64)
    student_name: str | None = Field(default=None, max_length=255)


class StartAttemptOutSchema(BaseModel):
    attempt_id: str
    seed: str
