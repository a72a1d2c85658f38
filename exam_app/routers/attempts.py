"""Attempt routes used by the exam page: state, autosave, submit, activity."""
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from exam_app.db.session import get_db, get_session_factory
from exam_app.schemas.admin import ActivityBatchOutSchema, ActivityBatchSchema
from exam_app.schemas.attempt import (
    AttemptStateSchema,
    SaveRequestSchema,
    SaveResponseSchema,
    SubmitResponseSchema,
)
from exam_app.services.activity import log_activity
from exam_app.services.attempts import AttemptSessionManager
from exam_app.services.grading import grade_in_background

router = APIRouter(prefix="/api/attempts", tags=["attempts"])


def get_attempt_manager(
    db: Annotated[AsyncSession, Depends(get_db)],
    background_tasks: BackgroundTasks,
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> AttemptSessionManager:
    """Manager whose grading runs after the submit response is sent."""

    async def grade_after_response(attempt_id: str) -> None:
        background_tasks.add_task(grade_in_background, session_factory, attempt_id)

    return AttemptSessionManager(db, grade=grade_after_response)


@router.get("/{attempt_id}/state", response_model=AttemptStateSchema)
async def get_state(
    attempt_id: str,
    manager: Annotated[AttemptSessionManager, Depends(get_attempt_manager)],
):
    """Authoritative state for (re)loading the exam page."""
    return await manager.get_state(attempt_id)


@router.patch("/{attempt_id}/save", response_model=SaveResponseSchema)
async def save_attempt(
    attempt_id: str,
    body: SaveRequestSchema,
    manager: Annotated[AttemptSessionManager, Depends(get_attempt_manager)],
):
    """Versioned autosave. 409 version_mismatch carries `latest` for reconciliation."""
    new_version = await manager.save(attempt_id, body.answers, body.auto_save_data, body.expected_version)
    return SaveResponseSchema(new_version=new_version)


@router.post("/{attempt_id}/submit", response_model=SubmitResponseSchema)
async def submit_attempt(
    attempt_id: str,
    manager: Annotated[AttemptSessionManager, Depends(get_attempt_manager)],
):
    """Idempotent submit; grading is scheduled, never awaited."""
    return await manager.submit(attempt_id)


@router.post("/{attempt_id}/activity", response_model=ActivityBatchOutSchema)
async def post_activity(
    attempt_id: str,
    body: ActivityBatchSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    inserted = await log_activity(db, attempt_id, body.events)
    return ActivityBatchOutSchema(inserted_count=inserted)
