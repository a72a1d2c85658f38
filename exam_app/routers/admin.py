"""Admin routes: monitoring, manual grading and maintenance sweeps."""
from functools import partial
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from exam_app.core.config import get_settings
from exam_app.core.security import require_admin
from exam_app.db.session import get_db
from exam_app.schemas.admin import (
    ActiveExamSummarySchema,
    ActivityEventSchema,
    AttemptSummarySchema,
    ExamResultSchema,
    ManualGradeSchema,
    SweepResultSchema,
)
from exam_app.services.activity import list_activity
from exam_app.services.grading import grade_attempt, grade_pending, set_manual_grade
from exam_app.services.monitoring import active_summary, list_exam_attempts
from exam_app.services.sweeps import auto_submit_expired, mark_abandoned

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/exams/{exam_id}/attempts", response_model=list[AttemptSummarySchema])
async def exam_attempts(exam_id: str, db: Annotated[AsyncSession, Depends(get_db)]):
    return await list_exam_attempts(db, exam_id)


@router.get("/attempts/active", response_model=list[ActiveExamSummarySchema])
async def attempts_active(db: Annotated[AsyncSession, Depends(get_db)]):
    return await active_summary(db)


@router.get("/attempts/{attempt_id}/activity", response_model=list[ActivityEventSchema])
async def attempt_activity(attempt_id: str, db: Annotated[AsyncSession, Depends(get_db)]):
    events = await list_activity(db, attempt_id)
    return [
        ActivityEventSchema(event_type=e.event_type, event_time=e.event_time, payload=e.payload)
        for e in events
    ]


@router.post("/attempts/{attempt_id}/grades", response_model=ExamResultSchema)
async def manual_grade(
    attempt_id: str,
    body: ManualGradeSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[dict, Depends(require_admin)],
):
    """Award points for a paragraph/photo question and recalculate the result."""
    try:
        result = await set_manual_grade(
            db,
            attempt_id,
            body.question_id,
            body.awarded_points,
            notes=body.notes,
            graded_by=claims.get("email") or claims.get("sub"),
        )
    except LookupError:
        raise HTTPException(status_code=404, detail="Question not found in this exam")
    return ExamResultSchema.model_validate(result)


@router.post("/sweeps/expired", response_model=SweepResultSchema)
async def sweep_expired(db: Annotated[AsyncSession, Depends(get_db)]):
    """Auto-submit attempts past their deadline, grading inline."""
    count = await auto_submit_expired(db, grade=partial(grade_attempt, db))
    return SweepResultSchema(count=count)


@router.post("/sweeps/abandoned", response_model=SweepResultSchema)
async def sweep_abandoned(db: Annotated[AsyncSession, Depends(get_db)]):
    count = await mark_abandoned(db, get_settings().abandon_after_minutes)
    return SweepResultSchema(count=count)


@router.post("/sweeps/grading", response_model=SweepResultSchema)
async def sweep_grading(db: Annotated[AsyncSession, Depends(get_db)]):
    """Retry grading for submitted attempts without a result."""
    count = await grade_pending(db)
    return SweepResultSchema(count=count)
