"""Entry route: start an attempt for an exam."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from exam_app.db.session import get_db
from exam_app.schemas.entry import StartAttemptOutSchema, StartAttemptSchema
from exam_app.services.entry import start_attempt

router = APIRouter(prefix="/api/exams", tags=["exams"])


def client_ip(request: Request) -> str | None:
    """First hop of X-Forwarded-For when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


@router.post("/{exam_id}/start", response_model=StartAttemptOutSchema)
async def start(
    exam_id: str,
    body: StartAttemptSchema,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    attempt_id, seed = await start_attempt(
        db,
        exam_id,
        code=body.code,
        student_name=body.student_name,
        ip=client_ip(request),
    )
    return StartAttemptOutSchema(attempt_id=attempt_id, seed=seed)
