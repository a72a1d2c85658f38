"""Periodic maintenance over in-progress attempts."""
import logging
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from exam_app.models.attempt import ABANDONED, IN_PROGRESS, Attempt
from exam_app.models.exam import Exam
from exam_app.services.attempts import AttemptSessionManager, GradeHook
from exam_app.services.clock import as_utc, utcnow
from exam_app.services.errors import AttemptError

logger = logging.getLogger(__name__)


def is_expired(started_at: datetime, duration_minutes: int | None, end_time: datetime | None, now: datetime) -> bool:
    if duration_minutes is not None and now >= as_utc(started_at) + timedelta(minutes=duration_minutes):
        return True
    return end_time is not None and now >= as_utc(end_time)


async def auto_submit_expired(db: AsyncSession, grade: GradeHook | None = None, now: datetime | None = None) -> int:
    """Submit in-progress attempts past their duration or the exam end time.

    Returns how many attempts this sweep moved to submitted; ones a concurrent
    caller submitted first are not counted.
    """
    now = now or utcnow()
    rows = (
        await db.execute(
            select(Attempt.id, Attempt.started_at, Exam.duration_minutes, Exam.end_time)
            .join(Exam, Exam.id == Attempt.exam_id)
            .where(Attempt.completion_status == IN_PROGRESS)
        )
    ).all()
    expired = [r.id for r in rows if is_expired(r.started_at, r.duration_minutes, r.end_time, now)]

    manager = AttemptSessionManager(db, grade=grade)
    submitted = 0
    for attempt_id in expired:
        try:
            _response, won = await manager.submit_once(attempt_id)
        except AttemptError as exc:
            # abandoned or deleted meanwhile
            await db.rollback()
            logger.warning("auto-submit skipped attempt=%s reason=%s", attempt_id, exc.code)
            continue
        if won:
            submitted += 1
    if expired:
        logger.info("auto_submit_expired submitted=%d candidates=%d", submitted, len(expired))
    return submitted


async def mark_abandoned(db: AsyncSession, inactive_minutes: int, now: datetime | None = None) -> int:
    """Mark in-progress attempts idle for inactive_minutes as abandoned."""
    cutoff = (now or utcnow()) - timedelta(minutes=inactive_minutes)
    result = await db.execute(
        update(Attempt)
        .where(Attempt.completion_status == IN_PROGRESS, Attempt.updated_at < cutoff)
        .values(completion_status=ABANDONED)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    count = result.rowcount or 0
    if count:
        logger.info("mark_abandoned count=%d cutoff=%s", count, cutoff.isoformat())
    return count
