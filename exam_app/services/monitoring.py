"""Admin views over attempts: per-exam listing and the live activity summary."""
from collections import defaultdict
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exam_app.models.attempt import IN_PROGRESS, Attempt
from exam_app.models.exam import Exam
from exam_app.models.result import ExamResult
from exam_app.models.student import Student
from exam_app.schemas.admin import ActiveExamSummarySchema, AttemptSummarySchema
from exam_app.services.clock import as_utc, utcnow

RECENT_WINDOW = timedelta(hours=1)


async def list_exam_attempts(db: AsyncSession, exam_id: str) -> list[AttemptSummarySchema]:
    """All attempts of an exam, newest first, with roster name and score when available."""
    result = await db.execute(
        select(Attempt, Student.student_name, Student.code, ExamResult.score_percentage, ExamResult.final_score_percentage)
        .outerjoin(Student, Student.id == Attempt.student_id)
        .outerjoin(ExamResult, ExamResult.attempt_id == Attempt.id)
        .where(Attempt.exam_id == exam_id)
        .order_by(Attempt.started_at.desc())
    )
    return [
        AttemptSummarySchema(
            id=a.id,
            exam_id=a.exam_id,
            started_at=as_utc(a.started_at),
            submitted_at=as_utc(a.submitted_at),
            completion_status=a.completion_status,
            ip_address=a.ip_address,
            student_name=roster_name or a.student_name,
            student_code=code,
            version=a.version,
            score_percentage=score,
            final_score_percentage=final,
        )
        for a, roster_name, code, score, final in result.all()
    ]


async def active_summary(db: AsyncSession, now: datetime | None = None) -> list[ActiveExamSummarySchema]:
    """Per published exam: in-progress count, submissions in the last hour, mean duration."""
    now = now or utcnow()
    rows = (
        await db.execute(
            select(Exam.id, Exam.title, Attempt.completion_status, Attempt.started_at, Attempt.submitted_at)
            .join(Attempt, Attempt.exam_id == Exam.id)
            .where(Exam.status == "published")
        )
    ).all()

    by_exam: dict[str, dict] = defaultdict(lambda: {"active": 0, "recent": 0, "durations": []})
    titles: dict[str, str] = {}
    for exam_id, title, status, started_at, submitted_at in rows:
        titles[exam_id] = title
        stats = by_exam[exam_id]
        if status == IN_PROGRESS:
            stats["active"] += 1
        submitted_at = as_utc(submitted_at)
        if submitted_at is not None and submitted_at > now - RECENT_WINDOW:
            stats["recent"] += 1
        end = submitted_at or now
        stats["durations"].append((end - as_utc(started_at)).total_seconds() / 60)

    summary = [
        ActiveExamSummarySchema(
            exam_id=exam_id,
            exam_title=titles[exam_id],
            active_count=stats["active"],
            recent_submissions=stats["recent"],
            avg_duration_minutes=round(sum(stats["durations"]) / len(stats["durations"]), 2),
        )
        for exam_id, stats in by_exam.items()
    ]
    summary.sort(key=lambda s: (s.active_count, s.recent_submissions), reverse=True)
    return summary
