"""Result calculation for submitted attempts; manual grades for free-text questions."""
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from exam_app.models.attempt import SUBMITTED, Attempt
from exam_app.models.exam import CHOICE_TYPES, MANUAL_TYPES, MULTI_TYPES, Question
from exam_app.models.result import ExamResult, ManualGrade
from exam_app.services.clock import utcnow
from exam_app.services.errors import AttemptNotFound, AttemptNotSubmitted

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def is_correct(question_type: str, correct_answers: Any, answer: Any) -> bool | None:
    """True/False for auto-graded types, None for manually graded ones."""
    if question_type in MANUAL_TYPES:
        return None
    if answer is None:
        return False
    if question_type in CHOICE_TYPES:
        expected = correct_answers
        if isinstance(expected, list) and len(expected) == 1:
            expected = expected[0]
        return answer == expected
    if question_type in MULTI_TYPES:
        # order-insensitive, compared as strings like the stored JSON text
        return sorted(map(str, _as_list(answer))) == sorted(map(str, _as_list(correct_answers)))
    return False


def compute_result(questions: list[Question], answers: dict, manual_points: dict[str, float]) -> dict:
    """Score numbers for one attempt. manual_points maps question id -> awarded points."""
    total = correct = 0
    max_points = auto_points = manual = 0.0
    for q in questions:
        points = float(q.points if q.points is not None else 1)
        max_points += points
        verdict = is_correct(q.question_type, q.correct_answers, answers.get(q.id))
        if verdict is None:
            if q.id in manual_points:
                manual += min(manual_points[q.id], points)
            continue
        total += 1
        if verdict:
            correct += 1
            auto_points += points

    score = round(correct * 100.0 / total, 2) if total else 0.0
    final = round((auto_points + manual) / max_points * 100.0, 2) if max_points else 0.0
    return {
        "total_questions": total,
        "correct_count": correct,
        "score_percentage": score,
        "auto_points": auto_points,
        "manual_points": manual,
        "max_points": max_points,
        "final_score_percentage": final,
    }


def _apply(result: ExamResult, numbers: dict) -> None:
    for key, value in numbers.items():
        setattr(result, key, value)
    result.calculated_at = utcnow()


async def grade_attempt(db: AsyncSession, attempt_id: str) -> ExamResult:
    """Calculate and upsert the result row for one attempt."""
    attempt = await db.get(Attempt, attempt_id, populate_existing=True)
    if attempt is None:
        raise AttemptNotFound(attempt_id)

    questions = (
        await db.execute(select(Question).where(Question.exam_id == attempt.exam_id))
    ).scalars().all()
    grades = (
        await db.execute(select(ManualGrade).where(ManualGrade.attempt_id == attempt_id))
    ).scalars().all()

    numbers = compute_result(
        list(questions),
        dict(attempt.answers or {}),
        {g.question_id: g.awarded_points for g in grades},
    )

    result = await db.get(ExamResult, attempt_id)
    if result is None:
        result = ExamResult(attempt_id=attempt_id)
        db.add(result)
    _apply(result, numbers)
    try:
        await db.commit()
    except IntegrityError:
        # another grader inserted the row first; update it instead
        await db.rollback()
        result = await db.get(ExamResult, attempt_id, populate_existing=True)
        if result is None:
            raise
        _apply(result, numbers)
        await db.commit()

    logger.info(
        "graded attempt=%s score=%s final=%s",
        attempt_id,
        numbers["score_percentage"],
        numbers["final_score_percentage"],
    )
    return result


async def grade_in_background(session_factory: async_sessionmaker[AsyncSession], attempt_id: str) -> None:
    """Grade in a fresh session after the submit response went out; failures are only logged."""
    try:
        async with session_factory() as db:
            await grade_attempt(db, attempt_id)
    except Exception:
        logger.exception("background grading failed attempt=%s", attempt_id)


async def grade_pending(db: AsyncSession) -> int:
    """Grade every submitted attempt that has no result yet. Returns how many were graded."""
    result = await db.execute(
        select(Attempt.id)
        .outerjoin(ExamResult, ExamResult.attempt_id == Attempt.id)
        .where(Attempt.completion_status == SUBMITTED, ExamResult.attempt_id.is_(None))
    )
    pending = list(result.scalars().all())
    graded = 0
    for attempt_id in pending:
        try:
            await grade_attempt(db, attempt_id)
            graded += 1
        except Exception:
            await db.rollback()
            logger.exception("grading retry failed attempt=%s", attempt_id)
    if pending:
        logger.info("grade_pending graded=%d pending=%d", graded, len(pending))
    return graded


async def set_manual_grade(
    db: AsyncSession,
    attempt_id: str,
    question_id: str,
    awarded_points: float,
    notes: str | None = None,
    graded_by: str | None = None,
) -> ExamResult:
    """Record points for a manually graded question and recalculate the result.

    Only submitted attempts are graded; the result of an in-progress attempt
    would be computed from answers that can still change.
    """
    attempt = await db.get(Attempt, attempt_id, populate_existing=True)
    if attempt is None:
        raise AttemptNotFound(attempt_id)
    question = await db.get(Question, question_id)
    if question is None or question.exam_id != attempt.exam_id:
        raise LookupError("question_not_in_exam")
    if attempt.completion_status != SUBMITTED:
        raise AttemptNotSubmitted(attempt_id)

    grade = await db.get(ManualGrade, (attempt_id, question_id))
    if grade is None:
        grade = ManualGrade(attempt_id=attempt_id, question_id=question_id)
        db.add(grade)
    grade.awarded_points = awarded_points
    grade.notes = notes
    grade.graded_by = graded_by
    grade.graded_at = utcnow()
    await db.commit()

    return await grade_attempt(db, attempt_id)
