"""Attempt session manager: state reads, versioned autosave and exactly-once submit.

Concurrency is handled entirely by conditional UPDATEs. A save only lands with
``WHERE version = expected AND completion_status = 'in_progress'`` and a submit
only with ``WHERE completion_status = 'in_progress'``; a zero row count means
another writer got there first, and the row is re-read to report why.
"""
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from exam_app.models.attempt import ABANDONED, IN_PROGRESS, SUBMITTED, Attempt
from exam_app.models.exam import Exam, Question
from exam_app.schemas.attempt import (
    AttemptStateSchema,
    ExamSummarySchema,
    QuestionOutSchema,
    SubmitResponseSchema,
)
from exam_app.services.clock import as_utc, utcnow
from exam_app.services.errors import AttemptAbandoned, AttemptNotFound, AttemptSubmitted, VersionConflict

logger = logging.getLogger(__name__)

GradeHook = Callable[[str], Awaitable[Any]]


def order_questions(questions: list[Question], settings: dict | None, seed: str | None) -> list[Question]:
    """Display order: stored order, shuffled per attempt when the exam asks for it."""
    ordered = list(questions)
    if (settings or {}).get("randomize_questions") and seed:
        random.Random(seed).shuffle(ordered)
    return ordered


class AttemptSessionManager:
    """Lifecycle of attempts after entry. One instance per database session."""

    def __init__(self, db: AsyncSession, grade: GradeHook | None = None):
        self.db = db
        self._grade = grade

    # ---------- reads ----------

    async def _load(self, attempt_id: str) -> Attempt:
        result = await self.db.execute(
            select(Attempt)
            .where(Attempt.id == attempt_id)
            .execution_options(populate_existing=True)
        )
        attempt = result.scalar_one_or_none()
        if attempt is None:
            raise AttemptNotFound(attempt_id)
        return attempt

    async def _state_for(self, attempt: Attempt) -> AttemptStateSchema:
        exam = await self.db.get(Exam, attempt.exam_id)
        result = await self.db.execute(
            select(Question)
            .where(Question.exam_id == attempt.exam_id)
            .order_by(Question.order_index.is_(None), Question.order_index, Question.created_at)
        )
        questions = order_questions(list(result.scalars().all()), exam.settings, attempt.seed)
        return AttemptStateSchema(
            attempt_id=attempt.id,
            version=attempt.version,
            completion_status=attempt.completion_status,
            started_at=as_utc(attempt.started_at),
            submitted_at=as_utc(attempt.submitted_at),
            exam=ExamSummarySchema.model_validate(exam),
            questions=[QuestionOutSchema.model_validate(q) for q in questions],
            answers=dict(attempt.answers or {}),
            auto_save_data=dict(attempt.auto_save_data or {}),
        )

    async def get_state(self, attempt_id: str) -> AttemptStateSchema:
        """Exam summary, display-ordered questions, answers, auto_save_data and version."""
        attempt = await self._load(attempt_id)
        return await self._state_for(attempt)

    @staticmethod
    def _ensure_open(attempt: Attempt) -> None:
        if attempt.completion_status == SUBMITTED or attempt.submitted_at is not None:
            raise AttemptSubmitted(attempt.id)
        if attempt.completion_status == ABANDONED:
            raise AttemptAbandoned(attempt.id)

    # ---------- writes ----------

    async def save(
        self,
        attempt_id: str,
        answers: dict[str, Any] | None,
        auto_save_data: dict[str, Any] | None,
        expected_version: int,
    ) -> int:
        """Merge answers key-by-key, replace auto_save_data, bump version; return the new version.

        Raises AttemptNotFound, AttemptSubmitted / AttemptAbandoned (checked before the
        version), or VersionConflict with the latest state.
        """
        attempt = await self._load(attempt_id)
        self._ensure_open(attempt)
        if attempt.version != expected_version:
            logger.info(
                "save conflict attempt=%s expected=%s current=%s", attempt_id, expected_version, attempt.version
            )
            raise VersionConflict(attempt_id, await self._state_for(attempt))

        merged = dict(attempt.answers or {})
        merged.update(answers or {})
        new_version = expected_version + 1

        result = await self.db.execute(
            update(Attempt)
            .where(
                Attempt.id == attempt_id,
                Attempt.version == expected_version,
                Attempt.completion_status == IN_PROGRESS,
            )
            .values(
                answers=merged,
                auto_save_data=dict(auto_save_data or {}),
                version=new_version,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # another save or the submit won between our read and the write
            await self.db.rollback()
            attempt = await self._load(attempt_id)
            self._ensure_open(attempt)
            logger.info("save lost race attempt=%s expected=%s current=%s", attempt_id, expected_version, attempt.version)
            raise VersionConflict(attempt_id, await self._state_for(attempt))

        await self.db.commit()
        logger.debug("saved attempt=%s version=%s keys=%d", attempt_id, new_version, len(answers or {}))
        return new_version

    async def submit(self, attempt_id: str) -> SubmitResponseSchema:
        """Finalize the attempt once; repeated or racing calls get the stored submitted_at."""
        response, _won = await self.submit_once(attempt_id)
        return response

    async def submit_once(self, attempt_id: str) -> tuple[SubmitResponseSchema, bool]:
        """Like submit, also telling whether this call made the transition."""
        now = utcnow()
        result = await self.db.execute(
            update(Attempt)
            .where(Attempt.id == attempt_id, Attempt.completion_status == IN_PROGRESS)
            .values(completion_status=SUBMITTED, submitted_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            await self.db.commit()
            logger.info("attempt submitted attempt=%s", attempt_id)
            await self._run_grading(attempt_id)
            return SubmitResponseSchema(ok=True, submitted_at=now), True

        await self.db.rollback()
        attempt = await self._load(attempt_id)
        if attempt.completion_status == SUBMITTED:
            return SubmitResponseSchema(ok=True, submitted_at=as_utc(attempt.submitted_at)), False
        raise AttemptAbandoned(attempt_id)

    async def _run_grading(self, attempt_id: str) -> None:
        if self._grade is None:
            return
        try:
            await self._grade(attempt_id)
        except Exception:
            # the attempt stays submitted; grade_pending picks it up later
            await self.db.rollback()
            logger.exception("grading failed attempt=%s", attempt_id)
