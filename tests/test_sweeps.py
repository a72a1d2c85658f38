from datetime import timedelta

import pytest
from sqlalchemy import select

from exam_app.models.attempt import Attempt
from exam_app.models.result import ExamResult
from exam_app.models.student import Student
from exam_app.schemas.admin import ActivityEventSchema
from exam_app.services.activity import list_activity, log_activity
from exam_app.services.attempts import AttemptSessionManager
from exam_app.services.clock import utcnow
from exam_app.services.entry import start_attempt
from exam_app.services.errors import AttemptNotFound
from exam_app.services.grading import grade_attempt
from exam_app.services.monitoring import active_summary, list_exam_attempts
from exam_app.services.sweeps import auto_submit_expired, is_expired, mark_abandoned
from tests.conftest import create_exam

pytestmark = pytest.mark.anyio


def test_is_expired_by_duration_or_end_time():
    now = utcnow()
    started = now - timedelta(minutes=30)

    assert is_expired(started, 20, None, now)
    assert not is_expired(started, 45, None, now)
    assert is_expired(started, None, now - timedelta(seconds=1), now)
    assert not is_expired(started, None, None, now)


async def test_auto_submit_expired_submits_once(db, session_factory):
    exam = await create_exam(db, duration_minutes=30)
    expired_id, _ = await start_attempt(db, exam.id)
    graded = []

    async def grade(aid):
        graded.append(aid)

    later = utcnow() + timedelta(minutes=31)
    assert await auto_submit_expired(db, grade=grade, now=later) == 1
    assert await auto_submit_expired(db, grade=grade, now=later) == 0
    assert graded == [expired_id]

    state = await AttemptSessionManager(db).get_state(expired_id)
    assert state.completion_status == "submitted"


async def test_auto_submit_leaves_running_attempts(db, exam, attempt_id):
    assert await auto_submit_expired(db) == 0
    state = await AttemptSessionManager(db).get_state(attempt_id)
    assert state.completion_status == "in_progress"


async def test_mark_abandoned_skips_submitted(db, exam):
    running, _ = await start_attempt(db, exam.id)
    done, _ = await start_attempt(db, exam.id)
    await AttemptSessionManager(db).submit(done)

    assert await mark_abandoned(db, inactive_minutes=60, now=utcnow() + timedelta(hours=2)) == 1

    rows = dict((await db.execute(select(Attempt.id, Attempt.completion_status))).all())
    assert rows == {running: "abandoned", done: "submitted"}


async def test_mark_abandoned_respects_recent_activity(db, attempt_id):
    assert await mark_abandoned(db, inactive_minutes=60) == 0


async def test_activity_log_roundtrip(db, attempt_id):
    events = [
        ActivityEventSchema(event_type="focus_lost", payload={"tab": 2}),
        ActivityEventSchema(event_type="x" * 100),
        ActivityEventSchema(),
    ]
    assert await log_activity(db, attempt_id, events) == 3

    stored = await list_activity(db, attempt_id)
    types = sorted(e.event_type for e in stored)
    assert types == sorted(["focus_lost", "x" * 64, "unknown"])


async def test_activity_for_unknown_attempt(db):
    with pytest.raises(AttemptNotFound):
        await log_activity(db, "missing", [ActivityEventSchema(event_type="blur")])


async def test_monitoring_views(db, exam, attempt_id):
    other, _ = await start_attempt(db, exam.id, student_name="Sara")
    await AttemptSessionManager(db).submit(other)

    listed = await list_exam_attempts(db, exam.id)
    assert {a.id for a in listed} == {attempt_id, other}
    assert {a.student_name for a in listed} == {"Mona", "Sara"}

    summary = await active_summary(db)
    assert len(summary) == 1
    assert summary[0].exam_id == exam.id
    assert summary[0].active_count == 1
    assert summary[0].recent_submissions == 1


async def test_grading_failure_does_not_stop_expired_sweep(db):
    exam = await create_exam(db, duration_minutes=30)
    first, _ = await start_attempt(db, exam.id)
    second, _ = await start_attempt(db, exam.id)
    db.add(Student(code="DUP-1", student_name="Existing"))
    await db.commit()
    failed = []

    async def grade(aid):
        if not failed:
            failed.append(aid)
            # breaks the shared session at flush time
            db.add(Student(code="DUP-1", student_name="Clash"))
            await db.flush()
        await grade_attempt(db, aid)

    later = utcnow() + timedelta(minutes=31)
    assert await auto_submit_expired(db, grade=grade, now=later) == 2

    rows = dict((await db.execute(select(Attempt.id, Attempt.completion_status))).all())
    assert rows == {first: "submitted", second: "submitted"}
    [graded] = {first, second} - set(failed)
    assert await db.get(ExamResult, graded) is not None
    assert await db.get(ExamResult, failed[0]) is None


async def test_expired_sweep_counts_only_its_own_submits(db, session_factory):
    exam = await create_exam(db, duration_minutes=30)
    first, _ = await start_attempt(db, exam.id)
    second, _ = await start_attempt(db, exam.id)
    graded = []

    async def grade(aid):
        graded.append(aid)
        if len(graded) == 1:
            # the student's own submit lands for the other attempt meanwhile
            other = second if aid == first else first
            async with session_factory() as student_session:
                await AttemptSessionManager(student_session).submit(other)

    later = utcnow() + timedelta(minutes=31)
    assert await auto_submit_expired(db, grade=grade, now=later) == 1
    assert len(graded) == 1

    rows = dict((await db.execute(select(Attempt.id, Attempt.completion_status))).all())
    assert rows == {first: "submitted", second: "submitted"}
