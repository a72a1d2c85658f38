from datetime import timedelta

import pytest

from exam_app.models.attempt import Attempt
from exam_app.models.exam import ExamIpRule
from exam_app.models.student import Student
from exam_app.services.clock import utcnow
from exam_app.services.entry import check_ip_rules, start_attempt
from exam_app.services.errors import EntryRejected
from tests.conftest import create_exam

pytestmark = pytest.mark.anyio


async def _reason(coro) -> str:
    with pytest.raises(EntryRejected) as info:
        await coro
    return info.value.code


async def test_open_exam_creates_fresh_attempt(db, exam):
    attempt_id, seed = await start_attempt(db, exam.id, student_name="  Omar ", ip="10.1.1.1")

    attempt = await db.get(Attempt, attempt_id)
    assert len(seed) == 32
    assert attempt.version == 1
    assert attempt.answers == {}
    assert attempt.completion_status == "in_progress"
    assert attempt.student_name == "Omar"
    assert attempt.submitted_at is None
    assert attempt.seed == seed
    assert attempt.auto_save_data == {"seed": seed, "progress": {"answered": 0, "total": 0}}


async def test_unknown_and_unpublished_exams(db):
    assert await _reason(start_attempt(db, "nope")) == "exam_not_found"
    draft = await create_exam(db, status="draft", questions=[])
    assert await _reason(start_attempt(db, draft.id)) == "exam_not_published"


async def test_exam_window(db):
    now = utcnow()
    later = await create_exam(db, questions=[], start_time=now + timedelta(hours=1))
    over = await create_exam(db, questions=[], end_time=now - timedelta(minutes=1))

    assert await _reason(start_attempt(db, later.id)) == "exam_not_started"
    assert await _reason(start_attempt(db, over.id)) == "exam_ended"


async def test_code_based_entry(db):
    exam = await create_exam(db, access_type="code_based", questions=[])
    student = Student(code="AB12", student_name="Layla")
    db.add(student)
    await db.commit()

    assert await _reason(start_attempt(db, exam.id)) == "code_required"
    assert await _reason(start_attempt(db, exam.id, code="ZZ99")) == "invalid_code"

    attempt_id, _ = await start_attempt(db, exam.id, code="AB12")
    attempt = await db.get(Attempt, attempt_id)
    assert attempt.student_id == student.id
    assert attempt.student_name is None

    assert await _reason(start_attempt(db, exam.id, code="AB12")) == "code_already_used"


async def test_ip_restricted_requires_name(db):
    exam = await create_exam(db, access_type="ip_restricted", questions=[])
    assert await _reason(start_attempt(db, exam.id, student_name="   ", ip="10.0.0.1")) == "student_name_required"


async def test_attempt_limit_per_ip(db):
    exam = await create_exam(db, questions=[], settings={"attempt_limit": 2})

    await start_attempt(db, exam.id, ip="10.0.0.1")
    await start_attempt(db, exam.id, ip="10.0.0.1")
    assert await _reason(start_attempt(db, exam.id, ip="10.0.0.1")) == "attempt_limit_reached"
    # other addresses are counted separately
    await start_attempt(db, exam.id, ip="10.0.0.2")


async def test_default_attempt_limit_is_one(db):
    exam = await create_exam(db, questions=[], settings={})
    await start_attempt(db, exam.id, ip="10.0.0.1")
    assert await _reason(start_attempt(db, exam.id, ip="10.0.0.1")) == "attempt_limit_reached"


async def test_ip_rules_from_database(db):
    exam = await create_exam(db, questions=[])
    db.add(ExamIpRule(exam_id=exam.id, rule_type="whitelist", ip_range="192.168.0.0/16"))
    db.add(ExamIpRule(exam_id=exam.id, rule_type="blacklist", ip_range="192.168.5.0/24"))
    await db.commit()

    assert await _reason(start_attempt(db, exam.id, ip="10.0.0.1")) == "ip_not_whitelisted"
    assert await _reason(start_attempt(db, exam.id, ip="192.168.5.9")) == "ip_blacklisted"
    attempt_id, _ = await start_attempt(db, exam.id, ip="192.168.1.9")
    assert attempt_id


def test_ip_rules_without_whitelist():
    rules = [ExamIpRule(rule_type="blacklist", ip_range="10.0.0.0/8")]
    check_ip_rules(rules, "172.16.0.1")
    check_ip_rules(rules, None)
    with pytest.raises(EntryRejected):
        check_ip_rules(rules, "10.2.3.4")


def test_whitelist_rejects_unknown_address():
    rules = [ExamIpRule(rule_type="whitelist", ip_range="10.0.0.0/8")]
    with pytest.raises(EntryRejected) as info:
        check_ip_rules(rules, None)
    assert info.value.status_code == 403
