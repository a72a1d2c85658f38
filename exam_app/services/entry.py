"""Exam entry: validate access and create the attempt row the session manager works on."""
import ipaddress
import logging
import secrets

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from exam_app.models.attempt import IN_PROGRESS, Attempt
from exam_app.models.exam import Exam, ExamIpRule
from exam_app.models.student import Student
from exam_app.services.clock import as_utc, utcnow
from exam_app.services.errors import EntryRejected

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPT_LIMIT = 1


def _ip_in(ip: str | None, cidr: str) -> bool:
    if not ip:
        return False
    try:
        return ipaddress.ip_address(ip) in ipaddress.ip_network(cidr, strict=False)
    except ValueError:
        return False


def check_ip_rules(rules: list[ExamIpRule], ip: str | None) -> None:
    """Whitelist (if any rule exists) must match; any matching blacklist rule rejects."""
    whitelist = [r.ip_range for r in rules if r.rule_type == "whitelist"]
    if whitelist and not any(_ip_in(ip, cidr) for cidr in whitelist):
        raise EntryRejected("ip_not_whitelisted")
    if any(_ip_in(ip, r.ip_range) for r in rules if r.rule_type == "blacklist"):
        raise EntryRejected("ip_blacklisted")


def check_window(exam: Exam, now=None) -> None:
    if exam.status != "published":
        raise EntryRejected("exam_not_published")
    now = now or utcnow()
    start, end = as_utc(exam.start_time), as_utc(exam.end_time)
    if start is not None and now < start:
        raise EntryRejected("exam_not_started")
    if end is not None and now > end:
        raise EntryRejected("exam_ended")


async def start_attempt(
    db: AsyncSession,
    exam_id: str,
    code: str | None = None,
    student_name: str | None = None,
    ip: str | None = None,
) -> tuple[str, str]:
    """Create an in_progress attempt at version 1. Returns (attempt_id, seed)."""
    exam = await db.get(Exam, exam_id)
    if exam is None:
        raise EntryRejected("exam_not_found")
    check_window(exam)

    settings = exam.settings or {}
    attempt_limit = int(settings.get("attempt_limit", DEFAULT_ATTEMPT_LIMIT) or 0)

    student = None
    clean_name = None
    if exam.access_type == "code_based":
        if not code:
            raise EntryRejected("code_required")
        student = (await db.execute(select(Student).where(Student.code == code.strip()))).scalar_one_or_none()
        if student is None:
            raise EntryRejected("invalid_code")
        used = await db.execute(
            select(Attempt.id).where(Attempt.exam_id == exam_id, Attempt.student_id == student.id)
        )
        if used.first() is not None:
            raise EntryRejected("code_already_used")
    else:
        clean_name = (student_name or "").strip() or None
        if exam.access_type == "ip_restricted" and clean_name is None:
            raise EntryRejected("student_name_required")
        if attempt_limit > 0 and ip:
            count = await db.scalar(
                select(func.count(Attempt.id)).where(Attempt.exam_id == exam_id, Attempt.ip_address == ip)
            )
            if count >= attempt_limit:
                raise EntryRejected("attempt_limit_reached")

    rules = (await db.execute(select(ExamIpRule).where(ExamIpRule.exam_id == exam_id))).scalars().all()
    check_ip_rules(list(rules), ip)

    seed = secrets.token_hex(16)
    now = utcnow()
    attempt = Attempt(
        exam_id=exam_id,
        student_id=student.id if student else None,
        student_name=clean_name,
        ip_address=ip,
        seed=seed,
        answers={},
        auto_save_data={"seed": seed, "progress": {"answered": 0, "total": 0}},
        completion_status=IN_PROGRESS,
        version=1,
        started_at=now,
        updated_at=now,
    )
    db.add(attempt)
    try:
        await db.commit()
    except IntegrityError:
        # concurrent entry with the same code won the unique (exam_id, student_id) slot
        await db.rollback()
        raise EntryRejected("code_already_used")

    logger.info("attempt started attempt=%s exam=%s access=%s", attempt.id, exam_id, exam.access_type)
    return attempt.id, seed
