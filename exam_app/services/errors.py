"""Domain errors for attempts and entry; each maps to a wire code and HTTP status."""
from typing import Any

from exam_app.schemas.attempt import AttemptStateSchema


class AttemptError(Exception):
    code = "attempt_error"
    status_code = 400

    def __init__(self, attempt_id: str | None = None, message: str | None = None):
        self.attempt_id = attempt_id
        super().__init__(message or self.code)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code}


class AttemptNotFound(AttemptError):
    code = "attempt_not_found"
    status_code = 404


class VersionConflict(AttemptError):
    """Optimistic check failed; carries the authoritative state to reconcile against."""

    code = "version_mismatch"
    status_code = 409

    def __init__(self, attempt_id: str, latest: AttemptStateSchema):
        super().__init__(attempt_id)
        self.latest = latest

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "latest": self.latest.model_dump(mode="json")}


class AttemptClosed(AttemptError):
    """Attempt left in_progress; no more mutations."""

    code = "attempt_closed"
    status_code = 409


class AttemptSubmitted(AttemptClosed):
    code = "attempt_already_submitted"


class AttemptAbandoned(AttemptClosed):
    code = "attempt_abandoned"


class AttemptNotSubmitted(AttemptError):
    """Operation needs a submitted attempt (manual grading)."""

    code = "attempt_not_submitted"
    status_code = 409


class EntryRejected(AttemptError):
    """start_attempt refused; reason is one of the REASON_STATUS keys."""

    REASON_STATUS = {
        "exam_not_found": 404,
        "exam_not_published": 403,
        "exam_not_started": 403,
        "exam_ended": 403,
        "code_required": 400,
        "invalid_code": 403,
        "code_already_used": 409,
        "student_name_required": 400,
        "attempt_limit_reached": 409,
        "ip_not_whitelisted": 403,
        "ip_blacklisted": 403,
    }

    def __init__(self, reason: str):
        self.code = reason
        self.status_code = self.REASON_STATUS.get(reason, 400)
        super().__init__(None, reason)
