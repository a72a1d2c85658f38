from exam_app.services.attempts import AttemptSessionManager
from exam_app.services.entry import start_attempt
from exam_app.services.grading import grade_attempt, grade_pending, set_manual_grade
from exam_app.services.sweeps import auto_submit_expired, mark_abandoned

__all__ = [
    "AttemptSessionManager",
    "auto_submit_expired",
    "grade_attempt",
    "grade_pending",
    "mark_abandoned",
    "set_manual_grade",
    "start_attempt",
]
