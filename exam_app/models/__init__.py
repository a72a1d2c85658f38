from exam_app.models.activity import AttemptActivityEvent
from exam_app.models.attempt import Attempt
from exam_app.models.exam import Exam, ExamIpRule, Question
from exam_app.models.result import ExamResult, ManualGrade
from exam_app.models.student import Student

__all__ = [
    "Attempt",
    "AttemptActivityEvent",
    "Exam",
    "ExamIpRule",
    "ExamResult",
    "ManualGrade",
    "Question",
    "Student",
]
