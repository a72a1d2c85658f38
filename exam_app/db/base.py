"""SQLAlchemy declarative base and model imports for Alembic."""
from exam_app.db.session import Base

# Import all models so Alembic and create_all can see them
from exam_app.models.activity import AttemptActivityEvent  # noqa: F401
from exam_app.models.attempt import Attempt  # noqa: F401
from exam_app.models.exam import Exam, ExamIpRule, Question  # noqa: F401
from exam_app.models.result import ExamResult, ManualGrade  # noqa: F401
from exam_app.models.student import Student  # noqa: F401

__all__ = [
    "Base",
    "Attempt",
    "AttemptActivityEvent",
    "Exam",
    "ExamIpRule",
    "ExamResult",
    "ManualGrade",
    "Question",
    "Student",
]
