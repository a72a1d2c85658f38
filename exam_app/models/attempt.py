"""Attempt model: one student's single pass through one exam.

answers, auto_save_data and version change only through the attempt session
manager's conditional updates; completion_status leaves in_progress exactly once.
"""
import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from exam_app.db.session import Base

IN_PROGRESS = "in_progress"
SUBMITTED = "submitted"
ABANDONED = "abandoned"
COMPLETION_STATUSES = (IN_PROGRESS, SUBMITTED, ABANDONED)


class Attempt(Base):
    __tablename__ = "exam_attempts"
    # one attempt per roster student per exam; NULL student_id rows are unconstrained
    __table_args__ = (UniqueConstraint("exam_id", "student_id", name="uq_exam_attempts_exam_student"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    exam_id = Column(String(36), ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("students.id"), nullable=True, index=True)
    student_name = Column(String(255), nullable=True)
    ip_address = Column(String(64), nullable=True)
    seed = Column(String(64), nullable=True)  # question shuffle seed, fixed at entry

    answers = Column(JSON, nullable=False, default=dict)
    auto_save_data = Column(JSON, nullable=False, default=dict)
    completion_status = Column(String(16), nullable=False, default=IN_PROGRESS, index=True)
    version = Column(Integer, nullable=False, default=1)

    started_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    exam = relationship("Exam", back_populates="attempts")
    student = relationship("Student", back_populates="attempts")
    result = relationship("ExamResult", back_populates="attempt", uselist=False)
    activity_events = relationship("AttemptActivityEvent", back_populates="attempt")
