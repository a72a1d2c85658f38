"""Grading output: per-attempt result row and manual grades for free-text questions."""
from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from exam_app.db.session import Base


class ExamResult(Base):
    __tablename__ = "exam_results"

    attempt_id = Column(String(36), ForeignKey("exam_attempts.id", ondelete="CASCADE"), primary_key=True)
    total_questions = Column(Integer, nullable=False, default=0)  # auto-graded only
    correct_count = Column(Integer, nullable=False, default=0)
    score_percentage = Column(Float, nullable=False, default=0.0)
    auto_points = Column(Float, nullable=False, default=0.0)
    manual_points = Column(Float, nullable=False, default=0.0)
    max_points = Column(Float, nullable=False, default=0.0)
    final_score_percentage = Column(Float, nullable=False, default=0.0)
    calculated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    attempt = relationship("Attempt", back_populates="result")


class ManualGrade(Base):
    __tablename__ = "manual_grades"

    attempt_id = Column(String(36), ForeignKey("exam_attempts.id", ondelete="CASCADE"), primary_key=True)
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True)
    awarded_points = Column(Float, nullable=False, default=0.0)
    notes = Column(Text, nullable=True)
    graded_by = Column(String(255), nullable=True)
    graded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
