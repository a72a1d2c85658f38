"""Exam, Question and IP rule models: the read-only exam definition seen by attempts."""
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from exam_app.db.session import Base

EXAM_STATUSES = ("draft", "published", "archived")
ACCESS_TYPES = ("open", "code_based", "ip_restricted")

# Auto-graded vs. manually graded question types
CHOICE_TYPES = ("single_choice", "true_false")
MULTI_TYPES = ("multiple_choice", "multi_select")
MANUAL_TYPES = ("paragraph", "photo_upload")


def _uuid() -> str:
    return str(uuid.uuid4())


class Exam(Base):
    __tablename__ = "exams"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    status = Column(String(16), nullable=False, default="draft")  # draft | published | archived
    access_type = Column(String(16), nullable=False, default="open")  # open | code_based | ip_restricted
    # attempt_limit, randomize_questions, auto_save_interval, ...
    settings = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    questions = relationship("Question", back_populates="exam", order_by="Question.order_index")
    ip_rules = relationship("ExamIpRule", back_populates="exam")
    attempts = relationship("Attempt", back_populates="exam")


class Question(Base):
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=_uuid)
    exam_id = Column(String(36), ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(32), nullable=False)
    options = Column(JSON, nullable=True)
    points = Column(Integer, nullable=True)  # null counts as 1
    required = Column(Boolean, nullable=False, default=False)
    order_index = Column(Integer, nullable=True)
    correct_answers = Column(JSON, nullable=True)  # never sent to students
    question_image_url = Column(Text, nullable=True)
    option_image_urls = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    exam = relationship("Exam", back_populates="questions")


class ExamIpRule(Base):
    __tablename__ = "exam_ips"

    id = Column(String(36), primary_key=True, default=_uuid)
    exam_id = Column(String(36), ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    rule_type = Column(String(16), nullable=False)  # whitelist | blacklist
    ip_range = Column(String(64), nullable=False)  # CIDR
    note = Column(Text, nullable=True)

    exam = relationship("Exam", back_populates="ip_rules")
