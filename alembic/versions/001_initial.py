"""Initial tables: exams, questions, students, exam_ips, exam_attempts, results.

Revision ID: 001
Revises:
Create Date: 2026-09-14

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "exams",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="draft"),
        sa.Column("access_type", sa.String(16), nullable=False, server_default="open"),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("status in ('draft','published','archived')", name="ck_exams_status"),
        sa.CheckConstraint("access_type in ('open','code_based','ip_restricted')", name="ck_exams_access_type"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "questions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("exam_id", sa.String(36), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("question_type", sa.String(32), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("points", sa.Integer(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("order_index", sa.Integer(), nullable=True),
        sa.Column("correct_answers", sa.JSON(), nullable=True),
        sa.Column("question_image_url", sa.Text(), nullable=True),
        sa.Column("option_image_urls", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["exam_id"], ["exams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_questions_exam_id"), "questions", ["exam_id"], unique=False)

    op.create_table(
        "students",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("student_name", sa.String(255), nullable=True),
        sa.Column("mobile_number", sa.String(32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_students_code"), "students", ["code"], unique=True)

    op.create_table(
        "exam_ips",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("exam_id", sa.String(36), nullable=False),
        sa.Column("rule_type", sa.String(16), nullable=False),
        sa.Column("ip_range", sa.String(64), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.CheckConstraint("rule_type in ('whitelist','blacklist')", name="ck_exam_ips_rule_type"),
        sa.ForeignKeyConstraint(["exam_id"], ["exams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_exam_ips_exam_id"), "exam_ips", ["exam_id"], unique=False)

    op.create_table(
        "exam_attempts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("exam_id", sa.String(36), nullable=False),
        sa.Column("student_id", sa.String(36), nullable=True),
        sa.Column("student_name", sa.String(255), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("seed", sa.String(64), nullable=True),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("auto_save_data", sa.JSON(), nullable=False),
        sa.Column("completion_status", sa.String(16), nullable=False, server_default="in_progress"),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "completion_status in ('in_progress','submitted','abandoned')",
            name="ck_exam_attempts_completion_status",
        ),
        sa.ForeignKeyConstraint(["exam_id"], ["exams.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("exam_id", "student_id", name="uq_exam_attempts_exam_student"),
    )
    op.create_index(op.f("ix_exam_attempts_exam_id"), "exam_attempts", ["exam_id"], unique=False)
    op.create_index(op.f("ix_exam_attempts_student_id"), "exam_attempts", ["student_id"], unique=False)
    op.create_index(
        op.f("ix_exam_attempts_completion_status"), "exam_attempts", ["completion_status"], unique=False
    )

    op.create_table(
        "exam_results",
        sa.Column("attempt_id", sa.String(36), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("correct_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("score_percentage", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("auto_points", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("manual_points", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_points", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("final_score_percentage", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("calculated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["attempt_id"], ["exam_attempts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("attempt_id"),
    )

    op.create_table(
        "manual_grades",
        sa.Column("attempt_id", sa.String(36), nullable=False),
        sa.Column("question_id", sa.String(36), nullable=False),
        sa.Column("awarded_points", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("graded_by", sa.String(255), nullable=True),
        sa.Column("graded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["attempt_id"], ["exam_attempts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("attempt_id", "question_id"),
    )


def downgrade() -> None:
    op.drop_table("manual_grades")
    op.drop_table("exam_results")
    op.drop_index(op.f("ix_exam_attempts_completion_status"), table_name="exam_attempts")
    op.drop_index(op.f("ix_exam_attempts_student_id"), table_name="exam_attempts")
    op.drop_index(op.f("ix_exam_attempts_exam_id"), table_name="exam_attempts")
    op.drop_table("exam_attempts")
    op.drop_index(op.f("ix_exam_ips_exam_id"), table_name="exam_ips")
    op.drop_table("exam_ips")
    op.drop_index(op.f("ix_students_code"), table_name="students")
    op.drop_table("students")
    op.drop_index(op.f("ix_questions_exam_id"), table_name="questions")
    op.drop_table("questions")
    op.drop_table("exams")
