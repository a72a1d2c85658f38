"""Add attempt_activity_events.

Revision ID: 002
Revises: 001
Create Date: 2026-09-28

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "attempt_activity_events",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("attempt_id", sa.String(36), nullable=False),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("event_time", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["attempt_id"], ["exam_attempts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_activity_attempt_time", "attempt_activity_events", ["attempt_id", "event_time"])
    op.create_index(
        op.f("ix_attempt_activity_events_event_type"), "attempt_activity_events", ["event_type"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_attempt_activity_events_event_type"), table_name="attempt_activity_events")
    op.drop_index("idx_activity_attempt_time", table_name="attempt_activity_events")
    op.drop_table("attempt_activity_events")
