"""Client activity events (focus lost, paste, reconnect, ...) logged per attempt."""
import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from exam_app.db.session import Base


class AttemptActivityEvent(Base):
    __tablename__ = "attempt_activity_events"
    __table_args__ = (Index("idx_activity_attempt_time", "attempt_id", "event_time"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    attempt_id = Column(String(36), ForeignKey("exam_attempts.id", ondelete="CASCADE"), nullable=False)
    event_type = Column(String(64), nullable=False, index=True)
    event_time = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    payload = Column(JSON, nullable=False, default=dict)

    attempt = relationship("Attempt", back_populates="activity_events")
