"""Batch logging of client activity events."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exam_app.models.activity import AttemptActivityEvent
from exam_app.models.attempt import Attempt
from exam_app.schemas.admin import ActivityEventSchema
from exam_app.services.clock import utcnow
from exam_app.services.errors import AttemptNotFound

MAX_EVENT_TYPE_LEN = 64


async def log_activity(db: AsyncSession, attempt_id: str, events: list[ActivityEventSchema]) -> int:
    """Insert events for an attempt; returns the inserted count."""
    if await db.get(Attempt, attempt_id) is None:
        raise AttemptNotFound(attempt_id)

    now = utcnow()
    rows = [
        AttemptActivityEvent(
            attempt_id=attempt_id,
            event_type=(e.event_type or "unknown")[:MAX_EVENT_TYPE_LEN],
            event_time=e.event_time or now,
            payload=e.payload or {},
        )
        for e in events
    ]
    db.add_all(rows)
    await db.commit()
    return len(rows)


async def list_activity(db: AsyncSession, attempt_id: str, limit: int = 200) -> list[AttemptActivityEvent]:
    """Most recent events first."""
    result = await db.execute(
        select(AttemptActivityEvent)
        .where(AttemptActivityEvent.attempt_id == attempt_id)
        .order_by(AttemptActivityEvent.event_time.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
