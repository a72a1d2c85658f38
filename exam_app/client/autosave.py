"""Autosave loop for one attempt: interval + debounced saves, draft recovery, conflict retry."""
import asyncio
import contextlib
import logging
from datetime import datetime
from enum import Enum
from typing import Any

import httpx

from exam_app.client.drafts import DraftStore, overlay_draft
from exam_app.client.http import AttemptClient
from exam_app.schemas.attempt import AttemptStateSchema, SubmitResponseSchema
from exam_app.services.clock import utcnow
from exam_app.services.errors import AttemptClosed, VersionConflict

logger = logging.getLogger(__name__)


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"
    CLOSED = "closed"


def _is_answered(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    return True


class AutosaveSession:
    """Client side of an attempt.

    Local answers are written to the draft store on every edit. Saves go out on
    a fixed interval and shortly after the last edit; a version conflict adopts
    the server's version and retries, keeping local edits on top of the
    returned answers. Once the attempt is closed server-side the session stops
    saving.
    """

    MIN_INTERVAL_SECONDS = 5

    def __init__(
        self,
        client: AttemptClient,
        attempt_id: str,
        drafts: DraftStore | None = None,
        interval_seconds: float = 10,
        debounce_ms: int = 800,
        max_attempts: int = 2,
    ):
        self.client = client
        self.attempt_id = attempt_id
        self.drafts = drafts
        self.interval_seconds = max(self.MIN_INTERVAL_SECONDS, interval_seconds)
        self.debounce_seconds = debounce_ms / 1000
        self.max_attempts = max(1, max_attempts)

        self.state: AttemptStateSchema | None = None
        self.answers: dict[str, Any] = {}
        self.auto_save_data: dict[str, Any] = {}
        self.version = 1
        self.status = SaveStatus.IDLE
        self.last_saved_at: datetime | None = None

        self._save_lock = asyncio.Lock()
        self._queued = False
        self._debounce_task: asyncio.Task | None = None
        self._interval_task: asyncio.Task | None = None

    @classmethod
    async def from_server(
        cls, client: AttemptClient, attempt_id: str, drafts: DraftStore | None = None
    ) -> "AutosaveSession":
        """Session using the cadence the server advertises."""
        config = await client.get_client_config()
        return cls(
            client,
            attempt_id,
            drafts=drafts,
            interval_seconds=config.autosave_interval_seconds,
            debounce_ms=config.autosave_debounce_ms,
        )

    @property
    def closed(self) -> bool:
        return self.status is SaveStatus.CLOSED

    async def load(self) -> AttemptStateSchema:
        """Fetch the authoritative state and recover any local draft on top of it."""
        state = await self.client.get_state(self.attempt_id)
        self.state = state
        self.version = state.version
        self.auto_save_data = dict(state.auto_save_data)
        draft = self.drafts.load(self.attempt_id) if self.drafts else None
        self.answers = overlay_draft(state.answers, draft)
        if state.completion_status != "in_progress":
            self.status = SaveStatus.CLOSED
        return state

    def progress(self) -> dict[str, int]:
        total = len(self.state.questions) if self.state else 0
        answered = sum(1 for v in self.answers.values() if _is_answered(v))
        return {"answered": answered, "total": total}

    def set_answer(self, question_id: str, value: Any) -> None:
        """Record an edit locally and schedule a debounced save."""
        if self.closed:
            raise AttemptClosed(self.attempt_id)
        self.answers[question_id] = value
        if self.drafts:
            self.drafts.store(self.attempt_id, self.answers)
        self.schedule_save()

    def schedule_save(self, delay: float | None = None) -> None:
        if self._save_lock.locked():
            # the round in flight reschedules once it has its new version
            self._queued = True
            return
        task = self._debounce_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        delay = self.debounce_seconds if delay is None else delay
        self._debounce_task = asyncio.create_task(self._save_after(delay))

    async def _save_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.save_now()

    async def save_now(self) -> bool:
        """One save round. A call made while a round is in flight is queued, not run twice."""
        if self.closed or self.state is None:
            return False
        if self._save_lock.locked():
            self._queued = True
            return False
        async with self._save_lock:
            saved = await self._save_round()
        if self._queued and not self.closed:
            self._queued = False
            self.schedule_save(0)
        return saved

    async def _save_round(self) -> bool:
        self.status = SaveStatus.SAVING
        try:
            for _ in range(self.max_attempts):
                auto_save_data = {**self.auto_save_data, "progress": self.progress()}
                try:
                    new_version = await self.client.save(
                        self.attempt_id, dict(self.answers), auto_save_data, self.version
                    )
                except VersionConflict as exc:
                    self.version = exc.latest.version
                    self.auto_save_data = dict(exc.latest.auto_save_data)
                    self.answers = {**exc.latest.answers, **self.answers}
                    continue
                self.version = new_version
                self.auto_save_data = auto_save_data
                self.status = SaveStatus.SAVED
                self.last_saved_at = utcnow()
                return True
            logger.info("save gave up after conflicts attempt=%s", self.attempt_id)
            self.status = SaveStatus.ERROR
            return False
        except AttemptClosed:
            self.status = SaveStatus.CLOSED
            return False
        except httpx.HTTPError as exc:
            # the next interval tick retries; the draft keeps the edits meanwhile
            logger.warning("save failed attempt=%s error=%s", self.attempt_id, exc)
            self.status = SaveStatus.ERROR
            return False

    async def _run_interval(self) -> None:
        while not self.closed:
            await asyncio.sleep(self.interval_seconds)
            await self.save_now()

    def start(self) -> None:
        if self._interval_task is None or self._interval_task.done():
            self._interval_task = asyncio.create_task(self._run_interval())

    async def stop(self) -> None:
        for task in (self._debounce_task, self._interval_task):
            if task is not None and not task.done() and task is not asyncio.current_task():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._debounce_task = self._interval_task = None

    async def submit(self) -> SubmitResponseSchema:
        """Flush pending edits, submit, and drop the local draft."""
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        if not self.closed and self.state is not None:
            async with self._save_lock:
                await self._save_round()
        try:
            result = await self.client.submit(self.attempt_id)
        except AttemptClosed:
            self.status = SaveStatus.CLOSED
            await self.stop()
            raise
        self.status = SaveStatus.CLOSED
        await self.stop()
        if self.drafts:
            self.drafts.clear(self.attempt_id)
        return result
