"""HTTP client for the attempt endpoints; error bodies become the service's exceptions."""
from typing import Any

import httpx

from exam_app.schemas.admin import ActivityEventSchema
from exam_app.schemas.attempt import AttemptStateSchema, ClientConfigSchema, SubmitResponseSchema
from exam_app.services.errors import (
    AttemptAbandoned,
    AttemptNotFound,
    AttemptSubmitted,
    EntryRejected,
    VersionConflict,
)


class AttemptClient:
    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    @classmethod
    def from_base_url(cls, base_url: str, timeout: float = 10.0) -> "AttemptClient":
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout))

    async def aclose(self) -> None:
        await self.http.aclose()

    @staticmethod
    def _raise_for_error(attempt_id: str | None, response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            data = response.json()
        except ValueError:
            data = {}
        code = data.get("error") if isinstance(data, dict) else None

        if code == "version_mismatch":
            raise VersionConflict(attempt_id, AttemptStateSchema.model_validate(data["latest"]))
        if code == "attempt_not_found":
            raise AttemptNotFound(attempt_id)
        if code == "attempt_already_submitted":
            raise AttemptSubmitted(attempt_id)
        if code == "attempt_abandoned":
            raise AttemptAbandoned(attempt_id)
        if code in EntryRejected.REASON_STATUS:
            raise EntryRejected(code)
        response.raise_for_status()

    async def start(self, exam_id: str, code: str | None = None, student_name: str | None = None) -> tuple[str, str]:
        response = await self.http.post(
            f"/api/exams/{exam_id}/start",
            json={"code": code, "student_name": student_name},
        )
        self._raise_for_error(None, response)
        data = response.json()
        return data["attempt_id"], data["seed"]

    async def get_state(self, attempt_id: str) -> AttemptStateSchema:
        response = await self.http.get(f"/api/attempts/{attempt_id}/state")
        self._raise_for_error(attempt_id, response)
        return AttemptStateSchema.model_validate(response.json())

    async def save(
        self,
        attempt_id: str,
        answers: dict[str, Any],
        auto_save_data: dict[str, Any],
        expected_version: int,
    ) -> int:
        response = await self.http.patch(
            f"/api/attempts/{attempt_id}/save",
            json={
                "answers": answers,
                "auto_save_data": auto_save_data,
                "expected_version": expected_version,
            },
        )
        self._raise_for_error(attempt_id, response)
        return int(response.json()["new_version"])

    async def submit(self, attempt_id: str) -> SubmitResponseSchema:
        response = await self.http.post(f"/api/attempts/{attempt_id}/submit")
        self._raise_for_error(attempt_id, response)
        return SubmitResponseSchema.model_validate(response.json())

    async def log_activity(self, attempt_id: str, events: list[ActivityEventSchema]) -> int:
        response = await self.http.post(
            f"/api/attempts/{attempt_id}/activity",
            json={"events": [e.model_dump(mode="json") for e in events]},
        )
        self._raise_for_error(attempt_id, response)
        return int(response.json()["inserted_count"])

    async def get_client_config(self) -> ClientConfigSchema:
        response = await self.http.get("/api/client-config")
        response.raise_for_status()
        return ClientConfigSchema.model_validate(response.json())
