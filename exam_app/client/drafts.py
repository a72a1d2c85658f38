"""Local durable drafts of in-progress answers, keyed by attempt id."""
import json
import logging
import os
import re
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def overlay_draft(server_answers: dict[str, Any] | None, draft_answers: dict[str, Any] | None) -> dict[str, Any]:
    """Server value wins on a shared key; the draft only fills gaps."""
    merged = dict(draft_answers or {})
    merged.update(server_answers or {})
    return merged


class DraftStore:
    """One JSON file per attempt: {"answers": {...}, "ts": <epoch seconds>}."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, attempt_id: str) -> Path:
        return self.directory / f"attempt-{_UNSAFE.sub('_', attempt_id)}.json"

    def load(self, attempt_id: str) -> dict[str, Any] | None:
        path = self._path(attempt_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (ValueError, OSError):
            logger.warning("unreadable draft ignored path=%s", path)
            return None
        answers = data.get("answers") if isinstance(data, dict) else None
        return answers if isinstance(answers, dict) else None

    def store(self, attempt_id: str, answers: dict[str, Any]) -> None:
        path = self._path(attempt_id)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps({"answers": answers, "ts": time.time()}), encoding="utf-8")
        os.replace(tmp, path)

    def clear(self, attempt_id: str) -> None:
        self._path(attempt_id).unlink(missing_ok=True)
