from exam_app.client.autosave import AutosaveSession, SaveStatus
from exam_app.client.drafts import DraftStore, overlay_draft
from exam_app.client.http import AttemptClient

__all__ = ["AttemptClient", "AutosaveSession", "DraftStore", "SaveStatus", "overlay_draft"]
