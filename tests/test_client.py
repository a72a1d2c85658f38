import asyncio

import pytest

from exam_app.client import AttemptClient, AutosaveSession, DraftStore, SaveStatus, overlay_draft
from exam_app.schemas.admin import ActivityEventSchema
from exam_app.services.errors import AttemptClosed, AttemptSubmitted, EntryRejected, VersionConflict
from exam_app.services.sweeps import mark_abandoned

pytestmark = pytest.mark.anyio


@pytest.fixture
def api(client):
    return AttemptClient(client)


@pytest.fixture
def drafts(tmp_path):
    return DraftStore(tmp_path / "drafts")


def test_overlay_draft_server_wins():
    merged = overlay_draft({"q1": "B"}, {"q1": "A", "q3": "notes"})
    assert merged == {"q1": "B", "q3": "notes"}
    assert overlay_draft(None, None) == {}


def test_draft_store_roundtrip(drafts):
    assert drafts.load("a-1") is None

    drafts.store("a-1", {"q1": "A"})
    assert drafts.load("a-1") == {"q1": "A"}

    drafts.clear("a-1")
    assert drafts.load("a-1") is None
    drafts.clear("a-1")


def test_draft_store_ignores_corrupt_file(drafts):
    drafts.store("a/../2", {"q1": "A"})
    [path] = list(drafts.directory.iterdir())
    assert path.parent == drafts.directory

    path.write_text("{not json", encoding="utf-8")
    assert drafts.load("a/../2") is None


async def test_client_maps_error_codes(api, exam, attempt_id):
    with pytest.raises(EntryRejected) as info:
        await api.start("no-such-exam")
    assert info.value.code == "exam_not_found"

    await api.save(attempt_id, {"q1": "A"}, {}, 1)
    with pytest.raises(VersionConflict) as conflict:
        await api.save(attempt_id, {"q1": "C"}, {}, 1)
    assert conflict.value.latest.answers == {"q1": "A"}

    await api.submit(attempt_id)
    with pytest.raises(AttemptSubmitted):
        await api.save(attempt_id, {"q1": "C"}, {}, 2)

    events = [ActivityEventSchema(event_type="visibility_hidden")]
    assert await api.log_activity(attempt_id, events) == 1


async def test_load_recovers_draft_under_server_answers(api, drafts, attempt_id):
    await api.save(attempt_id, {"q1": "B"}, {"progress": {"answered": 1, "total": 3}}, 1)
    drafts.store(attempt_id, {"q1": "A", "q3": "unsaved essay"})

    session = AutosaveSession(api, attempt_id, drafts=drafts)
    state = await session.load()

    assert state.version == 2
    assert session.version == 2
    assert session.answers == {"q1": "B", "q3": "unsaved essay"}
    assert session.progress() == {"answered": 2, "total": 3}
    assert session.status is SaveStatus.IDLE


async def test_debounced_edits_coalesce_into_one_save(api, drafts, attempt_id):
    session = AutosaveSession(api, attempt_id, drafts=drafts, debounce_ms=10)
    await session.load()

    session.set_answer("q1", "B")
    session.set_answer("q2", ["A", "C"])
    await session._debounce_task

    assert session.status is SaveStatus.SAVED
    assert session.version == 2
    assert drafts.load(attempt_id) == {"q1": "B", "q2": ["A", "C"]}

    state = await api.get_state(attempt_id)
    assert state.version == 2
    assert state.answers == {"q1": "B", "q2": ["A", "C"]}
    assert state.auto_save_data["progress"] == {"answered": 2, "total": 3}


async def test_conflict_is_retried_on_latest_version(api, attempt_id):
    session = AutosaveSession(api, attempt_id, debounce_ms=60_000)
    await session.load()

    # another tab saves first
    await api.save(attempt_id, {"q2": ["A"]}, {}, 1)

    session.set_answer("q1", "B")
    assert await session.save_now() is True
    await session.stop()

    assert session.version == 3
    state = await api.get_state(attempt_id)
    assert state.answers == {"q1": "B", "q2": ["A"]}


async def test_session_closes_when_attempt_submitted_elsewhere(api, attempt_id):
    session = AutosaveSession(api, attempt_id, debounce_ms=60_000)
    await session.load()
    await api.submit(attempt_id)

    session.set_answer("q1", "B")
    assert await session.save_now() is False
    await session.stop()

    assert session.status is SaveStatus.CLOSED
    with pytest.raises(AttemptClosed):
        session.set_answer("q1", "C")


async def test_load_of_submitted_attempt_is_closed(api, attempt_id):
    await api.submit(attempt_id)
    session = AutosaveSession(api, attempt_id)
    await session.load()
    assert session.closed


async def test_submit_flushes_and_clears_draft(api, drafts, attempt_id):
    session = AutosaveSession(api, attempt_id, drafts=drafts, debounce_ms=60_000)
    await session.load()
    session.set_answer("q1", "B")

    result = await session.submit()

    assert result.ok
    assert session.closed
    assert drafts.load(attempt_id) is None
    state = await api.get_state(attempt_id)
    assert state.completion_status == "submitted"
    assert state.answers == {"q1": "B"}


async def test_submit_of_abandoned_attempt_raises(api, attempt_id, db):
    session = AutosaveSession(api, attempt_id)
    await session.load()
    await mark_abandoned(db, inactive_minutes=-1)

    with pytest.raises(AttemptClosed):
        await session.submit()
    assert session.closed


async def test_interval_saves(api, attempt_id, monkeypatch):
    monkeypatch.setattr(AutosaveSession, "MIN_INTERVAL_SECONDS", 0)
    session = AutosaveSession(api, attempt_id, interval_seconds=0.01)
    await session.load()
    session.answers["q3"] = "typed without a change event"

    session.start()
    for _ in range(200):
        if session.last_saved_at is not None:
            break
        await asyncio.sleep(0.01)
    await session.stop()

    assert session.version >= 2
    state = await api.get_state(attempt_id)
    assert state.answers["q3"] == "typed without a change event"


def test_interval_has_a_floor():
    session = AutosaveSession(AttemptClient(None), "a-1", interval_seconds=1)
    assert session.interval_seconds == AutosaveSession.MIN_INTERVAL_SECONDS


async def test_session_uses_server_cadence(api, attempt_id):
    session = await AutosaveSession.from_server(api, attempt_id)
    assert session.interval_seconds == 10
    assert session.debounce_seconds == 0.8


async def test_edit_during_inflight_save_is_queued_not_cancelled(api, attempt_id, monkeypatch):
    session = AutosaveSession(api, attempt_id, debounce_ms=0)
    await session.load()

    sent_versions = []
    release = asyncio.Event()
    real_save = api.save

    async def slow_save(attempt, answers, auto_save_data, expected_version):
        sent_versions.append(expected_version)
        if len(sent_versions) == 1:
            await release.wait()
        return await real_save(attempt, answers, auto_save_data, expected_version)

    monkeypatch.setattr(api, "save", slow_save)

    session.set_answer("q1", "B")
    in_flight = session._debounce_task
    while not sent_versions:
        await asyncio.sleep(0.01)

    session.set_answer("q2", ["A"])
    assert session._debounce_task is in_flight
    release.set()

    assert await in_flight is None
    await session._debounce_task

    # second round went out on the version the first one returned
    assert sent_versions == [1, 2]
    assert session.version == 3
    assert session.status is SaveStatus.SAVED
    state = await api.get_state(attempt_id)
    assert state.answers == {"q1": "B", "q2": ["A"]}
