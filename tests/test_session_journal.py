import logging
from datetime import timedelta

import pytest
from sqlalchemy import func, select, update

from scenegrid.db import session as db_session
from scenegrid.db.models import GridSession
from scenegrid.modules.journal.errors import SessionNotFound
from scenegrid.modules.journal.service import SessionJournal, _ActiveSessionMirror, summarize_session
from scenegrid.modules.persistence.schemas import InteractionLogEntry
from scenegrid.modules.persistence.store import SceneDataStore
from scenegrid.utils.time import utc_now_naive
from tests.support.stores import UnavailableStore


def _journal() -> SessionJournal:
    return SessionJournal(SceneDataStore(), mirror=_ActiveSessionMirror())


def _entry(scene: int, subscene: int, tile: str, *, zoom: str | None = None, next_scene: dict | None = None):
    return InteractionLogEntry(scene=scene, subscene=subscene, grid_tile=tile, zoom_target=zoom, next_scene=next_scene)


def test_get_or_create_session_is_idempotent() -> None:
    journal = _journal()

    first = journal.get_or_create_session("abc", owner_id="player-1")
    second = journal.get_or_create_session("abc")

    assert first.id == second.id == "abc"
    assert second.owner_id == "player-1"
    with db_session.SessionLocal() as db:
        assert db.execute(select(func.count()).select_from(GridSession)).scalar_one() == 1


def test_insights_summarise_the_journey() -> None:
    journal = _journal()
    journal.log_interaction("run", _entry(1, 2, "K7", zoom="K7", next_scene={"sceneId": 2, "subsceneId": 1, "message": "Navigate to Vault"}))
    journal.log_interaction("run", _entry(2, 1, "F4", zoom="F4", next_scene={"sceneId": 2, "subsceneId": 2, "message": "Interact with Thoradin"}))
    journal.log_interaction("run", _entry(2, 2, "A1"))
    journal.log_interaction("run", _entry(2, 1, "A1"))

    insights = journal.get_insights("run")

    assert insights.session_id == "run"
    assert insights.total_interactions == 4
    assert insights.scenes_visited == ["1.2", "2.1", "2.2"]
    assert insights.tiles_clicked == ["K7", "F4", "A1", "A1"]
    assert insights.zoom_action_count == 2
    assert insights.scene_transition_count == 2
    assert [step.scene for step in insights.journey] == ["1.2", "2.1", "2.2", "2.1"]
    assert insights.journey[0].next_scene["message"] == "Navigate to Vault"


def test_insights_for_unknown_session_raise() -> None:
    with pytest.raises(SessionNotFound) as exc_info:
        _journal().get_insights("nobody")
    assert exc_info.value.session_id == "nobody"


def test_empty_session_insights_are_zeroed() -> None:
    journal = _journal()
    journal.get_or_create_session("quiet")

    insights = journal.get_insights("quiet")

    assert insights.total_interactions == 0
    assert insights.scenes_visited == []
    assert insights.journey == []


def test_log_interaction_is_best_effort(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="scenegrid.modules.journal.service")
    journal = SessionJournal(UnavailableStore(), mirror=_ActiveSessionMirror())

    assert journal.log_interaction("offline", _entry(1, 1, "A1")) is None
    assert journal.list_active_sessions() == []
    assert any(r.getMessage() == "journal_log_failed" for r in caplog.records)


def test_mirror_tracks_interactions_and_rebuilds_from_store() -> None:
    store = SceneDataStore()
    journal = SessionJournal(store, mirror=_ActiveSessionMirror())
    journal.log_interaction("m-1", _entry(1, 2, "K7"))
    journal.log_interaction("m-1", _entry(2, 1, "F4"))

    (active,) = journal.list_active_sessions()
    assert active.id == "m-1"
    assert active.interaction_count == 2

    # a fresh process starts with an empty mirror and reloads the stored log on first touch
    restarted = SessionJournal(store, mirror=_ActiveSessionMirror())
    assert restarted.list_active_sessions() == []
    restarted.log_interaction("m-1", _entry(2, 2, "A1"))

    (reloaded,) = restarted.list_active_sessions()
    assert reloaded.interaction_count == 3
    assert restarted.get_insights("m-1").total_interactions == 3


def test_close_session_drops_it_from_the_mirror() -> None:
    journal = _journal()
    journal.log_interaction("closing", _entry(1, 1, "A1"))

    assert journal.close_session("closing") is True
    assert journal.list_active_sessions() == []
    assert journal.close_session("never-existed") is False


def test_cleanup_removes_only_stale_closed_sessions() -> None:
    journal = _journal()
    for session_id in ("stale", "recent"):
        journal.log_interaction(session_id, _entry(1, 1, "A1"))
        journal.close_session(session_id)
    with db_session.SessionLocal() as db, db.begin():
        db.execute(
            update(GridSession)
            .where(GridSession.id == "stale")
            .values(updated_at=utc_now_naive() - timedelta(days=45))
        )

    assert journal.cleanup_old_sessions(30) == 1
    assert journal.cleanup_old_sessions() == 0
    assert journal.store.find_session("recent") is not None


def test_summarize_session_is_pure() -> None:
    store = SceneDataStore()
    store.append_log_entry("pure", _entry(1, 3, "G4", zoom="G4"))
    session = store.find_session_with_log("pure")

    assert summarize_session(session) == summarize_session(session)
    assert summarize_session(session).zoom_action_count == 1


def test_logging_after_close_reactivates_the_session() -> None:
    journal = _journal()
    journal.log_interaction("back-again", _entry(1, 1, "A1"))
    journal.close_session("back-again")

    journal.log_interaction("back-again", _entry(1, 2, "K7"))

    assert journal.store.find_session("back-again").is_active is True
    (active,) = journal.list_active_sessions()
    assert active.id == "back-again"
    assert active.interaction_count == 2
    assert journal.cleanup_old_sessions(0) == 0
