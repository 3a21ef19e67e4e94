from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from scenegrid.main import create_app
from scenegrid.modules.engine.router import get_scene_engine
from scenegrid.modules.engine.service import SceneEngine
from scenegrid.modules.journal.service import SessionJournal, _ActiveSessionMirror
from scenegrid.modules.persistence.store import SceneDataStore
from scenegrid.modules.scenes.catalog import scene_catalog
from tests.support.scenes import make_scene_payload
from tests.support.stores import UnavailableStore


def _client_for(engine: SceneEngine) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_scene_engine] = lambda: engine
    return TestClient(app)


@pytest.fixture
def engine() -> SceneEngine:
    store = SceneDataStore()
    scene_engine = SceneEngine(store, journal=SessionJournal(store, mirror=_ActiveSessionMirror()))
    scene_engine.seed_catalog()
    return scene_engine


@pytest.fixture
def client(engine: SceneEngine) -> TestClient:
    return _client_for(engine)


def _click(client: TestClient, tile: str, scene: int, subscene: int, **extra):
    return client.post(
        "/api/grid/action",
        json={"gridId": tile, "currentScene": scene, "currentSubscene": subscene, **extra},
    )


def test_grid_action_zoom_transition(client: TestClient) -> None:
    res = _click(client, "K7", 1, 2)

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["zoomTo"] == "K7"
    assert body["nextAction"]["sceneId"] == 2
    assert body["nextAction"]["navigateTo"] == "vault"
    assert "matrixAction" not in body["nextAction"]


def test_grid_action_auto_advance(client: TestClient) -> None:
    body = _click(client, "A1", 1, 1).json()

    assert body["echo"] == "auto_advance_triggered"
    assert (body["sceneId"], body["subsceneId"]) == (1, 2)
    assert body["effects"]["delay"] == 8000


def test_grid_action_unknown_scene_is_no_op(client: TestClient) -> None:
    body = _click(client, "A1", 99, 99).json()
    assert body == {
        "success": True,
        "sceneId": 99,
        "subsceneId": 99,
        "message": "No transition defined",
        "effects": {},
        "echo": "no_transition",
    }


@pytest.mark.parametrize("tile", ["7A", "A0", "a1", "K 7"])
def test_grid_action_rejects_malformed_tile(client: TestClient, tile: str) -> None:
    res = _click(client, tile, 1, 2)

    assert res.status_code == 400
    assert res.json()["detail"]["code"] == "MALFORMED_TILE_ID"


def test_grid_action_rejects_missing_fields(client: TestClient) -> None:
    res = client.post("/api/grid/action", json={"gridId": "A1", "currentScene": 0, "currentSubscene": 1})
    assert res.status_code == 422


def test_grid_action_with_session_is_journaled(client: TestClient) -> None:
    _click(client, "K7", 1, 2, sessionId="api-run")
    _click(client, "F4", 2, 1, sessionId="api-run")

    insights = client.get("/api/journal/api-run/insights")
    active = client.get("/api/journal/sessions/active")

    assert insights.status_code == 200
    body = insights.json()
    assert body["totalInteractions"] == 2
    assert body["scenesVisited"] == ["1.2", "2.1"]
    assert body["zoomActionCount"] == 2
    assert body["journey"][1]["nextScene"]["subsceneId"] == 2
    assert active.json()["count"] == 1
    assert active.json()["sessions"][0]["interactionCount"] == 2


def test_grid_action_survives_store_outage() -> None:
    store = UnavailableStore()
    client = _client_for(SceneEngine(store, journal=SessionJournal(store, mirror=_ActiveSessionMirror())))

    res = _click(client, "K7", 2, 1, sessionId="offline")

    assert res.status_code == 200
    assert res.json()["nextAction"]["echo"] == "home_return"
    assert client.get("/api/journal/offline/insights").status_code == 503


def test_list_and_get_scenes(client: TestClient) -> None:
    listing = client.get("/api/scenes").json()
    assert listing["count"] == len(scene_catalog)
    assert [(s["sceneId"], s["subsceneId"]) for s in listing["scenes"]][:3] == [(1, 1), (1, 2), (1, 3)]

    scene = client.get("/api/scenes/2/1")
    assert scene.status_code == 200
    assert scene.json()["metadata"]["title"] == "Thoradin's Vault"

    missing = client.get("/api/scenes/9/9")
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "SCENE_NOT_FOUND"


def test_validate_endpoint_reports_violations(client: TestClient) -> None:
    res = client.post("/api/scenes/validate", json=make_scene_payload(3, 1, tiles=["7A", "A1", "A1"]))

    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is False
    assert body["sceneKey"] == "3.1"
    assert "MALFORMED_TILE_ID:tiles[0]:7A" in body["violations"]
    assert "DUPLICATE_TILE_ID:A1" in body["violations"]


def test_put_scene_stores_and_reports(client: TestClient, engine: SceneEngine) -> None:
    payload = make_scene_payload(3, 1, choices=[{"label": "Home", "next": [1, 1], "condition": "gridId === 'K7'"}])

    res = client.put("/api/scenes/3/1", json=payload)

    assert res.status_code == 200
    body = res.json()
    assert body["validation"]["ok"] is False
    assert "MISSING_NEXT_SCENE_LINK:choices[0]:K7->1.1" in body["validation"]["violations"]
    assert engine.store.find_scene(3, 1) is not None
    assert _click(client, "K7", 3, 1).json()["sceneId"] == 1


def test_put_scene_rejects_unloadable_payload(client: TestClient) -> None:
    payload = make_scene_payload(3, 1, choices=[{"label": "Bad", "next": [1, 1], "condition": "gridId > 'K7'"}])

    res = client.put("/api/scenes/3/1", json=payload)

    assert res.status_code == 422
    assert res.json()["detail"]["code"] == "SCENE_UNLOADABLE"


def test_put_scene_store_outage_is_503() -> None:
    store = UnavailableStore()
    client = _client_for(SceneEngine(store, journal=SessionJournal(store, mirror=_ActiveSessionMirror())))

    res = client.put("/api/scenes/3/1", json=make_scene_payload(3, 1))

    assert res.status_code == 503
    assert res.json()["detail"]["code"] == "STORE_UNAVAILABLE"


def test_auto_advance_endpoint(client: TestClient) -> None:
    enabled = client.get("/api/scenes/1/1/auto-advance").json()
    disabled = client.get("/api/scenes/1/2/auto-advance").json()

    assert enabled["hasAutoAdvance"] is True
    assert enabled["config"]["delayMs"] == 8000
    assert enabled["config"]["nextScene"] == {"sceneId": 1, "subsceneId": 2}
    assert disabled == {"hasAutoAdvance": False, "config": None}


def test_insights_unknown_session_is_404(client: TestClient) -> None:
    res = client.get("/api/journal/ghost/insights")
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "SESSION_NOT_FOUND"


def test_close_session_endpoint(client: TestClient) -> None:
    _click(client, "A1", 1, 3, sessionId="to-close")

    closed = client.post("/api/journal/to-close/close")
    again_unknown = client.post("/api/journal/ghost/close")

    assert closed.status_code == 200
    assert closed.json() == {"sessionId": "to-close", "closed": True}
    assert client.get("/api/journal/sessions/active").json()["count"] == 0
    assert again_unknown.status_code == 404


def test_validate_endpoint_reports_malformed_sections(client: TestClient) -> None:
    res = client.post(
        "/api/scenes/validate",
        json=make_scene_payload(
            3, 1, tiles=5, choices="x", nextScenes=[{"sceneId": [1], "subsceneId": 1, "triggerTile": "A1"}]
        ),
    )

    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is False
    assert any(v.startswith("SCHEMA:tiles:") for v in body["violations"])
    assert any(v.startswith("SCHEMA:choices:") for v in body["violations"])


def test_non_integer_auto_advance_delay_is_flagged_and_ignored(client: TestClient) -> None:
    payload = make_scene_payload(3, 1, effects={"autoAdvanceAfterMs": "soon", "nextScene": {"sceneId": 1, "subsceneId": 2}})

    stored = client.put("/api/scenes/3/1", json=payload)
    auto = client.get("/api/scenes/3/1/auto-advance")

    assert stored.status_code == 200
    assert any(v.startswith("SCHEMA:effects/autoAdvanceAfterMs:") for v in stored.json()["validation"]["violations"])
    assert auto.status_code == 200
    assert auto.json() == {"hasAutoAdvance": False, "config": None}
