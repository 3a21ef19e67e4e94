from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from scenegrid.modules.engine.schemas import (
    ActiveSessionsResponse,
    AutoAdvanceResponse,
    GridActionRequest,
    SceneListResponse,
    SceneUpsertResponse,
    SessionCloseResponse,
)
from scenegrid.modules.engine.service import SceneEngine
from scenegrid.modules.grid.codec import from_tile_id
from scenegrid.modules.grid.errors import MalformedTileId
from scenegrid.modules.journal.errors import SessionNotFound
from scenegrid.modules.journal.schemas import SessionInsights
from scenegrid.modules.persistence.errors import PersistenceUnavailable
from scenegrid.modules.scenes.schemas import Scene
from scenegrid.modules.scenes.validator import SceneValidationReport, validate_scene

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["scenes"])

_default_engine = SceneEngine()


def get_scene_engine() -> SceneEngine:
    return _default_engine


def _store_unavailable(exc: PersistenceUnavailable) -> HTTPException:
    return HTTPException(status_code=503, detail={"code": "STORE_UNAVAILABLE", "message": str(exc)})


@router.post("/grid/action")
def grid_action(payload: GridActionRequest, engine: SceneEngine = Depends(get_scene_engine)):
    try:
        from_tile_id(payload.grid_id)
    except MalformedTileId as exc:
        logger.error(
            "malformed_tile_id",
            extra={
                "tile_id": payload.grid_id,
                "scene_key": f"{payload.current_scene}.{payload.current_subscene}",
                "session_id": payload.session_id,
            },
        )
        raise HTTPException(status_code=400, detail={"code": "MALFORMED_TILE_ID", "message": str(exc)}) from exc

    result = engine.evaluate_transition(
        payload.current_scene,
        payload.current_subscene,
        payload.grid_id,
        payload.action,
    )
    if payload.session_id:
        engine.record_tile_click(
            payload.session_id,
            payload.current_scene,
            payload.current_subscene,
            payload.grid_id,
            result,
        )
    return {"success": True, **result.model_dump(by_alias=True, exclude_none=True, mode="json")}


@router.get("/scenes", response_model=SceneListResponse)
def list_scenes(engine: SceneEngine = Depends(get_scene_engine)):
    scenes = engine.list_all_scenes()
    return {"scenes": [scene.payload() for scene in scenes], "count": len(scenes)}


@router.post("/scenes/validate", response_model=SceneValidationReport)
def validate_scene_payload(payload: dict = Body(...)):
    return validate_scene(payload)


@router.get("/scenes/{scene_id}/{subscene_id}")
def get_scene(scene_id: int, subscene_id: int, engine: SceneEngine = Depends(get_scene_engine)):
    scene = engine.get_scene_data(scene_id, subscene_id)
    if scene is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "SCENE_NOT_FOUND", "message": f"Scene {scene_id}.{subscene_id} not found"},
        )
    return scene.payload()


@router.put("/scenes/{scene_id}/{subscene_id}", response_model=SceneUpsertResponse)
def put_scene(
    scene_id: int,
    subscene_id: int,
    payload: dict = Body(...),
    engine: SceneEngine = Depends(get_scene_engine),
):
    try:
        scene = Scene.model_validate({**payload, "sceneId": scene_id, "subsceneId": subscene_id})
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "SCENE_UNLOADABLE", "errors": exc.errors(include_url=False, include_context=False)},
        ) from exc
    try:
        report = engine.upsert_scene(scene)
    except PersistenceUnavailable as exc:
        raise _store_unavailable(exc) from exc
    return {"scene": scene.payload(), "validation": report}


@router.get("/scenes/{scene_id}/{subscene_id}/auto-advance", response_model=AutoAdvanceResponse)
def get_auto_advance(scene_id: int, subscene_id: int, engine: SceneEngine = Depends(get_scene_engine)):
    config = engine.get_auto_advance_config(scene_id, subscene_id)
    return {"has_auto_advance": config is not None, "config": config}


@router.get("/journal/sessions/active", response_model=ActiveSessionsResponse)
def list_active_sessions(engine: SceneEngine = Depends(get_scene_engine)):
    sessions = engine.list_active_sessions()
    return {"sessions": sessions, "count": len(sessions)}


@router.get("/journal/{session_id}/insights", response_model=SessionInsights)
def get_session_insights(session_id: str, engine: SceneEngine = Depends(get_scene_engine)):
    try:
        return engine.get_session_insights(session_id)
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail={"code": "SESSION_NOT_FOUND", "message": str(exc)}) from exc
    except PersistenceUnavailable as exc:
        raise _store_unavailable(exc) from exc


@router.post("/journal/{session_id}/close", response_model=SessionCloseResponse)
def close_session(session_id: str, engine: SceneEngine = Depends(get_scene_engine)):
    try:
        closed = engine.close_session(session_id)
    except PersistenceUnavailable as exc:
        raise _store_unavailable(exc) from exc
    if not closed:
        raise HTTPException(
            status_code=404,
            detail={"code": "SESSION_NOT_FOUND", "message": f"session {session_id} not found"},
        )
    return {"session_id": session_id, "closed": True}
