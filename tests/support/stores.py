from __future__ import annotations

import copy
from datetime import datetime

from scenegrid.modules.persistence.errors import PersistenceUnavailable
from scenegrid.modules.persistence.schemas import InteractionLogEntry
from scenegrid.modules.scenes.schemas import Scene


class InMemorySceneStore:
    def __init__(self, scenes=()):
        self.payloads: dict[tuple[int, int], dict] = {}
        for scene in scenes:
            self.put(scene)

    def put(self, scene: Scene | dict) -> None:
        payload = scene.payload() if isinstance(scene, Scene) else copy.deepcopy(scene)
        self.payloads[(payload["sceneId"], payload["subsceneId"])] = payload

    def find_scene(self, scene_id: int, subscene_id: int) -> dict | None:
        payload = self.payloads.get((scene_id, subscene_id))
        return copy.deepcopy(payload) if payload is not None else None


class UnavailableStore:
    """Every call fails the way a dropped database connection would."""

    def _fail(self, operation: str):
        raise PersistenceUnavailable(operation, "stub store offline")

    def find_scene(self, scene_id: int, subscene_id: int) -> dict | None:
        self._fail("find_scene")

    def upsert_scene(self, scene: Scene) -> dict:
        self._fail("upsert_scene")

    def list_scenes(self, *, active_only: bool = False) -> list[dict]:
        self._fail("list_scenes")

    def find_session(self, session_id: str):
        self._fail("find_session")

    def find_session_with_log(self, session_id: str):
        self._fail("find_session_with_log")

    def create_session(self, session_id: str, *, owner_id=None, session_name=None):
        self._fail("create_session")

    def append_log_entry(self, session_id: str, entry: InteractionLogEntry) -> InteractionLogEntry:
        self._fail("append_log_entry")

    def deactivate_session(self, session_id: str) -> bool:
        self._fail("deactivate_session")

    def delete_inactive_sessions_older_than(self, cutoff: datetime) -> int:
        self._fail("delete_inactive_sessions")


class ExplodingSceneStore:
    def find_scene(self, scene_id: int, subscene_id: int) -> dict | None:
        raise RuntimeError("boom")
