from __future__ import annotations

import logging

from pydantic import ValidationError

from scenegrid.modules.journal.schemas import ActiveSession, SessionInsights
from scenegrid.modules.journal.service import SessionJournal
from scenegrid.modules.persistence.errors import PersistenceUnavailable
from scenegrid.modules.persistence.schemas import InteractionLogEntry
from scenegrid.modules.persistence.store import SceneDataStore
from scenegrid.modules.scenes.catalog import CompiledSceneCatalog, scene_catalog
from scenegrid.modules.scenes.schemas import AutoAdvanceConfig, Scene, SceneKey
from scenegrid.modules.scenes.validator import SceneValidationReport, validate_scene
from scenegrid.modules.transition.evaluator import DEFAULT_ACTION_TAG, TransitionEvaluator
from scenegrid.modules.transition.schemas import TransitionResult, ZoomTransition, final_target

logger = logging.getLogger(__name__)


class SceneEngine:
    """Entry point for request handlers: transitions, scene reads and the session journal."""

    def __init__(
        self,
        store: SceneDataStore | None = None,
        *,
        catalog: CompiledSceneCatalog | None = None,
        evaluator: TransitionEvaluator | None = None,
        journal: SessionJournal | None = None,
    ):
        self.store = store if store is not None else SceneDataStore()
        self.catalog = catalog if catalog is not None else scene_catalog
        self.evaluator = evaluator if evaluator is not None else TransitionEvaluator(self.store, catalog=self.catalog)
        self.journal = journal if journal is not None else SessionJournal(self.store)

    # transitions

    def evaluate_transition(
        self,
        scene_id: int,
        subscene_id: int,
        tile_id: str,
        action_tag: str = DEFAULT_ACTION_TAG,
    ) -> TransitionResult:
        return self.evaluator.evaluate(scene_id, subscene_id, tile_id, action_tag)

    # scenes

    def get_scene_data(self, scene_id: int, subscene_id: int) -> Scene | None:
        scene = self.evaluator.load_scene(scene_id, subscene_id)
        if scene is not None:
            return scene
        return self.catalog.get(scene_id, subscene_id)

    def list_all_scenes(self) -> list[Scene]:
        merged: dict[SceneKey, Scene] = {scene.key: scene for scene in self.catalog.scenes()}
        try:
            payloads = self.store.list_scenes()
        except PersistenceUnavailable:
            payloads = []
        for payload in payloads:
            try:
                scene = Scene.model_validate(payload)
            except ValidationError:
                logger.warning(
                    "scene_record_unloadable",
                    extra={"scene_key": f"{payload.get('sceneId')}.{payload.get('subsceneId')}"},
                )
                continue
            merged[scene.key] = scene
        return [merged[key] for key in sorted(merged)]

    def has_auto_advance(self, scene_id: int, subscene_id: int) -> bool:
        return self.get_auto_advance_config(scene_id, subscene_id) is not None

    def get_auto_advance_config(self, scene_id: int, subscene_id: int) -> AutoAdvanceConfig | None:
        scene = self.get_scene_data(scene_id, subscene_id)
        if scene is None:
            return None
        return scene.auto_advance

    def upsert_scene(self, scene: Scene) -> SceneValidationReport:
        # advisory: invalid scenes are stored anyway and the report goes back to the caller
        report = validate_scene(scene)
        self.store.upsert_scene(scene)
        return report

    def seed_catalog(self, *, strict: bool = False) -> list[SceneValidationReport]:
        scenes = self.catalog.scenes()
        reports = [validate_scene(scene) for scene in scenes]
        if strict:
            for report in reports:
                report.raise_for_violations()
        for scene in scenes:
            self.store.upsert_scene(scene)
        logger.info(
            "scene_catalog_seeded",
            extra={"scene_count": len(scenes), "invalid_count": sum(1 for r in reports if not r.ok)},
        )
        return reports

    # journal

    def log_tile_interaction(self, session_id: str, entry: InteractionLogEntry) -> InteractionLogEntry | None:
        return self.journal.log_interaction(session_id, entry)

    def record_tile_click(
        self,
        session_id: str,
        scene_id: int,
        subscene_id: int,
        tile_id: str,
        result: TransitionResult,
    ) -> InteractionLogEntry | None:
        target = final_target(result)
        next_scene = None
        if not target.is_no_op:
            next_scene = {
                "sceneId": target.scene_id,
                "subsceneId": target.subscene_id,
                "message": target.message,
            }
        entry = InteractionLogEntry(
            scene=scene_id,
            subscene=subscene_id,
            grid_tile=tile_id,
            zoom_target=result.zoom_to if isinstance(result, ZoomTransition) else None,
            next_scene=next_scene,
        )
        return self.log_tile_interaction(session_id, entry)

    def get_session_insights(self, session_id: str) -> SessionInsights:
        return self.journal.get_insights(session_id)

    def list_active_sessions(self) -> list[ActiveSession]:
        return self.journal.list_active_sessions()

    def close_session(self, session_id: str) -> bool:
        return self.journal.close_session(session_id)

    def cleanup_old_sessions(self, max_age_days: int | None = None) -> int:
        return self.journal.cleanup_old_sessions(max_age_days)
