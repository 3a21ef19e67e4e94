from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from pydantic import ValidationError

from scenegrid.modules.persistence.errors import PersistenceUnavailable
from scenegrid.modules.scenes.catalog import CompiledSceneCatalog, scene_catalog
from scenegrid.modules.scenes.errors import UnknownScene
from scenegrid.modules.scenes.schemas import Scene
from scenegrid.modules.scenes.validator import validate_scene
from scenegrid.modules.transition.behaviors import ChoiceBehavior, SceneBehaviorRegistry, build_default_registry
from scenegrid.modules.transition.choices import evaluate_choices
from scenegrid.modules.transition.schemas import DirectTransition, TransitionResult, no_transition

logger = logging.getLogger(__name__)

DEFAULT_ACTION_TAG = "grid_click"


class SceneSource(Protocol):
    def find_scene(self, scene_id: int, subscene_id: int) -> dict | None:
        ...


# background types whose scenes resolve through their own choice data when nothing else applies
BACKGROUND_HEURISTICS: dict[str, Callable[[Scene, str], DirectTransition]] = {
    "matrix-animated": evaluate_choices,
    "matrix-static": evaluate_choices,
    "vault": evaluate_choices,
}


class TransitionEvaluator:
    def __init__(
        self,
        store: SceneSource,
        *,
        registry: SceneBehaviorRegistry | None = None,
        catalog: CompiledSceneCatalog | None = None,
    ):
        self.store = store
        self.registry = registry if registry is not None else build_default_registry()
        self.catalog = catalog if catalog is not None else scene_catalog

    def load_scene(self, scene_id: int, subscene_id: int) -> Scene | None:
        """Persisted scene, validated for diagnostics only; None when absent or unusable."""
        try:
            payload = self.store.find_scene(scene_id, subscene_id)
        except PersistenceUnavailable as exc:
            logger.warning(
                "scene_load_skipped_store_unavailable",
                extra={"scene_key": f"{scene_id}.{subscene_id}", "error": str(exc)},
            )
            return None
        if payload is None:
            return None

        validate_scene(payload)
        try:
            return Scene.model_validate(payload)
        except ValidationError as exc:
            logger.warning(
                "scene_record_unloadable",
                extra={"scene_key": f"{scene_id}.{subscene_id}", "error_count": exc.error_count()},
            )
            return None

    def evaluate(
        self,
        scene_id: int,
        subscene_id: int,
        tile_id: str,
        action_tag: str = DEFAULT_ACTION_TAG,
    ) -> TransitionResult:
        try:
            return self._evaluate(scene_id, subscene_id, tile_id, action_tag)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "transition_evaluation_failed",
                extra={"scene_key": f"{scene_id}.{subscene_id}", "tile_id": tile_id, "error": str(exc)},
            )
            return self.fallback(scene_id, subscene_id, tile_id, action_tag)

    def _evaluate(self, scene_id: int, subscene_id: int, tile_id: str, action_tag: str) -> TransitionResult:
        scene = self.load_scene(scene_id, subscene_id)
        if scene is None:
            return self.fallback(scene_id, subscene_id, tile_id, action_tag)

        scene_key = scene.key.label
        auto = scene.auto_advance
        if auto is not None:
            target = auto.next_scene
            logger.debug("transition_auto_advance", extra={"scene_key": scene_key, "delay_ms": auto.delay_ms})
            return DirectTransition(
                scene_id=target.scene_id,
                subscene_id=target.subscene_id,
                message=f"Auto-advancing to Scene {target.scene_id}.{target.subscene_id}",
                effects={"animationTrigger": "auto_advance", "transitionType": "smooth", "delay": auto.delay_ms},
                echo="auto_advance_triggered",
            )

        behavior = self.registry.get(scene.key)
        if behavior is not None:
            logger.debug("transition_override_used", extra={"scene_key": scene_key, "tile_id": tile_id})
            return behavior.handle(tile_id, action_tag, scene)

        if scene.choices:
            logger.debug("transition_choices_used", extra={"scene_key": scene_key, "tile_id": tile_id})
            return evaluate_choices(scene, tile_id)

        heuristic = BACKGROUND_HEURISTICS.get(scene.background_type)
        if heuristic is not None:
            logger.debug(
                "transition_background_heuristic_used",
                extra={"scene_key": scene_key, "background_type": scene.background_type},
            )
            return heuristic(scene, tile_id)
        return self.fallback(scene_id, subscene_id, tile_id, action_tag)

    def fallback(
        self,
        scene_id: int,
        subscene_id: int,
        tile_id: str,
        action_tag: str = DEFAULT_ACTION_TAG,
    ) -> TransitionResult:
        """Catalog scene through its registered behaviour; a no-op for unknown scenes. Never raises."""
        scene_key = f"{scene_id}.{subscene_id}"
        try:
            scene = self.catalog.require(scene_id, subscene_id)
        except UnknownScene:
            logger.debug("transition_unknown_scene", extra={"scene_key": scene_key, "tile_id": tile_id})
            return no_transition(scene_id, subscene_id)

        logger.debug("transition_fallback_used", extra={"scene_key": scene_key, "tile_id": tile_id})
        behavior = self.registry.get(scene.key) or ChoiceBehavior()
        try:
            return behavior.handle(tile_id, action_tag, scene)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "transition_fallback_failed",
                extra={"scene_key": scene_key, "tile_id": tile_id, "error": str(exc)},
            )
            return no_transition(scene_id, subscene_id)
