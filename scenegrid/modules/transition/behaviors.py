from __future__ import annotations

from typing import Protocol

from scenegrid.modules.scenes.schemas import Scene, SceneKey
from scenegrid.modules.transition.choices import evaluate_choices
from scenegrid.modules.transition.schemas import DirectTransition, TransitionResult, ZoomTransition

HOME_TILE = "K7"

_ZOOM_EFFECTS = {"animationTrigger": "grid_zoom", "transitionType": "zoom_then_transition"}


class SceneBehavior(Protocol):
    def handle(self, tile_id: str, action_tag: str, scene: Scene) -> TransitionResult:
        ...


def _zoom(tile_id: str, next_action: DirectTransition) -> ZoomTransition:
    return ZoomTransition(
        zoom_to=tile_id,
        message="Zooming to grid before transition",
        effects=dict(_ZOOM_EFFECTS),
        next_action=next_action,
    )


class ChoiceBehavior:
    """Default behaviour: the scene's own choice list."""

    def handle(self, tile_id: str, action_tag: str, scene: Scene) -> TransitionResult:
        return evaluate_choices(scene, tile_id)


class MatrixAwakeningBehavior:
    """Any click during the awakening animation skips straight to its auto-advance target."""

    def handle(self, tile_id: str, action_tag: str, scene: Scene) -> TransitionResult:
        auto = scene.auto_advance
        if auto is None:
            return evaluate_choices(scene, tile_id)
        target = auto.next_scene
        return DirectTransition(
            scene_id=target.scene_id,
            subscene_id=target.subscene_id,
            message=f"Fast-forwarding Matrix animation to Scene {target.scene_id}.{target.subscene_id}",
            effects={"animationTrigger": "matrix_fast_forward", "transitionType": "smooth"},
            echo="matrix_acceleration",
            matrix_action="fastForward",
        )


class MatrixStaticBehavior:
    def handle(self, tile_id: str, action_tag: str, scene: Scene) -> TransitionResult:
        return _zoom(tile_id, evaluate_choices(scene, tile_id))


class VaultBehavior:
    def handle(self, tile_id: str, action_tag: str, scene: Scene) -> TransitionResult:
        if tile_id == HOME_TILE:
            return _zoom(
                tile_id,
                DirectTransition(
                    scene_id=1,
                    subscene_id=1,
                    message="Returning to homepage (Scene 1.1)",
                    effects={"animationTrigger": "vault_exit", "transitionType": "return_to_matrix"},
                    echo="home_return",
                    matrix_action="restart",
                ),
            )

        chosen = evaluate_choices(scene, tile_id)
        if chosen.is_no_op:
            # nothing claims this tile: stay put in the vault
            chosen = DirectTransition(
                scene_id=scene.scene_id,
                subscene_id=scene.subscene_id,
                message="Vault interaction",
                effects={"animationTrigger": "vault_interaction", "transitionType": "none"},
                echo="vault_exploration",
            )
        return _zoom(tile_id, chosen)


class SceneBehaviorRegistry:
    def __init__(self) -> None:
        self._behaviors: dict[SceneKey, SceneBehavior] = {}

    def register(self, scene_id: int, subscene_id: int, behavior: SceneBehavior) -> None:
        self._behaviors[SceneKey(scene_id, subscene_id)] = behavior

    def get(self, key: SceneKey) -> SceneBehavior | None:
        return self._behaviors.get(key)

    def keys(self) -> list[SceneKey]:
        return sorted(self._behaviors)


def build_default_registry() -> SceneBehaviorRegistry:
    registry = SceneBehaviorRegistry()
    registry.register(1, 1, MatrixAwakeningBehavior())
    registry.register(1, 2, MatrixStaticBehavior())
    registry.register(2, 1, VaultBehavior())
    return registry
