from __future__ import annotations

import logging

from scenegrid.modules.scenes.schemas import Scene
from scenegrid.modules.transition.schemas import DirectTransition, no_transition

logger = logging.getLogger(__name__)


def evaluate_choices(scene: Scene, tile_id: str) -> DirectTransition:
    """First matching choice wins; then the scene's default next scene; then a no-op."""
    for choice in scene.choices:
        if not choice.matches(tile_id):
            continue
        logger.debug(
            "choice_selected",
            extra={"scene_key": scene.key.label, "tile_id": tile_id, "choice_label": choice.label},
        )
        return DirectTransition(
            scene_id=choice.next[0],
            subscene_id=choice.next[1],
            message=choice.label,
            effects=dict(choice.effects),
            echo=choice.echo or "grid_click",
            matrix_action=choice.matrix_action,
            navigate_to=choice.navigate_to,
        )

    default_next = scene.default_next
    if default_next is not None:
        return DirectTransition(
            scene_id=default_next.scene_id,
            subscene_id=default_next.subscene_id,
            message="Default transition",
            effects={},
            echo="default_transition",
        )
    return no_transition(scene.scene_id, scene.subscene_id)
