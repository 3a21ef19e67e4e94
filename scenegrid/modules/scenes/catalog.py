"""Compiled scene catalog.

Every scene the narrative can reach, built at import time. This is the seed source for the
scene store and the data the evaluator falls back to when the store has nothing usable.
"""

from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType

from scenegrid.modules.grid.codec import all_tile_ids
from scenegrid.modules.scenes.errors import UnknownScene
from scenegrid.modules.scenes.schemas import AutoAdvanceConfig, Scene, SceneKey

GRID_ROWS = 7
GRID_COLS = 11
HOME_TILE = "K7"

_VAULT_DESCRIPTION = (
    "Deep underground, roots of an ancient tree hang from the ceiling. "
    "A massive vault door stands closed, with Thoradin waiting before it."
)

# (tile, label, animationTrigger, transitionType, echo) for the three vault hotspots
_VAULT_HOTSPOTS = (
    ("F4", "Interact with Thoradin", "character_interaction", "zoom_to_character", "thoradin_interaction"),
    ("G4", "Examine Vault Door", "vault_examination", "zoom_to_vault", "vault_examination"),
    ("F3", "Explore Roots", "root_exploration", "zoom_to_roots", "root_exploration"),
)

_LEAF_DETAILS = {
    "F4": ("Thoradin", "The dwarf keeper of the vault studies you without a word.", "thoradin_view"),
    "G4": ("The Vault Door", "Runes crawl across the iron door, cold under your hand.", "vault_door_view"),
    "F3": ("The Ancient Roots", "The roots pulse faintly, as if something far above is breathing.", "roots_view"),
}


def _grid_config(**overrides) -> dict:
    config = {
        "rows": GRID_ROWS,
        "cols": GRID_COLS,
        "gap": "2px",
        "padding": "20px",
        "debug": False,
        "invisibleMode": False,
        "matrixAnimationMode": False,
        "triggerTile": None,
    }
    config.update(overrides)
    return config


def _tiles(active: dict[str, dict], *, default_handler: str = "none", default_frontend: list[str] | None = None) -> list[dict]:
    tiles = []
    for tile_id in all_tile_ids(GRID_ROWS, GRID_COLS):
        if tile_id in active:
            tiles.append({"id": tile_id, **active[tile_id]})
            continue
        tiles.append(
            {
                "id": tile_id,
                "handler": default_handler,
                "actions": {"frontend": default_frontend, "backend": None},
                "effects": {},
            }
        )
    return tiles


def _zoom_tile(animation_trigger: str, transition_type: str) -> dict:
    return {
        "handler": "both",
        "actions": {"frontend": ["cursor_zoom"], "backend": ["scene_transition"]},
        "effects": {"animationTrigger": animation_trigger, "transitionType": transition_type},
    }


def _link(choice: dict, trigger_tile: str) -> dict:
    return {
        "sceneId": choice["next"][0],
        "subsceneId": choice["next"][1],
        "triggerTile": trigger_tile,
        "label": choice["label"],
    }


def _matrix_awakening() -> dict:
    fast_forward = {
        "label": "Fast-forward Matrix Animation",
        "next": [1, 2],
        "condition": {"kind": "equals", "tile": "A1"},
        "effects": {"animationTrigger": "matrix_fast_forward", "transitionType": "immediate"},
        "echo": "matrix_fast_forward",
        "matrixAction": "fastForward",
    }
    return {
        "sceneId": 1,
        "subsceneId": 1,
        "title": "Matrix Awakening",
        "description": "The spiral begins to spin...",
        "backgroundType": "matrix-animated",
        "gridConfig": _grid_config(matrixAnimationMode=True, triggerTile="A1"),
        "tiles": _tiles(
            {
                "A1": {
                    "handler": "frontend",
                    "actions": {"frontend": ["background_communication", "matrix_animation_trigger"], "backend": None},
                    "effects": {"animationTrigger": "matrix_fast_forward", "transitionType": "immediate"},
                }
            }
        ),
        "choices": [fast_forward],
        "effects": {"autoAdvanceAfterMs": 8000, "nextScene": {"sceneId": 1, "subsceneId": 2}},
        "nextScenes": [_link(fast_forward, "A1")],
        "echoTriggers": ["matrix_awakening"],
    }


def _matrix_static() -> dict:
    to_vault = {
        "label": "Navigate to Vault",
        "next": [2, 1],
        "condition": {"kind": "equals", "tile": HOME_TILE},
        "effects": {"animationTrigger": "scene_transition", "transitionType": "vault_entrance"},
        "echo": "vault_destination",
        "navigateTo": "vault",
    }
    restart = {
        "label": "Restart Matrix",
        "next": [1, 1],
        "condition": {"kind": "not_equals", "tile": HOME_TILE},
        "effects": {"animationTrigger": "matrix_restart", "transitionType": "spiral_reset"},
        "echo": "matrix_rebirth",
        "matrixAction": "restart",
    }
    return {
        "sceneId": 1,
        "subsceneId": 2,
        "title": "Matrix Spiral Static",
        "description": "The spiral has reached its final form",
        "backgroundType": "matrix-static",
        "gridConfig": _grid_config(),
        "tiles": _tiles(
            {HOME_TILE: _zoom_tile("scene_transition", "vault_entrance")},
            default_handler="frontend",
            default_frontend=["cursor_zoom"],
        ),
        "choices": [to_vault, restart],
        "effects": {"zoomRequired": True, "transitionType": "zoom_then_transition"},
        "nextScenes": [_link(to_vault, HOME_TILE), _link(restart, "A1")],
        "echoTriggers": ["matrix_static"],
    }


def _vault(scene_id: int, subscene_id: int, background_type: str, leaf_ids: Iterable[tuple[int, int]], *, with_home: bool) -> dict:
    choices = []
    links = []
    active = {}
    for (tile_id, label, trigger, transition, echo), target in zip(_VAULT_HOTSPOTS, leaf_ids):
        choice = {
            "label": label,
            "next": list(target),
            "condition": {"kind": "equals", "tile": tile_id},
            "effects": {"animationTrigger": trigger, "transitionType": transition},
            "echo": echo,
        }
        choices.append(choice)
        links.append(_link(choice, tile_id))
        active[tile_id] = _zoom_tile(trigger, transition)
    if with_home:
        home = {
            "label": "Return Home",
            "next": [1, 1],
            "condition": {"kind": "equals", "tile": HOME_TILE},
            "effects": {"animationTrigger": "vault_exit", "transitionType": "return_to_matrix"},
            "echo": "home_return",
            "matrixAction": "restart",
        }
        choices.append(home)
        links.append(_link(home, HOME_TILE))
        active[HOME_TILE] = _zoom_tile("vault_exit", "return_to_matrix")
    return {
        "sceneId": scene_id,
        "subsceneId": subscene_id,
        "title": "Thoradin's Vault",
        "description": _VAULT_DESCRIPTION,
        "backgroundType": background_type,
        "gridConfig": _grid_config(invisibleMode=True),
        "tiles": _tiles(active),
        "choices": choices,
        "effects": {
            "zoomRequired": True,
            "transitionType": "zoom_then_transition",
            "dungeonTheme": True,
            "characterInteraction": True,
        },
        "nextScenes": links,
        "echoTriggers": ["dungeon_vault", "thoradin_presence"],
    }


def _leaf(scene_id: int, subscene_id: int, hotspot: str, parent: tuple[int, int], background_type: str) -> dict:
    title, description, echo_trigger = _LEAF_DETAILS[hotspot]
    back = {
        "label": "Back to the Vault",
        "next": list(parent),
        "condition": {"kind": "equals", "tile": HOME_TILE},
        "effects": {"animationTrigger": "scene_transition", "transitionType": "zoom_out"},
        "echo": "vault_return",
    }
    return {
        "sceneId": scene_id,
        "subsceneId": subscene_id,
        "title": title,
        "description": description,
        "backgroundType": background_type,
        "gridConfig": _grid_config(invisibleMode=True),
        "tiles": _tiles({HOME_TILE: _zoom_tile("scene_transition", "zoom_out")}),
        "choices": [back],
        "effects": {},
        "nextScenes": [_link(back, HOME_TILE)],
        "echoTriggers": [echo_trigger],
    }


def _build_catalog() -> dict[SceneKey, Scene]:
    raw = [
        _matrix_awakening(),
        _matrix_static(),
        _vault(2, 1, "vault", [(2, 2), (2, 3), (2, 4)], with_home=True),
        _vault(1, 3, "dungeon", [(1, 4), (1, 5), (1, 6)], with_home=False),
    ]
    for offset, (hotspot, *_rest) in enumerate(_VAULT_HOTSPOTS):
        raw.append(_leaf(2, 2 + offset, hotspot, (2, 1), "hand-drawn"))
        raw.append(_leaf(1, 4 + offset, hotspot, (1, 3), "dungeon"))

    scenes = {}
    for payload in raw:
        scene = Scene.model_validate(payload)
        scenes[scene.key] = scene
    return dict(sorted(scenes.items()))


class CompiledSceneCatalog:
    def __init__(self, scenes: dict[SceneKey, Scene]):
        self._scenes = MappingProxyType(dict(scenes))

    def __contains__(self, key: object) -> bool:
        return key in self._scenes

    def __len__(self) -> int:
        return len(self._scenes)

    def keys(self) -> list[SceneKey]:
        return list(self._scenes.keys())

    def scenes(self) -> list[Scene]:
        return [scene.model_copy(deep=True) for scene in self._scenes.values()]

    def get(self, scene_id: int, subscene_id: int) -> Scene | None:
        scene = self._scenes.get(SceneKey(scene_id, subscene_id))
        if scene is None:
            return None
        return scene.model_copy(deep=True)

    def require(self, scene_id: int, subscene_id: int) -> Scene:
        scene = self.get(scene_id, subscene_id)
        if scene is None:
            raise UnknownScene(scene_id, subscene_id)
        return scene

    def has_auto_advance(self, scene_id: int, subscene_id: int) -> bool:
        return self.get_auto_advance_config(scene_id, subscene_id) is not None

    def get_auto_advance_config(self, scene_id: int, subscene_id: int) -> AutoAdvanceConfig | None:
        scene = self._scenes.get(SceneKey(scene_id, subscene_id))
        if scene is None:
            return None
        return scene.auto_advance


scene_catalog = CompiledSceneCatalog(_build_catalog())
