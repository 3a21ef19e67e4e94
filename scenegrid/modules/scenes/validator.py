from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from jsonschema import Draft202012Validator
from pydantic import Field

from scenegrid.modules.grid.codec import from_tile_id, is_valid_tile_id
from scenegrid.modules.scenes.errors import SceneValidationViolation
from scenegrid.modules.scenes.schemas import (
    BACKGROUND_TYPES,
    FRONTEND_ACTIONS,
    TILE_HANDLERS,
    Scene,
    TileEquals,
    parse_condition,
)
from scenegrid.utils.models import CamelModel

logger = logging.getLogger(__name__)

_POSITIVE_INT = {"type": "integer", "minimum": 1}
_DIMENSION = {"type": "integer", "minimum": 1, "maximum": 100}
_DELAY_MS = {"type": "integer", "minimum": 0}
_SCENE_REF_OBJECT = {
    "type": "object",
    "required": ["sceneId", "subsceneId"],
    "properties": {"sceneId": _POSITIVE_INT, "subsceneId": _POSITIVE_INT},
}
_ACTION_LIST = {"type": ["array", "null"], "items": {"type": "string"}}

_TILE_OBJECT_SCHEMA = {
    "type": "object",
    "required": ["id", "handler"],
    "properties": {
        "id": {"type": "string"},
        "handler": {"enum": list(TILE_HANDLERS)},
        "actions": {
            "type": ["object", "null"],
            "properties": {
                "frontend": {"type": ["array", "null"], "items": {"enum": list(FRONTEND_ACTIONS)}},
                "backend": _ACTION_LIST,
            },
        },
        "effects": {"type": ["object", "null"]},
    },
}

SCENE_RECORD_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["sceneId", "subsceneId", "gridConfig", "tiles", "metadata"],
    "properties": {
        "sceneId": _POSITIVE_INT,
        "subsceneId": _POSITIVE_INT,
        "gridConfig": {
            "type": "object",
            "required": ["rows", "cols"],
            "properties": {
                "rows": _DIMENSION,
                "cols": _DIMENSION,
                "triggerTile": {"type": ["string", "null"]},
            },
        },
        "tiles": {
            "type": "array",
            "items": {"if": {"type": "object"}, "then": _TILE_OBJECT_SCHEMA, "else": {"type": "string"}},
        },
        "choices": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "required": ["label", "next"],
                "properties": {
                    "label": {"type": "string"},
                    "next": {
                        "if": {"type": "array"},
                        "then": {"minItems": 2, "maxItems": 2, "items": _POSITIVE_INT},
                        "else": _SCENE_REF_OBJECT,
                    },
                    "effects": {"type": ["object", "null"]},
                    "echo": {"type": ["string", "null"]},
                },
            },
        },
        "effects": {
            "type": ["object", "null"],
            "properties": {
                "autoAdvanceAfterMs": _DELAY_MS,
                "autoAdvanceAfter": _DELAY_MS,
                "nextScene": {
                    "if": {"type": "array"},
                    "then": {"minItems": 2, "maxItems": 2, "items": _POSITIVE_INT},
                    "else": _SCENE_REF_OBJECT,
                },
            },
        },
        "nextScenes": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "required": ["sceneId", "subsceneId", "triggerTile"],
                "properties": {
                    "sceneId": _POSITIVE_INT,
                    "subsceneId": _POSITIVE_INT,
                    "triggerTile": {"type": "string"},
                },
            },
        },
        "metadata": {
            "type": "object",
            "required": ["title", "backgroundType"],
            "properties": {
                "title": {"type": "string"},
                "backgroundType": {"enum": list(BACKGROUND_TYPES)},
            },
        },
    },
}

_SCHEMA_VALIDATOR = Draft202012Validator(SCENE_RECORD_SCHEMA)


class SceneValidationReport(CamelModel):
    scene_key: str
    ok: bool
    violations: list[str] = Field(default_factory=list)

    def raise_for_violations(self) -> None:
        if not self.ok:
            raise SceneValidationViolation(self.scene_key, self.violations)


def _structural_violations(payload: Mapping[str, Any]) -> list[str]:
    violations: list[str] = []
    for error in sorted(_SCHEMA_VALIDATOR.iter_errors(payload), key=lambda e: [str(part) for part in e.absolute_path]):
        path = "/".join(str(part) for part in error.absolute_path) or "<root>"
        violations.append(f"SCHEMA:{path}:{error.message}")
    return violations


def _grid_bounds(payload: Mapping[str, Any]) -> tuple[int, int] | None:
    grid = payload.get("gridConfig")
    if not isinstance(grid, Mapping):
        return None
    rows, cols = grid.get("rows"), grid.get("cols")
    if isinstance(rows, int) and isinstance(cols, int) and rows >= 1 and cols >= 1:
        return rows, cols
    return None


def _check_tile_ref(scope: str, tile_id: Any, bounds: tuple[int, int] | None, violations: list[str]) -> bool:
    if not is_valid_tile_id(tile_id):
        violations.append(f"MALFORMED_TILE_ID:{scope}:{tile_id}")
        return False
    if bounds is not None:
        coord = from_tile_id(tile_id)
        rows, cols = bounds
        if coord.row >= rows or coord.col >= cols:
            violations.append(f"TILE_OUT_OF_BOUNDS:{scope}:{tile_id}")
    return True


# sections with the wrong shape are already reported by the schema pass
def _section(payload: Mapping[str, Any], key: str) -> list:
    value = payload.get(key)
    return value if isinstance(value, list) else []


def _is_scene_ref(pair: Any) -> bool:
    return len(pair) == 2 and all(isinstance(part, int) and not isinstance(part, bool) for part in pair)


def _semantic_violations(payload: Mapping[str, Any]) -> list[str]:
    violations: list[str] = []
    bounds = _grid_bounds(payload)

    grid = payload.get("gridConfig")
    if isinstance(grid, Mapping) and grid.get("triggerTile") is not None:
        _check_tile_ref("gridConfig.triggerTile", grid.get("triggerTile"), bounds, violations)

    seen_tile_ids: set[str] = set()
    for index, tile in enumerate(_section(payload, "tiles")):
        if isinstance(tile, str):
            tile = {"id": tile, "handler": "none"}
        if not isinstance(tile, Mapping):
            continue
        tile_id = tile.get("id")
        if not _check_tile_ref(f"tiles[{index}]", tile_id, bounds, violations):
            continue
        if tile_id in seen_tile_ids:
            violations.append(f"DUPLICATE_TILE_ID:{tile_id}")
        seen_tile_ids.add(tile_id)

        actions = tile.get("actions") if isinstance(tile.get("actions"), Mapping) else {}
        handler = tile.get("handler")
        if handler == "none" and (actions.get("frontend") or actions.get("backend")):
            violations.append(f"NONE_HANDLER_HAS_ACTIONS:{tile_id}")
        if handler == "frontend" and actions.get("backend"):
            violations.append(f"FRONTEND_HANDLER_HAS_BACKEND_ACTIONS:{tile_id}")

    links: set[tuple[int, int, str]] = set()
    for index, link in enumerate(_section(payload, "nextScenes")):
        if not isinstance(link, Mapping):
            continue
        trigger = link.get("triggerTile")
        if _check_tile_ref(f"nextScenes[{index}].triggerTile", trigger, bounds, violations) and _is_scene_ref(
            (link.get("sceneId"), link.get("subsceneId"))
        ):
            links.add((link["sceneId"], link["subsceneId"], trigger))

    for index, choice in enumerate(_section(payload, "choices")):
        if not isinstance(choice, Mapping):
            continue
        condition = choice.get("condition")
        if isinstance(condition, str) and condition.strip():
            try:
                condition = parse_condition(condition)
            except ValueError:
                violations.append(f"UNSUPPORTED_CONDITION:choices[{index}]:{condition}")
                continue
        elif isinstance(condition, Mapping):
            is_equals = condition.get("kind") == "equals" and isinstance(condition.get("tile"), str)
            condition = TileEquals(tile=condition["tile"]) if is_equals else None
        if not isinstance(condition, TileEquals):
            continue
        target = choice.get("next")
        if isinstance(target, Mapping):
            target = (target.get("sceneId"), target.get("subsceneId"))
        if not isinstance(target, (list, tuple)) or not _is_scene_ref(target):
            continue
        if (target[0], target[1], condition.tile) not in links:
            violations.append(
                f"MISSING_NEXT_SCENE_LINK:choices[{index}]:{condition.tile}->{target[0]}.{target[1]}"
            )
    return violations


def _scene_key_label(payload: Mapping[str, Any]) -> str:
    return f"{payload.get('sceneId', '?')}.{payload.get('subsceneId', '?')}"


def validate_scene(scene: Scene | Mapping[str, Any]) -> SceneValidationReport:
    payload = scene.payload() if isinstance(scene, Scene) else scene
    if not isinstance(payload, Mapping):
        scene_key = "?.?"
        violations = ["SCHEMA:<root>:scene record must be an object"]
    else:
        scene_key = _scene_key_label(payload)
        violations = _structural_violations(payload) + _semantic_violations(payload)

    report = SceneValidationReport(scene_key=scene_key, ok=not violations, violations=violations)
    if report.ok:
        logger.info("scene_validation_passed", extra={"scene_key": scene_key})
    else:
        logger.warning(
            "scene_validation_failed",
            extra={"scene_key": scene_key, "violation_count": len(violations), "violations": violations},
        )
    return report
