from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Union

from pydantic import Field, ValidationError, field_validator, model_validator

from scenegrid.config import settings
from scenegrid.modules.grid.codec import parse_range
from scenegrid.utils.models import CamelModel

BACKGROUND_TYPES = (
    "matrix-animated",
    "matrix-static",
    "vault",
    "dungeon",
    "hand-drawn",
    "static-grid",
)
TILE_HANDLERS = ("frontend", "backend", "both", "none")
FRONTEND_ACTIONS = ("cursor_zoom", "background_communication", "matrix_animation_trigger")

logger = logging.getLogger(__name__)

_CONDITION_PATTERN = re.compile(r"^\s*gridId\s*(===|!==)\s*'([^']+)'\s*$")


@dataclass(frozen=True, order=True)
class SceneKey:
    scene_id: int
    subscene_id: int

    @property
    def label(self) -> str:
        return f"{self.scene_id}.{self.subscene_id}"

    def __str__(self) -> str:
        return self.label


class SceneRef(CamelModel):
    scene_id: int
    subscene_id: int

    @model_validator(mode="before")
    @classmethod
    def _accept_pair(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return {"sceneId": value[0], "subsceneId": value[1]}
        return value

    @property
    def key(self) -> SceneKey:
        return SceneKey(self.scene_id, self.subscene_id)


class GridConfig(CamelModel):
    rows: int = 0
    cols: int = 0
    gap: str = "2px"
    padding: str = "20px"
    debug: bool = False
    invisible_mode: bool = False
    matrix_animation_mode: bool = False
    trigger_tile: str | None = None
    excel_range: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_dimensions(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        data = dict(value)
        rows = data.get("rows")
        cols = data.get("cols")
        if rows is None and cols is None:
            excel_range = data.get("excelRange", data.get("excel_range"))
            if excel_range:
                grid_range = parse_range(excel_range)
                data["rows"] = grid_range.rows
                data["cols"] = grid_range.cols
            else:
                data["rows"] = settings.default_grid_rows
                data["cols"] = settings.default_grid_cols
        return data


class TileActions(CamelModel):
    frontend: list[str] | None = None
    backend: list[str] | None = None


class Tile(CamelModel):
    id: str
    handler: str = "none"
    actions: TileActions = Field(default_factory=TileActions)
    effects: dict = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"id": value, "handler": "none"}
        if not isinstance(value, dict):
            return value
        data = dict(value)
        actions = data.get("actions")
        if isinstance(actions, dict) and "effects" in actions:
            actions = dict(actions)
            lifted = actions.pop("effects") or {}
            data["actions"] = actions
            data["effects"] = {**lifted, **(data.get("effects") or {})}
        return data


class TileEquals(CamelModel):
    kind: Literal["equals"] = "equals"
    tile: str

    def matches(self, tile_id: str) -> bool:
        return tile_id == self.tile


class TileNotEquals(CamelModel):
    kind: Literal["not_equals"] = "not_equals"
    tile: str

    def matches(self, tile_id: str) -> bool:
        return tile_id != self.tile


TileCondition = Annotated[Union[TileEquals, TileNotEquals], Field(discriminator="kind")]


def parse_condition(text: str) -> TileEquals | TileNotEquals:
    match = _CONDITION_PATTERN.match(text)
    if match is None:
        raise ValueError(f"unsupported choice condition: {text!r}")
    operator, tile = match.groups()
    if operator == "===":
        return TileEquals(tile=tile)
    return TileNotEquals(tile=tile)


class Choice(CamelModel):
    label: str
    next: tuple[int, int]
    condition: TileCondition | None = None
    effects: dict = Field(default_factory=dict)
    echo: str | None = None
    matrix_action: str | None = None
    navigate_to: str | None = None

    @field_validator("condition", mode="before")
    @classmethod
    def _parse_condition_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value.strip():
                return None
            return parse_condition(value)
        return value

    @field_validator("next", mode="before")
    @classmethod
    def _accept_ref(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return (value.get("sceneId", value.get("scene_id")), value.get("subsceneId", value.get("subscene_id")))
        return value

    def matches(self, tile_id: str) -> bool:
        return self.condition is None or self.condition.matches(tile_id)


class NextSceneLink(CamelModel):
    scene_id: int
    subscene_id: int
    trigger_tile: str | None = None
    label: str = ""


class AutoAdvanceConfig(CamelModel):
    delay_ms: int
    next_scene: SceneRef


class Scene(CamelModel):
    scene_id: int
    subscene_id: int
    title: str = ""
    description: str = ""
    background_type: str = "static-grid"
    background_path: str | None = None
    grid_config: GridConfig = Field(default_factory=GridConfig)
    tiles: list[Tile] = Field(default_factory=list)
    choices: list[Choice] = Field(default_factory=list)
    effects: dict = Field(default_factory=dict)
    next_scenes: list[NextSceneLink] = Field(default_factory=list)
    echo_triggers: list[str] = Field(default_factory=list)
    is_active: bool = True

    @model_validator(mode="before")
    @classmethod
    def _lift_metadata(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        data = dict(value)
        metadata = data.pop("metadata", None) or {}
        for key in ("title", "description", "backgroundType"):
            if key not in data and key in metadata:
                data[key] = metadata[key]
        for key in ("tiles", "choices", "nextScenes", "echoTriggers"):
            if key in data and data[key] is None:
                data[key] = []
        effects = dict(data.get("effects") or {})
        legacy_next = data.pop("nextScene", None)
        if legacy_next is not None and "nextScene" not in effects:
            effects["nextScene"] = legacy_next
        data["effects"] = effects
        return data

    @property
    def key(self) -> SceneKey:
        return SceneKey(self.scene_id, self.subscene_id)

    @property
    def auto_advance(self) -> AutoAdvanceConfig | None:
        """None unless the effects carry an integer delay and a parseable target."""
        delay = self.effects.get("autoAdvanceAfterMs", self.effects.get("autoAdvanceAfter"))
        if delay is None:
            return None
        target = self.default_next
        if target is None:
            return None
        if isinstance(delay, float) and delay.is_integer():
            delay = int(delay)
        if not isinstance(delay, int) or isinstance(delay, bool) or delay < 0:
            logger.warning(
                "scene_auto_advance_ignored",
                extra={"scene_key": self.key.label, "reason": "delay_not_integer", "delay": repr(delay)},
            )
            return None
        return AutoAdvanceConfig(delay_ms=delay, next_scene=target)

    @property
    def default_next(self) -> SceneRef | None:
        target = self.effects.get("nextScene")
        if target is None:
            return None
        try:
            return SceneRef.model_validate(target)
        except ValidationError:
            logger.warning(
                "scene_next_scene_ignored",
                extra={"scene_key": self.key.label, "next_scene": repr(target)},
            )
            return None

    def payload(self) -> dict:
        data = self.model_dump(by_alias=True, mode="json")
        data["metadata"] = {
            "title": self.title,
            "description": self.description,
            "backgroundType": self.background_type,
        }
        return data
