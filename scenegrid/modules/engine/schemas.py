from __future__ import annotations

from pydantic import Field

from scenegrid.modules.journal.schemas import ActiveSession
from scenegrid.modules.scenes.schemas import AutoAdvanceConfig
from scenegrid.modules.scenes.validator import SceneValidationReport
from scenegrid.utils.models import CamelModel


class GridActionRequest(CamelModel):
    grid_id: str = Field(min_length=1)
    current_scene: int = Field(ge=1)
    current_subscene: int = Field(ge=1)
    action: str = "grid_click"
    session_id: str | None = None


class SceneListResponse(CamelModel):
    scenes: list[dict]
    count: int


class SceneUpsertResponse(CamelModel):
    scene: dict
    validation: SceneValidationReport


class AutoAdvanceResponse(CamelModel):
    has_auto_advance: bool
    config: AutoAdvanceConfig | None = None


class ActiveSessionsResponse(CamelModel):
    sessions: list[ActiveSession]
    count: int


class SessionCloseResponse(CamelModel):
    session_id: str
    closed: bool
