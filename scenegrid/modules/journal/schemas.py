from __future__ import annotations

from datetime import datetime

from pydantic import Field

from scenegrid.utils.models import CamelModel


class ActiveSession(CamelModel):
    id: str
    owner_id: str | None = None
    interaction_count: int = 0
    last_activity: datetime


class JourneyStep(CamelModel):
    tile: str
    scene: str
    timestamp: datetime
    zoom_target: str | None = None
    next_scene: dict | None = None


class SessionInsights(CamelModel):
    session_id: str
    total_interactions: int
    scenes_visited: list[str] = Field(default_factory=list)
    tiles_clicked: list[str] = Field(default_factory=list)
    zoom_action_count: int = 0
    scene_transition_count: int = 0
    journey: list[JourneyStep] = Field(default_factory=list)
