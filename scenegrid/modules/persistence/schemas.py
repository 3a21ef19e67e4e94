from __future__ import annotations

from datetime import datetime

from pydantic import Field

from scenegrid.utils.models import CamelModel
from scenegrid.utils.time import utc_now_naive


class InteractionLogEntry(CamelModel):
    scene: int
    subscene: int
    grid_tile: str
    zoom_target: str | None = None
    next_scene: dict | None = None
    timestamp: datetime = Field(default_factory=utc_now_naive)


class StoredSession(CamelModel):
    id: str
    owner_id: str | None = None
    session_name: str = ""
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
    log: list[InteractionLogEntry] = Field(default_factory=list)
