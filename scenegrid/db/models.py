from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from scenegrid.db.base import Base
from scenegrid.db.types import JSONType
from scenegrid.utils.time import utc_now_naive


class SceneRecord(Base):
    __tablename__ = "scenes"
    __table_args__ = (
        UniqueConstraint("scene_id", "subscene_id", name="uq_scenes_scene_subscene"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scene_id: Mapped[int] = mapped_column(Integer, index=True)
    subscene_id: Mapped[int] = mapped_column(Integer, index=True)
    title: Mapped[str] = mapped_column(String(256), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    background_type: Mapped[str] = mapped_column(String(64), default="static-grid")
    background_path: Mapped[str | None] = mapped_column(String(512), nullable=True)
    grid_config: Mapped[dict] = mapped_column(JSONType, default=dict)
    tiles: Mapped[list] = mapped_column(JSONType, default=list)
    choices: Mapped[list] = mapped_column(JSONType, default=list)
    effects: Mapped[dict] = mapped_column(JSONType, default=dict)
    next_scenes: Mapped[list] = mapped_column(JSONType, default=list)
    echo_triggers: Mapped[list] = mapped_column(JSONType, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive, onupdate=utc_now_naive)


class GridSession(Base):
    __tablename__ = "grid_sessions"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    owner_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    session_name: Mapped[str] = mapped_column(String(256), default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive, onupdate=utc_now_naive, index=True)


class InteractionLog(Base):
    __tablename__ = "interaction_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("grid_sessions.id", ondelete="CASCADE"),
        index=True,
    )
    scene: Mapped[int] = mapped_column(Integer)
    subscene: Mapped[int] = mapped_column(Integer)
    grid_tile: Mapped[str] = mapped_column(String(16))
    zoom_target: Mapped[str | None] = mapped_column(String(16), nullable=True)
    next_scene: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utc_now_naive, index=True)


Index("ix_interaction_logs_session_timestamp", InteractionLog.session_id, InteractionLog.timestamp)
