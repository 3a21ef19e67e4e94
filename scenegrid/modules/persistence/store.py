from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from scenegrid.db import session as db_session
from scenegrid.db.models import GridSession, InteractionLog, SceneRecord
from scenegrid.modules.persistence.errors import PersistenceUnavailable
from scenegrid.modules.persistence.schemas import InteractionLogEntry, StoredSession
from scenegrid.modules.scenes.schemas import Scene
from scenegrid.utils.time import utc_now_naive

logger = logging.getLogger(__name__)


def default_session_name() -> str:
    return f"Grid Session {utc_now_naive().isoformat(timespec='seconds')}"


def _scene_payload(row: SceneRecord) -> dict:
    return {
        "sceneId": row.scene_id,
        "subsceneId": row.subscene_id,
        "title": row.title,
        "description": row.description,
        "backgroundType": row.background_type,
        "backgroundPath": row.background_path,
        "gridConfig": dict(row.grid_config or {}),
        "tiles": list(row.tiles or []),
        "choices": list(row.choices or []),
        "effects": dict(row.effects or {}),
        "nextScenes": list(row.next_scenes or []),
        "echoTriggers": list(row.echo_triggers or []),
        "isActive": bool(row.is_active),
        "metadata": {
            "title": row.title,
            "description": row.description,
            "backgroundType": row.background_type,
        },
    }


def _log_entry_out(row: InteractionLog) -> InteractionLogEntry:
    return InteractionLogEntry(
        scene=row.scene,
        subscene=row.subscene,
        grid_tile=row.grid_tile,
        zoom_target=row.zoom_target,
        next_scene=row.next_scene,
        timestamp=row.timestamp,
    )


def _session_out(row: GridSession, log: list[InteractionLogEntry] | None = None) -> StoredSession:
    return StoredSession(
        id=row.id,
        owner_id=row.owner_id,
        session_name=row.session_name,
        is_active=bool(row.is_active),
        created_at=row.created_at,
        updated_at=row.updated_at,
        log=list(log or []),
    )


class SceneDataStore:
    """SQLAlchemy-backed scene and session storage.

    Every public method is its own unit of work; rows never escape the session they were
    loaded in. Any database failure surfaces as ``PersistenceUnavailable``.
    """

    def __init__(self, session_factory: sessionmaker | None = None):
        self._session_factory = session_factory

    def _new_session(self) -> Session:
        factory = self._session_factory or db_session.SessionLocal
        return factory()

    @contextmanager
    def _unit_of_work(self, operation: str) -> Iterator[Session]:
        try:
            with self._new_session() as db, db.begin():
                yield db
        except SQLAlchemyError as exc:
            logger.warning("scene_store_unavailable", extra={"operation": operation, "error": str(exc)})
            raise PersistenceUnavailable(operation, str(exc)) from exc

    # scenes

    def find_scene(self, scene_id: int, subscene_id: int) -> dict | None:
        with self._unit_of_work("find_scene") as db:
            row = db.execute(
                select(SceneRecord).where(
                    SceneRecord.scene_id == scene_id,
                    SceneRecord.subscene_id == subscene_id,
                )
            ).scalar_one_or_none()
            return _scene_payload(row) if row is not None else None

    def upsert_scene(self, scene: Scene) -> dict:
        payload = scene.payload()
        with self._unit_of_work("upsert_scene") as db:
            row = db.execute(
                select(SceneRecord).where(
                    SceneRecord.scene_id == scene.scene_id,
                    SceneRecord.subscene_id == scene.subscene_id,
                )
            ).scalar_one_or_none()
            if row is None:
                row = SceneRecord(scene_id=scene.scene_id, subscene_id=scene.subscene_id)
                db.add(row)
            row.title = scene.title
            row.description = scene.description
            row.background_type = scene.background_type
            row.background_path = scene.background_path
            row.grid_config = payload["gridConfig"]
            row.tiles = payload["tiles"]
            row.choices = payload["choices"]
            row.effects = payload["effects"]
            row.next_scenes = payload["nextScenes"]
            row.echo_triggers = payload["echoTriggers"]
            row.is_active = scene.is_active
            row.updated_at = utc_now_naive()
            db.flush()
            return _scene_payload(row)

    def list_scenes(self, *, active_only: bool = False) -> list[dict]:
        with self._unit_of_work("list_scenes") as db:
            stmt = select(SceneRecord).order_by(SceneRecord.scene_id.asc(), SceneRecord.subscene_id.asc())
            if active_only:
                stmt = stmt.where(SceneRecord.is_active.is_(True))
            return [_scene_payload(row) for row in db.execute(stmt).scalars().all()]

    # sessions

    def find_session(self, session_id: str) -> StoredSession | None:
        with self._unit_of_work("find_session") as db:
            row = db.get(GridSession, session_id)
            return _session_out(row) if row is not None else None

    def find_session_with_log(self, session_id: str) -> StoredSession | None:
        with self._unit_of_work("find_session_with_log") as db:
            row = db.get(GridSession, session_id)
            if row is None:
                return None
            log_rows = db.execute(
                select(InteractionLog)
                .where(InteractionLog.session_id == session_id)
                .order_by(InteractionLog.timestamp.asc(), InteractionLog.id.asc())
            ).scalars().all()
            return _session_out(row, [_log_entry_out(item) for item in log_rows])

    def create_session(
        self,
        session_id: str,
        *,
        owner_id: str | None = None,
        session_name: str | None = None,
    ) -> StoredSession:
        try:
            with self._unit_of_work("create_session") as db:
                now = utc_now_naive()
                row = GridSession(
                    id=session_id,
                    owner_id=owner_id,
                    session_name=session_name or default_session_name(),
                    is_active=True,
                    created_at=now,
                    updated_at=now,
                )
                db.add(row)
                db.flush()
                return _session_out(row)
        except PersistenceUnavailable as exc:
            if not isinstance(exc.__cause__, IntegrityError):
                raise
        # another writer created the same id first
        existing = self.find_session(session_id)
        if existing is None:
            raise PersistenceUnavailable("create_session", f"session {session_id} vanished after conflict")
        return existing

    def append_log_entry(self, session_id: str, entry: InteractionLogEntry) -> InteractionLogEntry:
        with self._unit_of_work("append_log_entry") as db:
            now = utc_now_naive()
            session_row = db.get(GridSession, session_id)
            if session_row is None:
                db.add(
                    GridSession(
                        id=session_id,
                        session_name=default_session_name(),
                        is_active=True,
                        created_at=now,
                        updated_at=now,
                    )
                )
                db.flush()
            else:
                # a click on a closed session reopens it
                session_row.is_active = True
                session_row.updated_at = now
            db.add(
                InteractionLog(
                    session_id=session_id,
                    scene=entry.scene,
                    subscene=entry.subscene,
                    grid_tile=entry.grid_tile,
                    zoom_target=entry.zoom_target,
                    next_scene=entry.next_scene,
                    timestamp=entry.timestamp,
                )
            )
        return entry

    def deactivate_session(self, session_id: str) -> bool:
        with self._unit_of_work("deactivate_session") as db:
            row = db.get(GridSession, session_id)
            if row is None:
                return False
            row.is_active = False
            row.updated_at = utc_now_naive()
            return True

    def delete_inactive_sessions_older_than(self, cutoff: datetime) -> int:
        with self._unit_of_work("delete_inactive_sessions") as db:
            stale_ids = list(
                db.execute(
                    select(GridSession.id).where(
                        GridSession.is_active.is_(False),
                        GridSession.updated_at < cutoff,
                    )
                ).scalars()
            )
            if not stale_ids:
                return 0
            db.execute(delete(InteractionLog).where(InteractionLog.session_id.in_(stale_ids)))
            db.execute(delete(GridSession).where(GridSession.id.in_(stale_ids)))
            return len(stale_ids)
