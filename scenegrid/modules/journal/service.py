from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Protocol

from scenegrid.config import settings
from scenegrid.modules.journal.errors import SessionNotFound
from scenegrid.modules.journal.schemas import ActiveSession, JourneyStep, SessionInsights
from scenegrid.modules.persistence.schemas import InteractionLogEntry, StoredSession
from scenegrid.utils.time import days_ago_naive, utc_now_naive

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    def find_session_with_log(self, session_id: str) -> StoredSession | None:
        ...

    def create_session(
        self,
        session_id: str,
        *,
        owner_id: str | None = None,
        session_name: str | None = None,
    ) -> StoredSession:
        ...

    def append_log_entry(self, session_id: str, entry: InteractionLogEntry) -> InteractionLogEntry:
        ...

    def deactivate_session(self, session_id: str) -> bool:
        ...

    def delete_inactive_sessions_older_than(self, cutoff: datetime) -> int:
        ...


@dataclass
class _MirroredSession:
    id: str
    owner_id: str | None
    log: list[InteractionLogEntry] = field(default_factory=list)
    last_activity: datetime = field(default_factory=utc_now_naive)


class _ActiveSessionMirror:
    """Process-local cache of sessions touched by this process. The store stays authoritative."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._sessions: dict[str, _MirroredSession] = {}

    def reset(self) -> None:
        with self._lock:
            self._sessions = {}

    def contains(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def put(self, session: StoredSession) -> None:
        with self._lock:
            self._sessions[session.id] = _MirroredSession(
                id=session.id,
                owner_id=session.owner_id,
                log=list(session.log),
            )

    def append(self, session_id: str, entry: InteractionLogEntry) -> None:
        with self._lock:
            mirrored = self._sessions.get(session_id)
            if mirrored is None:
                mirrored = _MirroredSession(id=session_id, owner_id=None)
                self._sessions[session_id] = mirrored
            mirrored.log.append(entry)
            mirrored.last_activity = utc_now_naive()

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def snapshot(self) -> list[ActiveSession]:
        with self._lock:
            return [
                ActiveSession(
                    id=item.id,
                    owner_id=item.owner_id,
                    interaction_count=len(item.log),
                    last_activity=item.last_activity,
                )
                for item in self._sessions.values()
            ]


_active_sessions = _ActiveSessionMirror()


def reset_active_sessions() -> None:
    _active_sessions.reset()


def summarize_session(session: StoredSession) -> SessionInsights:
    log = session.log
    scenes_visited: list[str] = []
    for entry in log:
        label = f"{entry.scene}.{entry.subscene}"
        if label not in scenes_visited:
            scenes_visited.append(label)
    return SessionInsights(
        session_id=session.id,
        total_interactions=len(log),
        scenes_visited=scenes_visited,
        tiles_clicked=[entry.grid_tile for entry in log],
        zoom_action_count=sum(1 for entry in log if entry.zoom_target),
        scene_transition_count=sum(1 for entry in log if entry.next_scene is not None),
        journey=[
            JourneyStep(
                tile=entry.grid_tile,
                scene=f"{entry.scene}.{entry.subscene}",
                timestamp=entry.timestamp,
                zoom_target=entry.zoom_target,
                next_scene=entry.next_scene,
            )
            for entry in log
        ],
    )


class SessionJournal:
    def __init__(self, store: SessionStore, *, mirror: _ActiveSessionMirror | None = None):
        self.store = store
        self.mirror = mirror if mirror is not None else _active_sessions

    def get_or_create_session(self, session_id: str, owner_id: str | None = None) -> StoredSession:
        session = self.store.find_session_with_log(session_id)
        if session is None:
            session = self.store.create_session(session_id, owner_id=owner_id)
            logger.info("journal_session_created", extra={"session_id": session_id, "owner_id": owner_id})
        self.mirror.put(session)
        return session

    def log_interaction(self, session_id: str, entry: InteractionLogEntry) -> InteractionLogEntry | None:
        """Best effort: a failed write is logged and reported as None, never raised."""
        try:
            if not self.mirror.contains(session_id):
                self.get_or_create_session(session_id)
            stored = self.store.append_log_entry(session_id, entry)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "journal_log_failed",
                extra={
                    "session_id": session_id,
                    "scene_key": f"{entry.scene}.{entry.subscene}",
                    "tile_id": entry.grid_tile,
                    "error": str(exc),
                },
            )
            return None
        self.mirror.append(session_id, stored)
        return stored

    def get_insights(self, session_id: str) -> SessionInsights:
        session = self.store.find_session_with_log(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return summarize_session(session)

    def list_active_sessions(self) -> list[ActiveSession]:
        return self.mirror.snapshot()

    def close_session(self, session_id: str) -> bool:
        closed = self.store.deactivate_session(session_id)
        self.mirror.discard(session_id)
        if closed:
            logger.info("journal_session_closed", extra={"session_id": session_id})
        return closed

    def cleanup_old_sessions(self, max_age_days: int | None = None) -> int:
        days = settings.journal_retention_days if max_age_days is None else int(max_age_days)
        deleted = self.store.delete_inactive_sessions_older_than(days_ago_naive(days))
        logger.info("journal_sessions_cleaned", extra={"deleted": deleted, "max_age_days": days})
        return deleted
