from __future__ import annotations

from pathlib import Path

import pytest

from scenegrid.db import session as db_session
from scenegrid.db.base import Base
from scenegrid.db.models import GridSession, InteractionLog, SceneRecord  # noqa: F401
from scenegrid.modules.journal.service import reset_active_sessions


@pytest.fixture(autouse=True)
def _reset_db_and_mirror(tmp_path: Path) -> None:
    db_session.rebind_engine(f"sqlite+pysqlite:///{tmp_path / 'scenegrid_test.db'}")
    reset_active_sessions()
    Base.metadata.create_all(bind=db_session.engine)
    yield
    reset_active_sessions()
    Base.metadata.drop_all(bind=db_session.engine)
    db_session.engine.dispose()
