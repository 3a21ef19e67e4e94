from scenegrid.db import session as db_session
from scenegrid.db.base import Base
from scenegrid.db.models import GridSession, InteractionLog, SceneRecord  # noqa: F401


def init_db() -> None:
    Base.metadata.create_all(bind=db_session.engine)
