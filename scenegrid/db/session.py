from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from scenegrid.config import settings


def _make_engine(database_url: str):
    engine = create_engine(database_url, future=True)
    if engine.dialect.name == "sqlite":
        # interaction_logs cascade on session delete only when sqlite enforces foreign keys
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = _make_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def rebind_engine(database_url: str) -> None:
    global engine, SessionLocal
    engine = _make_engine(database_url)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

