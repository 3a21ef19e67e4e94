import os

from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_DEFAULT_DB_URL = "sqlite:///./scenegrid.db"


class Settings(BaseSettings):
    app_name: str = "scenegrid"
    env: str = "dev"
    database_url: str = "sqlite+pysqlite:///./scenegrid.db"
    log_level: str | None = None

    seed_scenes_on_startup: bool = True
    journal_retention_days: int = 30

    default_grid_rows: int = 7
    default_grid_cols: int = 11

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def _is_sqlite_memory_url(db_url: str) -> bool:
    candidate = (db_url or "").strip().lower()
    if not candidate.startswith("sqlite"):
        return False
    if ":memory:" in candidate:
        return True
    return candidate in {
        "sqlite://",
        "sqlite:///",
        "sqlite+pysqlite://",
        "sqlite+pysqlite:///",
    }


def validate_database_url(env: str, db_url: str | None) -> str:
    env_value = (env or "").strip().lower()
    if env_value != "dev":
        return db_url or ""

    if not db_url or not db_url.strip():
        return DEV_DEFAULT_DB_URL

    if _is_sqlite_memory_url(db_url):
        raise RuntimeError(
            "DATABASE_URL cannot be sqlite :memory: when ENV=dev because interaction logs will disappear. "
            f"Set DATABASE_URL={DEV_DEFAULT_DB_URL} or another file-based sqlite url."
        )
    return db_url


settings = Settings()
_raw_db_url = os.getenv("DATABASE_URL")
if settings.env == "dev":
    settings.database_url = validate_database_url(settings.env, _raw_db_url)
else:
    settings.database_url = validate_database_url(settings.env, _raw_db_url or settings.database_url)
