import sqlite3
from pathlib import Path

from tests.support.db_runtime import run_alembic_upgrade

REQUIRED_TABLES = {
    "scenes",
    "grid_sessions",
    "interaction_logs",
    "alembic_version",
}


def test_alembic_upgrade_head_smoke(tmp_path: Path) -> None:
    db_path = tmp_path / "migration_smoke.db"

    proc = run_alembic_upgrade(db_path)

    assert proc.returncode == 0, proc.stderr
    assert db_path.exists()

    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        scene_columns = {r[1] for r in conn.execute("PRAGMA table_info(scenes)").fetchall()}
    finally:
        conn.close()

    names = {r[0] for r in rows}
    missing = REQUIRED_TABLES - names
    assert not missing, f"Missing tables: {missing}"
    assert {"scene_id", "subscene_id", "grid_config", "tiles", "choices", "next_scenes"} <= scene_columns
