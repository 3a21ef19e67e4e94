from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

from scenegrid.db import session as db_session

ROOT = Path(__file__).resolve().parents[2]


def run_alembic_upgrade(db_path: Path) -> subprocess.CompletedProcess:
    env = os.environ.copy()
    env["DATABASE_URL"] = f"sqlite:///{db_path}"
    return subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=ROOT,
        env=env,
        capture_output=True,
        text=True,
    )


def prepare_sqlite_db(tmp_path: Path, filename: str) -> str:
    db_path = tmp_path / filename
    proc = run_alembic_upgrade(db_path)
    assert proc.returncode == 0, proc.stderr
    runtime_url = f"sqlite+pysqlite:///{db_path}"
    db_session.rebind_engine(runtime_url)
    return runtime_url
