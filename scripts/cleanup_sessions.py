#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from scenegrid.config import settings
from scenegrid.logging_config import configure_logging
from scenegrid.modules.engine.service import SceneEngine


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete inactive grid sessions older than the retention window.")
    parser.add_argument(
        "--days",
        type=int,
        default=settings.journal_retention_days,
        help="Age in days after which inactive sessions are removed.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    configure_logging(settings.app_name, settings.env, settings.log_level)
    deleted = SceneEngine().cleanup_old_sessions(args.days)
    print(f"cleaned up sessions deleted={deleted} older_than_days={args.days}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
