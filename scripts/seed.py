#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from scenegrid.config import settings
from scenegrid.db.bootstrap import init_db
from scenegrid.logging_config import configure_logging
from scenegrid.modules.engine.service import SceneEngine
from scenegrid.modules.scenes.errors import SceneValidationViolation


def seed_scenes(*, strict: bool) -> dict:
    init_db()
    reports = SceneEngine().seed_catalog(strict=strict)
    return {
        "seeded": len(reports),
        "invalid": [report.scene_key for report in reports if not report.ok],
    }


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upsert every compiled catalog scene into the scene store.")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Refuse to seed when any catalog scene has validation violations.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    configure_logging(settings.app_name, settings.env, settings.log_level)
    try:
        result = seed_scenes(strict=bool(args.strict))
    except SceneValidationViolation as exc:
        print(f"refusing to seed: {exc}", file=sys.stderr)
        return 1
    invalid = ",".join(result["invalid"]) or "none"
    print(f"seeded scenes count={result['seeded']} invalid={invalid}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
