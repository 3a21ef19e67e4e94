"""JSON log lines for the scene engine.

Every module logs a snake_case event name and passes its context through ``extra=``; the
formatter flattens those extras into the JSON object next to the standard fields.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from scenegrid.utils.time import utc_now_aware

# attributes every LogRecord carries; anything else on a record came in through extra=
_STANDARD_RECORD_ATTRS = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key not in _STANDARD_RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    def __init__(self, service: str, environment: str) -> None:
        super().__init__()
        self._static = {"service": service, "environment": environment}

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": utc_now_aware().isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            **self._static,
            "message": record.getMessage(),
            **record_extras(record),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def resolve_log_level(level: str | None, environment: str) -> int:
    if level and level.strip():
        name = level.strip().upper()
    elif environment.strip().lower() == "dev":
        name = "DEBUG"
    else:
        name = "INFO"
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(service: str, environment: str, log_level: str | None = None) -> None:
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JSONFormatter(service=service, environment=environment))
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(resolve_log_level(log_level, environment))
    # per-statement SQL is too chatty for the journal's write path
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
