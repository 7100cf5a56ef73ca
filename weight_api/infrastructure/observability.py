"""Structured Logging — one JSON object per line for the API and its key set client.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Only allow-listed extras are emitted (error_code, path, method, status_code,
      operation, reason, entry_id); Authorization headers and tokens never are
    - httpx request logging is held at WARNING: key set fetches are reported by
      the token verifier itself, with the outcome
    - LOG_FORMAT=json for containers, anything else gives one plain line per record

Design Decisions:
    - A stdlib logging.Formatter subclass, configured from Settings in the lifespan
    - Extras are read off the record by name, so call sites pass extra={...} as usual
"""

import json
import logging
from datetime import datetime, timezone

_EXTRA_KEYS = (
    "error_code", "path", "method", "status_code",
    "operation", "reason", "entry_id",
)

_QUIET_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """Log record -> single-line JSON with the allow-listed extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, record.__dict__[key])
            for key in _EXTRA_KEYS
            if record.__dict__.get(key) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install one stderr handler on the root logger (replacing any others)."""
    handler = logging.StreamHandler()
    handler.setFormatter(
        JSONFormatter() if fmt == "json"
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"),
    )
    logging.root.handlers = [handler]
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
