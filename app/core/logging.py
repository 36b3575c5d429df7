"""Structured logging setup.

JSON lines in production, plain text for local development. Called once from
the application lifespan.
"""

import json
import logging
from datetime import datetime, timezone

# Extra fields surfaced in the JSON record when a caller passes them
_EXTRA_FIELDS = ("user_id", "couple_id", "error_code", "path", "attempt")


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    root = logging.getLogger()
    # lifespan may run more than once in tests
    for existing in list(root.handlers):
        if getattr(existing, "_twofold", False):
            root.removeHandler(existing)
    handler._twofold = True
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
