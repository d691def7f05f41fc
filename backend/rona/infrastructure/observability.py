"""Structured Logging — JSON lines for the API process and the expiry sweep.

Invariants:
    - Every line carries timestamp (record creation time, UTC), level, logger and message
    - Only whitelisted extra fields are emitted; registrant names never reach a handler
    - setup_logging is idempotent: calling it twice does not duplicate output
    - Text format for local runs, JSON otherwise

Design Decisions:
    - Whitelist over blacklist: a new `extra=` key stays private until added to LOG_FIELDS
    - SQLAlchemy engine logger pinned to WARNING: statement echo would print bound
      parameters, which include registrant names
"""

import json
import logging
from datetime import datetime, timezone

LOG_FIELDS = (
    "quicktest_id", "error_kind", "error_code", "operation",
    "affected", "count", "path",
)

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({
            key: getattr(record, key)
            for key in LOG_FIELDS
            if getattr(record, key, None) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the root handler. Replaces one installed by an earlier call."""
    handler = logging.StreamHandler()
    handler.set_name("rona")
    handler.setFormatter(
        JSONFormatter() if fmt == "json" else logging.Formatter(_TEXT_FORMAT),
    )
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == "rona":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return handler
