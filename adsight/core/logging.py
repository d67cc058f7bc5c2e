"""AdSight — Structured JSON Logging.

One JSON object per line. Tenant and rule context travel as ``extra``
fields so log lines can be filtered per client or per alert rule.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator

from adsight.config import settings

EXTRA_FIELDS = (
    "endpoint",
    "client_id",
    "rule_id",
    "duration_ms",
    "status_code",
)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def get_logger(name: str) -> logging.Logger:
    """``adsight.<name>`` logger writing JSON lines to stdout."""
    logger = logging.getLogger(f"adsight.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger


@contextmanager
def timed(logger: logging.Logger, message: str, **extra: Any) -> Iterator[Dict[str, Any]]:
    """Log ``message`` with ``duration_ms`` once the block finishes.

    The yielded dict is merged into the log extras, so the block can add
    fields it only learns while running (e.g. ``status_code``).
    """
    fields: Dict[str, Any] = dict(extra)
    started = time.perf_counter()
    try:
        yield fields
    finally:
        fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        logger.info(message, extra=fields)
