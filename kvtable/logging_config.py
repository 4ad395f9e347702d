"""JSON logging for kvtable.

``get_logger`` wires the ``kvtable`` logger once. Library modules log through
``logging.getLogger(__name__)`` and so reach its handlers; fields passed via
``extra=`` end up in the JSON line, with ``collection`` lifted to the top.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOG_NAME = "kvtable"
LOG_FILE = Path("logs/kvtable.log")
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 5

# Whatever a bare record carries is not an extra.
_RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED}


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - short description
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        line: dict[str, Any] = {
            "time": created.isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = _extras(record)
        if "collection" in extra:
            line["collection"] = extra.pop("collection")
        if extra:
            line["extra"] = extra
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=str)


def _handler(handler: logging.Handler, level: int | str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def get_logger(stream_level: int | str = logging.DEBUG) -> logging.Logger:
    """Return the ``kvtable`` logger, attaching handlers on first use.

    ``stream_level`` applies to the console only; the rotating file keeps
    INFO and above.
    """
    logger = logging.getLogger(LOG_NAME)
    if logger.handlers:
        return logger

    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    rotating = RotatingFileHandler(
        LOG_FILE, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8"
    )
    logger.setLevel(logging.DEBUG)
    logger.addHandler(_handler(logging.StreamHandler(), stream_level))
    logger.addHandler(_handler(rotating, logging.INFO))
    logger.propagate = False
    return logger
