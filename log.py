"""Logging setup for the status panel.

Every module logs through a child of the ``status_panel`` logger.  Poll
cycles log through a :class:`CycleLogAdapter` so each record carries the
endpoint key and cycle number, which :class:`JSONFormatter` emits as
top-level fields.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "status_panel"

_CONTEXT_FIELDS = ("endpoint", "status", "cycle")
_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per line, stamped with the record's creation time."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class CycleLogAdapter(logging.LoggerAdapter):
    """Attach the endpoint key and poll cycle number to every record.

    Call-site ``extra=`` values win over the adapter's own.
    """

    def process(self, msg, kwargs):  # noqa: ANN001, ANN201
        merged = dict(self.extra or {})
        merged.update(kwargs.get("extra") or {})
        kwargs["extra"] = merged
        return msg, kwargs


def setup_logging(
    *,
    level: int | str = logging.INFO,
    json_output: bool = True,
    log_file: str | Path | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the ``status_panel`` logger and return it.

    Replaces any handlers from an earlier call.  Console output goes to
    stdout, as JSON unless *json_output* is false.  When *log_file* is
    given, a rotating file handler is added that always writes JSON.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(
        JSONFormatter() if json_output else logging.Formatter(_TEXT_FORMAT)
    )
    logger.addHandler(console)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

    return logger
