# src/logging/logger.py — v1
"""Logging setup for the ``sitegen`` logger tree.

Run context is stamped onto each record by ``RunContextFilter`` as it is
handled, so a record carries the run, pipeline and phase it was
emitted under even if a handler formats it later. Formatters only read
record attributes.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from sitegen.logging.context import get_context

ROOT_LOGGER = "sitegen"
CONTEXT_FIELDS = ("run_id", "pipeline", "phase")


class RunContextFilter(logging.Filter):
    """Copy the active run context onto every record passing through."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = get_context()
        for name in CONTEXT_FIELDS:
            if getattr(record, name, None) is None:
                setattr(record, name, getattr(ctx, name))
        return True


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Context fields are nested under ``context`` and omitted when unset;
    ``extra={"data": {...}}`` lands under ``data``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            name: getattr(record, name)
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        }
        if context:
            entry["context"] = context
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger [pipeline:run] (phase) message`` for terminals."""

    def format(self, record: logging.LogRecord) -> str:
        line = f"{_timestamp(record):%H:%M:%S} {record.levelname:<8} {record.name}"
        pipeline = getattr(record, "pipeline", None)
        if pipeline:
            run_id = getattr(record, "run_id", None)
            line += f" [{pipeline}:{run_id[:8]}]" if run_id else f" [{pipeline}]"
        phase = getattr(record, "phase", None)
        if phase:
            line += f" ({phase})"
        line += f" {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _attach(
    logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter,
) -> None:
    handler.setFormatter(formatter)
    handler.addFilter(RunContextFilter())
    logger.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 5,
) -> logging.Logger:
    """Configure the ``sitegen`` logger tree and return its root.

    Args:
        level: Level name; unknown names fall back to INFO.
        log_format: ``"json"`` or ``"text"``.
        log_file: Also write to this rotating file when set.
        rotation: Size threshold for rotation, e.g. ``"10MB"``.
        retention: Rotated files kept.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter: logging.Formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    _attach(root, logging.StreamHandler(sys.stderr), formatter)
    if log_file:
        from sitegen.logging.handlers import create_rotating_handler

        file_handler = create_rotating_handler(
            log_file, rotation=rotation, retention=retention,
        )
        _attach(root, file_handler, formatter)

    # request lines at INFO from the HTTP stack
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return root
