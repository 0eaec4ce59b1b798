"""Logging setup with text and JSON line formats."""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import UTC, datetime

from taskdesk.core.config import settings

# Attributes present on every LogRecord; anything else came in via `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}
_configured = False


def _record_extras(record: logging.LogRecord) -> dict[str, object]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class TextFormatter(logging.Formatter):
    """Human readable formatter that appends `extra` fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _record_extras(record)
        if not extras:
            return base
        rendered = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return f"{base} {rendered}"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with `extra` fields promoted to top-level keys."""

    def __init__(self, *, use_utc: bool = False) -> None:
        super().__init__()
        self._use_utc = use_utc

    def format(self, record: logging.LogRecord) -> str:
        if self._use_utc:
            timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        else:
            timestamp = datetime.fromtimestamp(record.created).astimezone().isoformat()
        payload: dict[str, object] = {
            "ts": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        for key, value in _record_extras(record).items():
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging() -> None:
    """Install the root handler once, according to runtime settings."""
    global _configured

    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    if settings.log_format.strip().lower() == "json":
        handler.setFormatter(JsonFormatter(use_utc=settings.log_use_utc))
    else:
        formatter = TextFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        if settings.log_use_utc:
            formatter.converter = time.gmtime
        handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level.upper())
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
