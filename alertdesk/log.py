"""Logging setup for AlertDesk.

Records go to three places: the console at the configured level, a rotating
text log and a rotating JSON-lines log. Structured events emitted through
:mod:`alertdesk.telemetry` carry their data in the ``json`` attribute of the
record; the JSONL log stores it verbatim and the console appends the event
payload to the message.
"""

from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from .util.time import utc_now_iso

LOG_DIR_ENV = "ALERTDESK_LOG_DIR"
TEXT_LOG_NAME = "alertdesk.log"
JSON_LOG_NAME = "alertdesk.jsonl"
_BACKUPS = 5
_MAX_BYTES = 5 * 1024 * 1024

logger = logging.getLogger("alertdesk")


def _event_data(record: logging.LogRecord) -> dict[str, Any] | None:
    data = getattr(record, "json", None)
    return data if isinstance(data, dict) else None


class ConsoleFormatter(logging.Formatter):
    """Render ``LEVEL: message`` and append the payload of telemetry events."""

    def __init__(self) -> None:
        super().__init__("%(levelname)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        data = _event_data(record)
        # debug payload records already carry the payload in their message
        if data is None or record.msg != data.get("event") or not data.get("payload"):
            return text
        return f"{text} {json.dumps(data['payload'], ensure_ascii=False, default=str)}"


class JsonFormatter(logging.Formatter):
    """Serialise a record as one JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": utc_now_iso(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_event_data(record) or {})
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class JsonlHandler(RotatingFileHandler):
    """Rotating handler writing one JSON object per line."""

    def __init__(self, filename: Path | str, *, backup_count: int = _BACKUPS) -> None:
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(path, maxBytes=_MAX_BYTES, backupCount=backup_count, encoding="utf-8")
        self.setFormatter(JsonFormatter())


def resolve_log_dir(log_dir: str | Path | None = None) -> Path:
    """Return the log directory: *log_dir*, ``$ALERTDESK_LOG_DIR`` or ``~/.alertdesk/logs``."""
    if log_dir is None:
        log_dir = os.environ.get(LOG_DIR_ENV) or Path.home() / ".alertdesk" / "logs"
    path = Path(log_dir).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path


def configure_logging(level: int = logging.INFO, *, log_dir: str | Path | None = None) -> None:
    """Attach console and file handlers to the ``alertdesk`` logger.

    Only the first call installs handlers; later calls keep the existing
    setup so repeated CLI invocations in one process do not duplicate output.
    """
    if logger.handlers:
        return
    directory = resolve_log_dir(log_dir)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(ConsoleFormatter())

    text = RotatingFileHandler(
        directory / TEXT_LOG_NAME,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUPS,
        encoding="utf-8",
    )
    text.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    for handler in (console, text, JsonlHandler(directory / JSON_LOG_NAME)):
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


__all__ = [
    "ConsoleFormatter",
    "JsonFormatter",
    "JsonlHandler",
    "configure_logging",
    "logger",
    "resolve_log_dir",
]
