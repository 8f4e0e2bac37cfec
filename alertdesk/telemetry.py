"""Structured events for store calls, searches and bulk actions.

Payloads are redacted before they reach any handler: the store client logs
request bodies and headers, which may carry API keys.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

from .log import logger
from .util.json import make_json_safe

SENSITIVE_KEYS = frozenset(
    {
        "authorization",
        "api_key",
        "apikey",
        "x-api-key",
        "token",
        "password",
        "secret",
        "cookie",
    }
)

REDACTED = "[REDACTED]"


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_redact(item) for item in value)
    return value


def sanitize(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *data* with sensitive keys replaced by ``[REDACTED]``."""
    return _redact(dict(data))


def _safe(payload: Mapping[str, Any] | Sequence[Any] | str | None) -> Any:
    if payload is None:
        return {}
    if isinstance(payload, (str, bytes)):
        return make_json_safe(payload)
    return make_json_safe(_redact(payload))


def log_event(
    event: str,
    payload: Mapping[str, Any] | None = None,
    *,
    start_time: float | None = None,
    level: int = logging.INFO,
) -> None:
    """Log *event* with its redacted *payload*.

    The record carries the payload size in bytes and, when *start_time* (a
    :func:`time.monotonic` reading) is given, the elapsed milliseconds.
    """
    safe = _safe(payload)
    data: dict[str, Any] = {
        "event": event,
        "payload": safe,
        "size_bytes": len(json.dumps(safe, ensure_ascii=False).encode("utf-8")) if payload else 0,
    }
    if start_time is not None:
        data["duration_ms"] = int((time.monotonic() - start_time) * 1000)
    logger.log(level, event, extra={"json": data})


def log_debug_payload(
    event: str,
    payload: Mapping[str, Any] | Sequence[Any] | str | None = None,
) -> None:
    """Log the full redacted *payload* at debug level, e.g. raw store bodies."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    safe = _safe(payload)
    logger.debug(
        "%s %s",
        event,
        json.dumps(safe, ensure_ascii=False),
        extra={"json": {"event": event, "payload": safe}},
    )
