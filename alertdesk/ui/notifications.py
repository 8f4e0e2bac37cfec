"""User-facing notification seam."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from ..i18n import _

logger = logging.getLogger("alertdesk.ui")


class Notifier(Protocol):
    """Render toast-like messages to the user."""

    def log(self, message: str, kind: str = "success") -> None:
        """Show informational *message* of *kind* (``success``, ``info``, ...)."""

    def error(self, origin: str, data: Any = None, status: int | None = None) -> None:
        """Report a failed remote action started from *origin*."""


def describe_error(origin: str, data: Any = None, status: int | None = None) -> str:
    """Return a human readable description of a remote failure."""
    detail = ""
    if isinstance(data, Mapping):
        detail = str(data.get("message") or data.get("type") or "")
    elif data:
        detail = str(data)
    if status:
        if detail:
            return _("{origin} failed ({status}): {detail}").format(
                origin=origin, status=status, detail=detail
            )
        return _("{origin} failed ({status})").format(origin=origin, status=status)
    if detail:
        return _("{origin} failed: {detail}").format(origin=origin, detail=detail)
    return _("{origin} failed").format(origin=origin)


class LoggingNotifier:
    """Notifier writing messages to the application log."""

    def log(self, message: str, kind: str = "success") -> None:
        level = logging.WARNING if kind in {"warning", "error"} else logging.INFO
        logger.log(level, "%s", message)

    def error(self, origin: str, data: Any = None, status: int | None = None) -> None:
        logger.error("%s", describe_error(origin, data, status))
