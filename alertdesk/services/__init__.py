"""Service layer abstractions for AlertDesk."""

from .alert_store import (
    AlertPage,
    AlertStore,
    HttpAlertStore,
    RemoteRequestError,
    SearchRequest,
)

__all__ = [
    "AlertPage",
    "AlertStore",
    "HttpAlertStore",
    "RemoteRequestError",
    "SearchRequest",
]
