"""Boundary to the remote alert and case store."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

import httpx

from ..core.model import (
    AlertSummary,
    CaseSummary,
    CaseTemplate,
    alert_from_dict,
    case_from_dict,
    template_from_dict,
)
from ..settings import StoreSettings
from ..telemetry import log_debug_payload, log_event

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class RemoteRequestError(Exception):
    """Raised when the store rejects a request or cannot be reached.

    ``status`` is the HTTP status code (``0`` for transport failures) and
    ``data`` the decoded response body.
    """

    def __init__(self, status: int, data: Any = None, *, action: str | None = None) -> None:
        self.status = status
        self.data = data
        self.action = action
        super().__init__(self._describe())

    def _describe(self) -> str:
        message = None
        if isinstance(self.data, Mapping):
            message = self.data.get("message") or self.data.get("type")
        elif isinstance(self.data, str):
            message = self.data
        prefix = f"{self.action}: " if self.action else ""
        if message:
            return f"{prefix}{message} (status {self.status})"
        return f"{prefix}request failed with status {self.status}"


@dataclass(frozen=True)
class SearchRequest:
    """Parameters of one alert list fetch."""

    filter: str = ""
    sort: tuple[str, ...] = ("-date",)
    page_size: int = 15
    page: int = 1
    load_all: bool = False


@dataclass
class AlertPage:
    """One page of alerts together with the size of the full result set."""

    values: list[AlertSummary] = field(default_factory=list)
    total: int = 0


class AlertStore(Protocol):
    """Asynchronous operations the triage engine needs from the store."""

    async def list_alerts(self, request: SearchRequest) -> AlertPage:
        """Return the page of alerts matching *request*."""

    async def follow(self, alert_id: str) -> None:
        """Follow updates of alert *alert_id*."""

    async def unfollow(self, alert_id: str) -> None:
        """Stop following alert *alert_id*."""

    async def mark_as_read(self, alert_id: str) -> None:
        """Mark alert *alert_id* as read."""

    async def mark_as_unread(self, alert_id: str) -> None:
        """Mark alert *alert_id* as unread."""

    async def bulk_remove(self, alert_ids: Sequence[str]) -> None:
        """Delete all alerts in *alert_ids* in one request."""

    async def bulk_merge_into(self, alert_ids: Sequence[str], case_id: str) -> CaseSummary:
        """Merge *alert_ids* into case *case_id* and return the case."""

    async def list_case_templates(self) -> list[CaseTemplate]:
        """Return available case templates."""

    async def search_cases(self, query: Mapping[str, Any]) -> list[CaseSummary]:
        """Return cases matching *query*."""

    async def get_responders(self, object_type: str, object_id: str) -> list[dict[str, Any]]:
        """Return responders runnable on the given object."""

    async def run_responder(
        self,
        responder_id: str,
        responder_name: str,
        object_type: str,
        payload: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Start responder *responder_id* on the object described by *payload*."""


class HttpAlertStore:
    """:class:`AlertStore` implementation speaking the store's REST API."""

    def __init__(self, settings: StoreSettings) -> None:
        """Initialize store client with connection ``settings``."""
        self.settings = settings
        self._timeout = httpx.Timeout(settings.timeout_seconds)

    # ------------------------------------------------------------------
    def _headers(self, *, json_body: bool = False) -> dict[str, str]:
        """Return default headers for requests."""
        headers: dict[str, str] = {"Accept": "application/json"}
        if json_body:
            headers["Content-Type"] = "application/json"
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        return headers

    async def _request_async(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> httpx.Response:
        """Execute *method* request asynchronously and return the response."""
        async with httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self._timeout,
            verify=self.settings.verify_tls,
        ) as client:
            return await client.request(
                method,
                path,
                params=params,
                json=json_body,
                headers=self._headers(json_body=json_body is not None),
            )

    async def _call(
        self,
        action: str,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> tuple[Any, httpx.Response]:
        """Perform a request and return the decoded body with the response.

        Non-2xx answers and transport failures raise :class:`RemoteRequestError`.
        """
        start = time.monotonic()
        log_debug_payload(
            "STORE_REQUEST",
            {"action": action, "method": method, "path": path, "params": params, "body": json_body},
        )
        try:
            resp = await self._request_async(method, path, params=params, json_body=json_body)
        except httpx.HTTPError as exc:
            log_event(
                "STORE_RESULT",
                {"action": action, "error": str(exc)},
                start_time=start,
                level=logging.WARNING,
            )
            raise RemoteRequestError(0, {"message": str(exc)}, action=action) from exc
        body = resp.text
        try:
            data = json.loads(body) if body else None
        except json.JSONDecodeError:
            data = body
        log_debug_payload(
            "STORE_RESPONSE",
            {"action": action, "status": resp.status_code, "body": data},
        )
        if not 200 <= resp.status_code < 300:
            log_event(
                "STORE_RESULT",
                {"action": action, "status": resp.status_code},
                start_time=start,
                level=logging.WARNING,
            )
            raise RemoteRequestError(resp.status_code, data, action=action)
        log_event("STORE_RESULT", {"action": action, "status": resp.status_code}, start_time=start)
        return data, resp

    # ------------------------------------------------------------------
    async def list_alerts(self, request: SearchRequest) -> AlertPage:
        if request.load_all:
            range_param = "all"
        else:
            first = (max(request.page, 1) - 1) * request.page_size
            range_param = f"{first}-{first + request.page_size}"
        params: dict[str, Any] = {"range": range_param}
        if request.sort:
            params["sort"] = list(request.sort)
        query: Any = {"_string": request.filter} if request.filter else {}
        data, resp = await self._call(
            "list_alerts",
            "POST",
            "/api/alert/_search",
            params=params,
            json_body={"query": query},
        )
        values = _decode("list_alerts", resp, data, lambda d: _items(d, alert_from_dict))
        try:
            total = int(resp.headers.get("X-Total", len(values)))
        except (TypeError, ValueError):
            total = len(values)
        return AlertPage(values=values, total=total)

    async def follow(self, alert_id: str) -> None:
        await self._call("follow", "POST", f"/api/alert/{alert_id}/follow")

    async def unfollow(self, alert_id: str) -> None:
        await self._call("unfollow", "POST", f"/api/alert/{alert_id}/unfollow")

    async def mark_as_read(self, alert_id: str) -> None:
        await self._call("mark_as_read", "POST", f"/api/alert/{alert_id}/markAsRead")

    async def mark_as_unread(self, alert_id: str) -> None:
        await self._call("mark_as_unread", "POST", f"/api/alert/{alert_id}/markAsUnread")

    async def bulk_remove(self, alert_ids: Sequence[str]) -> None:
        await self._call(
            "bulk_remove",
            "POST",
            "/api/alert/delete/_bulk",
            json_body={"ids": list(alert_ids)},
        )

    async def bulk_merge_into(self, alert_ids: Sequence[str], case_id: str) -> CaseSummary:
        data, resp = await self._call(
            "bulk_merge_into",
            "POST",
            "/api/alert/merge/_bulk",
            json_body={"alertIds": list(alert_ids), "caseId": case_id},
        )
        return _decode("bulk_merge_into", resp, data, lambda d: case_from_dict(_mapping(d)))

    async def list_case_templates(self) -> list[CaseTemplate]:
        data, resp = await self._call(
            "list_case_templates",
            "POST",
            "/api/case/template/_search",
            params={"range": "all"},
            json_body={"query": {}},
        )
        return _decode("list_case_templates", resp, data, lambda d: _items(d, template_from_dict))

    async def search_cases(self, query: Mapping[str, Any]) -> list[CaseSummary]:
        data, resp = await self._call(
            "search_cases",
            "POST",
            "/api/case/_search",
            params={"range": "all"},
            json_body={"query": dict(query)},
        )
        return _decode("search_cases", resp, data, lambda d: _items(d, case_from_dict))

    async def get_responders(self, object_type: str, object_id: str) -> list[dict[str, Any]]:
        data, resp = await self._call(
            "get_responders",
            "GET",
            f"/api/connector/cortex/responder/{object_type}/{object_id}",
        )
        return _decode("get_responders", resp, data, lambda d: _items(d, dict))

    async def run_responder(
        self,
        responder_id: str,
        responder_name: str,
        object_type: str,
        payload: Mapping[str, Any],
    ) -> dict[str, Any]:
        data, resp = await self._call(
            "run_responder",
            "POST",
            "/api/connector/cortex/action",
            json_body={
                "responderId": responder_id,
                "responderName": responder_name,
                "objectType": object_type,
                "objectId": payload.get("id"),
                "tlp": payload.get("tlp"),
            },
        )
        return _decode("run_responder", resp, data, _mapping)


def _mapping(data: Any) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"expected an object, got {type(data).__name__}")
    return dict(data)


def _items(data: Any, parse: Callable[[dict[str, Any]], _T]) -> list[_T]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise TypeError(f"expected a list, got {type(data).__name__}")
    return [parse(_mapping(item)) for item in data]


def _decode(action: str, resp: httpx.Response, data: Any, parse: Callable[[Any], _T]) -> _T:
    """Apply *parse* to a response body, reporting malformed bodies as store errors."""
    try:
        return parse(data)
    except (KeyError, TypeError, ValueError) as exc:
        log_event(
            "STORE_RESULT",
            {"action": action, "status": resp.status_code, "error": str(exc)},
            level=logging.WARNING,
        )
        raise RemoteRequestError(
            resp.status_code,
            {"type": "MalformedResponse", "message": str(exc)},
            action=action,
        ) from exc
