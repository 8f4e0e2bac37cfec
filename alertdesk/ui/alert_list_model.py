"""Paged alert list fetched from the store."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from enum import Enum

from ..core.model import AlertSummary
from ..services.alert_store import AlertStore, RemoteRequestError, SearchRequest
from ..settings import DEFAULT_PAGE_SIZE, DEFAULT_SORT
from ..telemetry import log_event

logger = logging.getLogger("alertdesk.ui.list")


class ListState(str, Enum):
    """Lifecycle of the list between fetches."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


StateListener = Callable[[ListState], None]


class AlertListModel:
    """Own the visible page of alerts and refresh it on demand.

    Each :meth:`update` call is tagged with an increasing token. When an
    older request settles after a newer one was issued its result is
    discarded, so the page always reflects the latest query.
    """

    def __init__(
        self,
        store: AlertStore,
        *,
        filter: str = "",
        sort: Sequence[str] = DEFAULT_SORT,
        page_size: int = DEFAULT_PAGE_SIZE,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        self.store = store
        self.filter = filter
        self.sort: list[str] = list(sort)
        self.page_size = page_size
        self.page = 1
        self.values: list[AlertSummary] = []
        self.total = 0
        self.on_update = on_update
        self._state = ListState.IDLE
        self._listeners: list[StateListener] = []
        self._token = 0

    @property
    def state(self) -> ListState:
        return self._state

    @property
    def pending(self) -> bool:
        return self._state is ListState.LOADING

    def add_state_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register *listener* for state transitions and return its remover."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _set_state(self, state: ListState) -> None:
        self._state = state
        for listener in tuple(self._listeners):
            listener(state)

    def request(self) -> SearchRequest:
        """Return the search request matching the current parameters."""
        return SearchRequest(
            filter=self.filter,
            sort=tuple(self.sort),
            page_size=self.page_size,
            page=self.page,
            load_all=False,
        )

    async def update(self) -> bool:
        """Fetch the current page.

        Returns ``False`` when the response was superseded by a newer
        request. Errors of the latest request are re-raised after the list
        returns to ``IDLE`` with its previous values intact; store failures
        of superseded requests are dropped.
        """
        self._token += 1
        token = self._token
        request = self.request()
        start = time.monotonic()
        self._set_state(ListState.LOADING)
        try:
            page = await self.store.list_alerts(request)
        except RemoteRequestError:
            if token != self._token:
                logger.debug("Discarding failed stale alert search %s", token)
                return False
            self._set_state(ListState.ERROR)
            self._set_state(ListState.IDLE)
            raise
        except Exception:
            if token == self._token:
                self._set_state(ListState.ERROR)
                self._set_state(ListState.IDLE)
            raise
        if token != self._token:
            logger.debug("Discarding stale alert search %s for %r", token, request.filter)
            return False
        self.values = list(page.values)
        self.total = page.total
        log_event(
            "ALERT_SEARCH",
            {"filter": request.filter, "sort": list(request.sort), "total": page.total},
            start_time=start,
        )
        self._set_state(ListState.READY)
        if self.on_update is not None:
            self.on_update()
        return True

    async def go_to_page(self, page: int) -> bool:
        """Switch to *page* (1-based) and fetch it."""
        if page < 1:
            raise ValueError("page numbers start at 1")
        self.page = page
        return await self.update()
