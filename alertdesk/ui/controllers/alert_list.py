"""Controller driving the alert triage list."""

from __future__ import annotations

import datetime
from collections.abc import Sequence
from typing import Any

from ...config import ContextStore, FilteringContext
from ...core.filters import ALERT_FILTERS, FilterRegistry, FilterValue, LabeledValue
from ...core.model import AlertStatus, AlertSummary, Severity
from ...events import EventBus
from ...i18n import _
from ...log import logger
from ...services.alert_store import AlertStore, RemoteRequestError
from ...settings import ALERT_SECTION, ListSettings, normalise_sort
from ..alert_list_model import AlertListModel
from ..dialogs import Dialogs, Navigator
from ..filter_model import FilterModel
from ..notifications import Notifier
from ..selection import MenuState, SelectionState, can_mark_as_read
from .bulk_actions import BulkActionCoordinator, BulkResult
from .case_merge import CaseMergeWorkflow, MergeOutcome, MergeStatus


class AlertListController:
    """Tie filters, the paged list, selection and actions together."""

    ORIGIN = "AlertList"

    def __init__(
        self,
        store: AlertStore,
        context_store: ContextStore,
        dialogs: Dialogs,
        notifier: Notifier,
        navigator: Navigator,
        *,
        registry: FilterRegistry = ALERT_FILTERS,
        defaults: ListSettings | None = None,
        events: EventBus | None = None,
        tz: datetime.tzinfo | None = None,
    ) -> None:
        """Create controller for the alert section backed by ``store``."""
        self.store = store
        self.dialogs = dialogs
        self.notifier = notifier
        self.filtering = FilterModel(
            registry, context_store, ALERT_SECTION, defaults=defaults, tz=tz
        )
        self.selection = SelectionState()
        self.bulk = BulkActionCoordinator(store, notifier)
        self.merge = CaseMergeWorkflow(store, dialogs, notifier, navigator, events=events)
        self.list: AlertListModel | None = None
        self.search_query = ""
        self.last_search: str | None = None
        self.responders: list[dict[str, Any]] | None = None

    # ------------------------------------------------------------------
    @property
    def context(self) -> FilteringContext:
        return self.filtering.context

    @property
    def menu(self) -> MenuState:
        return self.selection.menu

    def _require_list(self) -> AlertListModel:
        if self.list is None:
            raise RuntimeError("alert list is not loaded")
        return self.list

    def _report(self, exc: RemoteRequestError, origin: str | None = None) -> None:
        self.notifier.error(origin or self.ORIGIN, exc.data, exc.status)

    async def _refresh(self) -> bool:
        """Fetch the current page, recording its query once it is shown.

        A superseded fetch leaves ``last_search`` alone and a failed one
        clears it, so the next :meth:`apply_filters` submits again.
        """
        model = self._require_list()
        try:
            updated = await model.update()
        except RemoteRequestError as exc:
            self.last_search = None
            self._report(exc)
            return False
        if updated:
            self.last_search = model.filter
        return updated

    # loading -----------------------------------------------------------
    async def load(self) -> None:
        """Restore the stored context and fetch the first page."""
        context = await self.filtering.init_context()
        self.search_query = self.filtering.build_query()
        self.list = AlertListModel(
            self.store,
            filter=self.search_query,
            sort=context.sort,
            page_size=context.page_size,
            on_update=self.reset_selection,
        )
        self.bulk.list_model = self.list
        await self._search(self.search_query)

    async def _search(self, query: str) -> bool:
        model = self._require_list()
        model.filter = query
        model.page = 1
        return await self._refresh()

    async def apply_filters(self) -> bool:
        """Fetch when the rebuilt query differs from the last submitted one."""
        self.search_query = self.filtering.build_query()
        if self.search_query == self.last_search:
            logger.debug("Query unchanged, skipping alert search")
            return False
        return await self._search(self.search_query)

    async def go_to_page(self, page: int) -> bool:
        if page < 1:
            raise ValueError("page numbers start at 1")
        self._require_list().page = page
        return await self._refresh()

    # filters -----------------------------------------------------------
    async def add_filter_value(self, field: str, value: Any) -> bool:
        await self.filtering.add_filter_value(field, value)
        return await self.apply_filters()

    async def add_filter(self, field: str, value: FilterValue) -> bool:
        await self.filtering.add_filter(field, value)
        return await self.apply_filters()

    async def remove_filter(self, field: str) -> bool:
        await self.filtering.remove_filter(field)
        return await self.apply_filters()

    async def clear_filters(self) -> bool:
        await self.filtering.clear_filters()
        return await self.apply_filters()

    async def filter_by_status(self, status: AlertStatus | str) -> bool:
        """Reset filters and show only alerts in *status*."""
        text = status.value if isinstance(status, AlertStatus) else str(status)
        await self.filtering.clear_filters()
        await self.filtering.add_filter("status", (LabeledValue(text),))
        return await self.apply_filters()

    async def filter_by_new_and_updated(self) -> bool:
        await self.filtering.clear_filters()
        await self.filtering.add_filter_value("status", AlertStatus.NEW.value)
        await self.filtering.add_filter_value("status", AlertStatus.UPDATED.value)
        return await self.apply_filters()

    async def filter_by_severity(self, severity: int) -> bool:
        """Add the severity with numeric code *severity* to the filter."""
        return await self.add_filter_value("severity", Severity.label_for(severity))

    def get_severities(self) -> list[str]:
        return self.filtering.get_severities()

    # view preferences --------------------------------------------------
    async def sort_by(self, sort: str | Sequence[str]) -> bool:
        model = self._require_list()
        model.sort = normalise_sort(sort if isinstance(sort, str) else list(sort))
        await self.filtering.set_sort(list(model.sort))
        return await self._refresh()

    async def sort_by_field(self, field: str) -> bool:
        """Sort by *field*, flipping direction when it is already the sort key."""
        current = self.filtering.context.sort
        head = current[0] if current else ""
        if head[1:] != field:
            sort = [f"+{field}"]
        else:
            sort = [f"-{field}" if head == f"+{field}" else f"+{field}"]
        return await self.sort_by(sort)

    async def set_page_size(self, page_size: int) -> bool:
        model = self._require_list()
        await self.filtering.set_page_size(page_size)
        model.page_size = page_size
        model.page = 1
        return await self._refresh()

    async def toggle_filters(self) -> None:
        await self.filtering.toggle_filters()

    async def toggle_stats(self) -> None:
        await self.filtering.toggle_stats()

    # selection ---------------------------------------------------------
    def select(self, alert: AlertSummary, selected: bool | None = None) -> MenuState:
        self.selection.select(alert, selected)
        return self.selection.menu

    def select_all(self, selected: bool) -> MenuState:
        self.selection.select_all(selected)
        return self.selection.menu

    def reset_selection(self) -> None:
        values = self.list.values if self.list is not None else []
        self.selection.reset(values)

    # single alert actions ----------------------------------------------
    async def follow(self, alert: AlertSummary) -> bool:
        """Toggle following of *alert*."""
        call = self.store.unfollow if alert.follow else self.store.follow
        try:
            await call(alert.id)
        except RemoteRequestError as exc:
            self._report(exc)
            return False
        await self._refresh()
        return True

    async def mark_as_read(self, alert: AlertSummary) -> bool:
        """Mark *alert* read when eligible, unread otherwise."""
        call = self.store.mark_as_read if can_mark_as_read(alert) else self.store.mark_as_unread
        try:
            await call(alert.id)
        except RemoteRequestError as exc:
            self._report(exc)
            return False
        await self._refresh()
        return True

    # bulk actions ------------------------------------------------------
    async def bulk_follow(self, follow: bool) -> BulkResult:
        return await self.bulk.follow(follow, self.selection.selected_ids)

    async def bulk_mark_as_read(self, mark_as_read: bool) -> BulkResult:
        return await self.bulk.mark_as_read(mark_as_read, list(self.selection.selection))

    async def bulk_delete(self) -> BulkResult | None:
        """Delete the selection after the user confirmed it."""
        ids = self.selection.selected_ids
        if not ids:
            return None
        confirmed = await self.dialogs.confirm(
            _("Remove Alerts"),
            _("Are you sure you want to delete the selected Alerts?"),
            ok_text=_("Yes, remove them"),
            flavor="danger",
        )
        if not confirmed:
            return None
        return await self.bulk.delete(ids)

    async def create_new_case(self) -> MergeOutcome:
        ids = self.selection.selected_ids
        if not ids:
            return MergeOutcome(status=MergeStatus.CANCELLED)
        return await self.merge.create_new_case(ids)

    async def merge_in_case(self) -> MergeOutcome:
        ids = self.selection.selected_ids
        if not ids:
            return MergeOutcome(status=MergeStatus.CANCELLED)
        return await self.merge.merge_in_case(ids)

    # responders --------------------------------------------------------
    async def get_responders(self, alert_id: str, force: bool = False) -> list[dict[str, Any]]:
        """Return responders for the screen, fetching them once unless *force*."""
        if not force and self.responders is not None:
            return self.responders
        self.responders = None
        try:
            self.responders = await self.store.get_responders("alert", alert_id)
        except RemoteRequestError as exc:
            self._report(exc)
            return []
        return self.responders

    async def run_responder(
        self, responder_id: str, responder_name: str, alert: AlertSummary
    ) -> dict[str, Any] | None:
        """Run responder *responder_id* on *alert*."""
        try:
            response = await self.store.run_responder(
                responder_id,
                responder_name,
                "alert",
                {"id": alert.id, "tlp": alert.tlp},
            )
        except RemoteRequestError as exc:
            self._report(exc)
            return None
        name = response.get("responderName") or responder_name
        self.notifier.log(
            _("Responder {name} started successfully on alert {title}").format(
                name=name, title=alert.title
            ),
            "success",
        )
        return response
