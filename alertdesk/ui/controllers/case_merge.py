"""Escalate selected alerts into a new case or merge them into an existing one."""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ...core.model import CaseSummary, CaseTemplate
from ...events import ALERT_EVENT_IMPORTED, EventBus, get_event_bus
from ...i18n import _, ngettext
from ...log import logger
from ...services.alert_store import AlertStore, RemoteRequestError
from ...telemetry import log_event
from ...util.cancellation import OperationCancelledError, raise_if_cancelled
from ..dialogs import Dialogs, Navigator
from ..notifications import Notifier

CASE_DETAILS_STATE = "app.case.details"


class CaseSearchType(str, Enum):
    """Ways of looking up the target case."""

    TITLE = "title"
    NUMBER = "number"


@dataclass(frozen=True)
class CaseSearch:
    """Lookup of existing cases by title or by case number."""

    type: CaseSearchType
    min_input_length: int

    @property
    def placeholder(self) -> str:
        return _("Search by case {type}").format(type=self.type.value)

    def build_query(self, text: str) -> dict[str, Any]:
        """Return the store query matching *text*."""
        if self.type is CaseSearchType.TITLE:
            escaped = text.replace("\\", "\\\\").replace('"', '\\"')
            return {"_string": f'title:"{escaped}"'}
        value: Any = text.strip()
        if value.isdigit():
            value = int(value)
        return {"caseId": value}

    async def search(self, store: AlertStore, text: str) -> list[CaseSummary]:
        """Return cases matching *text*, nothing for too short input."""
        text = text.strip()
        if len(text) < self.min_input_length:
            return []
        return await store.search_cases(self.build_query(text))

    @staticmethod
    def format(case: CaseSummary | None) -> str | None:
        if case is None:
            return None
        return f"#{case.case_id} - {case.title}"


CASE_SEARCHES: tuple[CaseSearch, ...] = (
    CaseSearch(CaseSearchType.TITLE, min_input_length=3),
    CaseSearch(CaseSearchType.NUMBER, min_input_length=1),
)


class MergeStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class MergeOutcome:
    """Result of a merge workflow run.

    ``created_case`` is set once the create path produced a case, even when
    the following merge failed or was cancelled.
    """

    status: MergeStatus
    case: CaseSummary | None = None
    created_case: CaseSummary | None = None
    error: RemoteRequestError | None = None

    @property
    def ok(self) -> bool:
        return self.status is MergeStatus.COMPLETED


class CaseMergeWorkflow:
    """Multi-step pipelines ending in a bulk merge of alerts into a case.

    Dialog steps resolve to ``CANCELLED`` when dismissed; that aborts the
    run quietly. Store failures abort it with one error notification.
    """

    ORIGIN = "AlertEvent"

    def __init__(
        self,
        store: AlertStore,
        dialogs: Dialogs,
        notifier: Notifier,
        navigator: Navigator,
        *,
        events: EventBus | None = None,
        searches: Sequence[CaseSearch] = CASE_SEARCHES,
    ) -> None:
        self.store = store
        self.dialogs = dialogs
        self.notifier = notifier
        self.navigator = navigator
        self.events = events or get_event_bus()
        self.searches = tuple(searches)

    async def find_cases(self, search: CaseSearch, text: str) -> list[CaseSummary]:
        """Look up cases for the case picker."""
        return await search.search(self.store, text)

    # ------------------------------------------------------------------
    async def _choose_template(self) -> CaseTemplate | None:
        templates = await self.store.list_case_templates()
        if not templates:
            return None
        return raise_if_cancelled(await self.dialogs.choose_template(templates))

    async def _merge(self, alert_ids: tuple[str, ...], case: CaseSummary) -> CaseSummary:
        start = time.monotonic()
        merged = await self.store.bulk_merge_into(alert_ids, case.id)
        log_event(
            "CASE_MERGE",
            {"case": merged.id, "count": len(alert_ids)},
            start_time=start,
        )
        return merged

    def _finish(self, merged: CaseSummary) -> None:
        self.events.emit(ALERT_EVENT_IMPORTED, {"case": merged.id})
        self.navigator.go(CASE_DETAILS_STATE, {"caseId": merged.id})

    def _fail(self, exc: RemoteRequestError, outcome: MergeOutcome) -> MergeOutcome:
        logger.warning("Case merge failed: %s", exc)
        self.notifier.error(self.ORIGIN, exc.data, exc.status)
        outcome.status = MergeStatus.FAILED
        outcome.error = exc
        return outcome

    # ------------------------------------------------------------------
    async def create_new_case(self, alert_ids: Sequence[str]) -> MergeOutcome:
        """Create a case, optionally from a template, and merge *alert_ids* into it."""
        ids = tuple(alert_ids)
        outcome = MergeOutcome(status=MergeStatus.CANCELLED)
        try:
            template = await self._choose_template()
            created = raise_if_cancelled(await self.dialogs.create_case(template))
            outcome.created_case = created
            self.notifier.log(_("New case has been created"), "success")
            merged = await self._merge(ids, created)
        except OperationCancelledError:
            logger.debug("Case creation cancelled")
            return outcome
        except RemoteRequestError as exc:
            return self._fail(exc, outcome)

        count = len(ids)
        self.notifier.log(
            ngettext(
                "{count} Alert has been merged into the newly created case.",
                "{count} Alert(s) have been merged into the newly created case.",
                count,
            ).format(count=count),
            "success",
        )
        self._finish(merged)
        outcome.status = MergeStatus.COMPLETED
        outcome.case = merged
        return outcome

    async def merge_in_case(self, alert_ids: Sequence[str]) -> MergeOutcome:
        """Let the user pick an existing case and merge *alert_ids* into it."""
        ids = tuple(alert_ids)
        outcome = MergeOutcome(status=MergeStatus.CANCELLED)
        title = _("Merge selected Alert(s)")
        prompt = _("the {count} selected Alert(s)").format(count=len(ids))
        try:
            target = raise_if_cancelled(
                await self.dialogs.select_case(title, prompt, self.searches, self.find_cases)
            )
            merged = await self._merge(ids, target)
        except OperationCancelledError:
            logger.debug("Case merge cancelled")
            return outcome
        except RemoteRequestError as exc:
            return self._fail(exc, outcome)

        count = len(ids)
        self.notifier.log(
            ngettext(
                "{count} Alert has been merged into the selected case.",
                "{count} Alert(s) have been merged into the selected case.",
                count,
            ).format(count=count),
            "success",
        )
        self._finish(merged)
        outcome.status = MergeStatus.COMPLETED
        outcome.case = merged
        return outcome
