"""Apply one action to many alerts and report a single outcome."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from ...core.model import AlertSummary
from ...i18n import ngettext
from ...log import logger
from ...services.alert_store import AlertStore, RemoteRequestError
from ...telemetry import log_event
from ..alert_list_model import AlertListModel
from ..notifications import Notifier
from ..selection import can_mark_as_read


class BulkAction(str, Enum):
    """Actions that can be applied to a selection of alerts."""

    FOLLOW = "follow"
    UNFOLLOW = "unfollow"
    MARK_READ = "mark_read"
    MARK_UNREAD = "mark_unread"
    DELETE = "delete"


@dataclass
class BulkResult:
    """Aggregate outcome of a bulk action.

    ``failures`` lists every rejected alert id with its error. Requests that
    succeeded before or alongside a failure stay applied.
    """

    action: BulkAction
    ids: tuple[str, ...]
    failures: list[tuple[str, RemoteRequestError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def error(self) -> RemoteRequestError | None:
        return self.failures[0][1] if self.failures else None

    @property
    def succeeded(self) -> tuple[str, ...]:
        failed = {alert_id for alert_id, _exc in self.failures}
        return tuple(alert_id for alert_id in self.ids if alert_id not in failed)


_MESSAGES: dict[BulkAction, tuple[str, str]] = {
    BulkAction.FOLLOW: (
        "The selected alert has been followed",
        "The {count} selected alerts have been followed",
    ),
    BulkAction.UNFOLLOW: (
        "The selected alert has been unfollowed",
        "The {count} selected alerts have been unfollowed",
    ),
    BulkAction.MARK_READ: (
        "The selected alert has been marked as read",
        "The {count} selected alerts have been marked as read",
    ),
    BulkAction.MARK_UNREAD: (
        "The selected alert has been marked as unread",
        "The {count} selected alerts have been marked as unread",
    ),
    BulkAction.DELETE: (
        "The selected alert has been deleted",
        "The {count} selected alerts have been deleted",
    ),
}


def success_message(action: BulkAction, count: int) -> str:
    """Return the notification text for *count* alerts handled by *action*."""
    singular, plural = _MESSAGES[action]
    return ngettext(singular, plural, count).format(count=count)


class BulkActionCoordinator:
    """Dispatch bulk actions to the store.

    Follow and read-state changes fan out into one request per alert while
    deletion goes through a single bulk request. Both paths produce the same
    :class:`BulkResult` and the same notifications.
    """

    ORIGIN = "AlertList"

    def __init__(
        self,
        store: AlertStore,
        notifier: Notifier,
        list_model: AlertListModel | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.list_model = list_model

    def _per_id(self, action: BulkAction) -> Callable[[str], Awaitable[None]] | None:
        return {
            BulkAction.FOLLOW: self.store.follow,
            BulkAction.UNFOLLOW: self.store.unfollow,
            BulkAction.MARK_READ: self.store.mark_as_read,
            BulkAction.MARK_UNREAD: self.store.mark_as_unread,
        }.get(action)

    async def _fan_out(
        self, fn: Callable[[str], Awaitable[None]], ids: tuple[str, ...], result: BulkResult
    ) -> None:
        outcomes = await asyncio.gather(*(fn(alert_id) for alert_id in ids), return_exceptions=True)
        for alert_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, RemoteRequestError):
                result.failures.append((alert_id, outcome))
            elif isinstance(outcome, BaseException):
                raise outcome

    async def _single_call(self, ids: tuple[str, ...], result: BulkResult) -> None:
        try:
            await self.store.bulk_remove(ids)
        except RemoteRequestError as exc:
            result.failures.extend((alert_id, exc) for alert_id in ids)

    async def apply(self, action: BulkAction, ids: Sequence[str]) -> BulkResult:
        """Run *action* for every id in *ids* and report the aggregate."""
        action = BulkAction(action)
        id_tuple = tuple(ids)
        result = BulkResult(action=action, ids=id_tuple)
        if not id_tuple:
            return result

        start = time.monotonic()
        fn = self._per_id(action)
        if fn is None:
            await self._single_call(id_tuple, result)
        else:
            await self._fan_out(fn, id_tuple, result)
        log_event(
            "BULK_ACTION",
            {
                "action": action.value,
                "count": len(id_tuple),
                "failed": [alert_id for alert_id, _exc in result.failures],
            },
            start_time=start,
        )

        error = result.error
        if error is not None:
            logger.warning(
                "Bulk %s failed for %d of %d alerts",
                action.value,
                len(result.failures),
                len(id_tuple),
            )
            self.notifier.error(self.ORIGIN, error.data, error.status)
            return result

        if self.list_model is not None:
            try:
                await self.list_model.update()
            except RemoteRequestError as exc:
                self.notifier.error(self.ORIGIN, exc.data, exc.status)
        self.notifier.log(success_message(action, len(id_tuple)), "success")
        return result

    async def follow(self, flag: bool, ids: Sequence[str]) -> BulkResult:
        """Follow (``flag`` true) or unfollow all *ids*."""
        return await self.apply(BulkAction.FOLLOW if flag else BulkAction.UNFOLLOW, ids)

    async def mark_as_read(self, flag: bool, selection: Sequence[AlertSummary]) -> BulkResult:
        """Mark *selection* read or unread.

        The direction is decided by the first selected alert alone: when it
        cannot be marked as read the whole selection is marked unread.
        """
        mark_read = bool(selection) and flag and can_mark_as_read(selection[0])
        action = BulkAction.MARK_READ if mark_read else BulkAction.MARK_UNREAD
        return await self.apply(action, [alert.id for alert in selection])

    async def delete(self, ids: Sequence[str]) -> BulkResult:
        return await self.apply(BulkAction.DELETE, ids)
