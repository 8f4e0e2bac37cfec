"""Selection of list rows and the bulk actions it allows."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..core.model import AlertStatus, AlertSummary

_READ_BLOCKERS = frozenset({AlertStatus.IGNORED, AlertStatus.IMPORTED})
_UNREAD_BLOCKERS = frozenset({AlertStatus.NEW, AlertStatus.UPDATED})


@dataclass(frozen=True)
class MenuState:
    """Bulk actions enabled for the current selection."""

    follow: bool = False
    unfollow: bool = False
    mark_as_read: bool = False
    mark_as_unread: bool = False
    delete: bool = False
    create_new_case: bool = False
    merge_in_case: bool = False
    select_all: bool = False


def derive_menu(selection: Iterable[AlertSummary], *, select_all: bool = False) -> MenuState:
    """Return the actions legal for *selection*."""
    follows: set[bool] = set()
    statuses: set[AlertStatus] = set()
    attached = False
    count = 0
    for alert in selection:
        count += 1
        follows.add(bool(alert.follow))
        statuses.add(alert.status)
        if alert.case is not None:
            attached = True
    if not count:
        return MenuState(select_all=select_all)
    imported = AlertStatus.IMPORTED in statuses
    return MenuState(
        follow=follows == {False},
        unfollow=follows == {True},
        mark_as_read=not statuses & _READ_BLOCKERS,
        mark_as_unread=not statuses & _UNREAD_BLOCKERS,
        delete=not attached,
        create_new_case=not imported,
        merge_in_case=not imported,
        select_all=select_all,
    )


def can_mark_as_read(alert: AlertSummary) -> bool:
    return alert.status in _UNREAD_BLOCKERS


def can_mark_as_unread(alert: AlertSummary) -> bool:
    return alert.status is AlertStatus.IGNORED


class SelectionState:
    """Track selected rows of the loaded page and the derived menu.

    The selection is always read back from the rows' ``selected`` flags,
    and the menu is recomputed in full after every change.
    """

    def __init__(self, values: Sequence[AlertSummary] = ()) -> None:
        self._values: list[AlertSummary] = list(values)
        self._select_all = False
        self.selection: list[AlertSummary] = []
        self.menu = MenuState()
        self._refresh()

    @property
    def selected_ids(self) -> list[str]:
        return [alert.id for alert in self.selection]

    def _refresh(self) -> None:
        self.selection = [alert for alert in self._values if alert.selected]
        self.menu = derive_menu(self.selection, select_all=self._select_all)

    def select(self, alert: AlertSummary, selected: bool | None = None) -> None:
        """Set *alert*'s selection flag, toggling it when *selected* is omitted."""
        alert.selected = (not alert.selected) if selected is None else selected
        self._refresh()

    def select_all(self, selected: bool) -> None:
        """Select or clear every row of the loaded page."""
        self._select_all = selected
        for alert in self._values:
            alert.selected = selected
        self._refresh()

    def reset(self, values: Sequence[AlertSummary]) -> None:
        """Adopt a freshly loaded page.

        An active "select all" carries over to the new rows; otherwise the
        selection starts empty.
        """
        self._values = list(values)
        if self._select_all:
            self.select_all(True)
            return
        for alert in self._values:
            alert.selected = False
        self._refresh()
