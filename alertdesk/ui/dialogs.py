"""Modal dialog and navigation seams used by the alert workflows.

Dialog methods are coroutines. Dismissing a dialog resolves it with
:data:`~alertdesk.util.cancellation.CANCELLED` instead of raising, so a
caller can tell a user cancellation apart from a failed step.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol

from ..core.model import CaseTemplate
from ..util.cancellation import CANCELLED

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..core.model import CaseSummary
    from .controllers.case_merge import CaseSearch

    CaseLookup = Callable[[CaseSearch, str], Awaitable[list[CaseSummary]]]


class Dialogs(Protocol):
    """Interactive steps presented to the user."""

    async def choose_template(self, templates: Sequence[CaseTemplate]) -> Any:
        """Return the chosen template, ``None`` for "no template" or ``CANCELLED``."""

    async def create_case(self, template: CaseTemplate | None) -> Any:
        """Return the created :class:`CaseSummary` or ``CANCELLED``."""

    async def select_case(
        self,
        title: str,
        prompt: str,
        searches: Sequence[CaseSearch],
        lookup: CaseLookup,
    ) -> Any:
        """Return the picked :class:`CaseSummary` or ``CANCELLED``.

        The picker runs ``await lookup(search, text)`` for the search the user
        chose and the text typed so far.
        """

    async def confirm(
        self,
        title: str,
        message: str,
        *,
        ok_text: str,
        flavor: str = "primary",
    ) -> bool:
        """Return ``True`` when the user accepts."""


class Navigator(Protocol):
    """Switch the application to another view."""

    def go(self, state: str, params: Mapping[str, Any] | None = None) -> None:
        """Open view *state* with *params*."""


class DismissingDialogs:
    """Non-interactive dialogs that decline every prompt.

    Used by the command line front-end where no user is around to answer.
    """

    async def choose_template(self, templates: Sequence[CaseTemplate]) -> Any:
        return CANCELLED

    async def create_case(self, template: CaseTemplate | None) -> Any:
        return CANCELLED

    async def select_case(
        self,
        title: str,
        prompt: str,
        searches: Sequence[CaseSearch],
        lookup: CaseLookup,
    ) -> Any:
        return CANCELLED

    async def confirm(
        self,
        title: str,
        message: str,
        *,
        ok_text: str,
        flavor: str = "primary",
    ) -> bool:
        return False


class NullNavigator:
    """Navigator remembering the last requested view."""

    def __init__(self) -> None:
        self.location: tuple[str, dict[str, Any]] | None = None

    def go(self, state: str, params: Mapping[str, Any] | None = None) -> None:
        self.location = (state, dict(params or {}))


__all__ = [
    "Dialogs",
    "DismissingDialogs",
    "Navigator",
    "NullNavigator",
]
