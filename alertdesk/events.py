"""Application-wide broadcast of domain events."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("alertdesk.events")

ALERT_EVENT_IMPORTED = "alert:event-imported"


@dataclass(frozen=True)
class DomainEvent:
    """Named signal with an optional payload."""

    name: str
    payload: Mapping[str, Any] = field(default_factory=dict)


_Listener = Callable[[DomainEvent], None]


class EventBus:
    """Registry of listeners keyed by event name.

    Listeners registered for ``"*"`` receive every event.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[_Listener]] = {}

    def add_listener(self, name: str, listener: _Listener) -> Callable[[], None]:
        """Register *listener* for *name* and return a callable removing it."""

        self._listeners.setdefault(name, []).append(listener)

        def _remove() -> None:
            self.remove_listener(name, listener)

        return _remove

    def remove_listener(self, name: str, listener: _Listener) -> None:
        """Unregister *listener* ignoring unknown references."""

        listeners = self._listeners.get(name)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return

    def emit(self, name: str, payload: Mapping[str, Any] | None = None) -> None:
        """Send event *name* to all matching listeners."""

        event = DomainEvent(name=name, payload=dict(payload or {}))
        listeners = tuple(self._listeners.get(name, ())) + tuple(
            self._listeners.get("*", ())
        )
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener for %s raised an exception", name)


_bus = EventBus()


def get_event_bus() -> EventBus:
    """Return the process-wide event bus."""

    return _bus


def add_listener(name: str, listener: _Listener) -> Callable[[], None]:
    """Register *listener* on the process-wide bus."""

    return _bus.add_listener(name, listener)


def remove_listener(name: str, listener: _Listener) -> None:
    """Unregister *listener* from the process-wide bus."""

    _bus.remove_listener(name, listener)


def emit(name: str, payload: Mapping[str, Any] | None = None) -> None:
    """Broadcast *name* on the process-wide bus."""

    _bus.emit(name, payload)
