"""Composition root building shared dependencies for AlertDesk."""
from __future__ import annotations
from collections.abc import Callable
from typing import Protocol

from .config import ConfigContextStore, ConfigManager, ContextStore
from .events import EventBus, get_event_bus
from .services.alert_store import AlertStore, HttpAlertStore
from .settings import StoreSettings
from .ui.controllers.alert_list import AlertListController
from .ui.dialogs import Dialogs, DismissingDialogs, Navigator, NullNavigator
from .ui.notifications import LoggingNotifier, Notifier


class AlertStoreFactory(Protocol):
    """Factory protocol producing :class:`AlertStore` implementations."""

    def __call__(self, settings: StoreSettings) -> AlertStore:
        """Return a store client for ``settings``."""
        raise NotImplementedError


class ApplicationContext:
    """Central dependency registry shared by front-ends."""

    def __init__(
        self,
        *,
        app_name: str = "AlertDesk",
        dialogs: Dialogs,
        notifier: Notifier,
        navigator: Navigator,
        config_factory: Callable[[str], ConfigManager] | None = None,
        store_factory: AlertStoreFactory | None = None,
        context_store_factory: Callable[[ConfigManager], ContextStore] | None = None,
        events: EventBus | None = None,
    ) -> None:
        self._app_name = app_name
        self.dialogs = dialogs
        self.notifier = notifier
        self.navigator = navigator
        self.events = events or get_event_bus()
        self._config_factory = config_factory or (lambda name: ConfigManager(name))
        self._store_factory: AlertStoreFactory = store_factory or HttpAlertStore
        self._context_store_factory = context_store_factory or ConfigContextStore
        self._config: ConfigManager | None = None
        self._store: AlertStore | None = None
        self._context_store: ContextStore | None = None

    @property
    def config(self) -> ConfigManager:
        """Return lazily initialised :class:`ConfigManager`."""
        if self._config is None:
            self._config = self._config_factory(self._app_name)
        return self._config

    @property
    def store(self) -> AlertStore:
        """Return the shared alert store client."""
        if self._store is None:
            self._store = self._store_factory(self.config.get_store_settings())
        return self._store

    @property
    def context_store(self) -> ContextStore:
        """Return the store persisting list filter contexts."""
        if self._context_store is None:
            self._context_store = self._context_store_factory(self.config)
        return self._context_store

    def alert_list_controller(self) -> AlertListController:
        """Return a fresh controller for one activation of the alert list."""
        return AlertListController(
            self.store,
            self.context_store,
            self.dialogs,
            self.notifier,
            self.navigator,
            defaults=self.config.get_list_settings(),
            events=self.events,
        )

    @classmethod
    def for_cli(cls, *, app_name: str = "AlertDesk") -> ApplicationContext:
        """Return context configured for non-interactive CLI usage."""
        return cls(
            app_name=app_name,
            dialogs=DismissingDialogs(),
            notifier=LoggingNotifier(),
            navigator=NullNavigator(),
        )
