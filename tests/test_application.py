import asyncio

import pytest

from alertdesk.application import ApplicationContext
from alertdesk.config import ConfigContextStore, ConfigManager
from alertdesk.settings import ALERT_SECTION
from alertdesk.ui.dialogs import DismissingDialogs, NullNavigator
from alertdesk.ui.notifications import LoggingNotifier
from tests.store_utils import make_alert

pytestmark = pytest.mark.unit


def test_dependencies_are_created_lazily_once(app_context, fake_store):
    config = app_context.config
    assert config is app_context.config
    assert app_context.store is fake_store
    assert isinstance(app_context.context_store, ConfigContextStore)
    assert app_context.context_store is app_context.context_store


def test_controller_uses_configured_defaults(app_context, fake_store, tmp_path):
    fake_store.alerts = [make_alert("a1")]
    app_context.config.set_value("page_size", 40)
    controller = app_context.alert_list_controller()

    asyncio.run(controller.load())
    asyncio.run(controller.toggle_filters())

    assert controller.list.page_size == 40
    assert [alert.id for alert in controller.list.values] == ["a1"]
    assert controller.merge.events is app_context.events
    stored = ConfigManager(path=tmp_path / "config.json").get_context(ALERT_SECTION)
    assert stored["pageSize"] == 40
    assert stored["showFilters"] is True


def test_each_controller_is_a_fresh_screen(app_context):
    first = app_context.alert_list_controller()
    second = app_context.alert_list_controller()
    assert first is not second
    assert first.store is second.store


def test_for_cli_wires_non_interactive_doubles():
    context = ApplicationContext.for_cli()
    assert isinstance(context.dialogs, DismissingDialogs)
    assert isinstance(context.notifier, LoggingNotifier)
    assert isinstance(context.navigator, NullNavigator)
