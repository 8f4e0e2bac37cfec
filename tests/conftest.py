"""Pytest configuration for the AlertDesk test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from alertdesk.application import ApplicationContext
from alertdesk.config import ConfigManager
from alertdesk.events import EventBus
from alertdesk.ui.dialogs import NullNavigator
from tests.store_utils import FakeAlertStore, FakeDialogs, RecordingNotifier


@pytest.fixture(autouse=True)
def _isolated_log_dir(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep log files written by the CLI out of the user's home."""

    log_dir = tmp_path_factory.mktemp("logs")
    monkeypatch.setenv("ALERTDESK_LOG_DIR", str(log_dir))
    return log_dir


@pytest.fixture
def fake_store() -> FakeAlertStore:
    return FakeAlertStore()


@pytest.fixture
def app_context(tmp_path: Path, fake_store: FakeAlertStore) -> ApplicationContext:
    """Provide an application context wired to in-memory doubles."""

    return ApplicationContext(
        dialogs=FakeDialogs(),
        notifier=RecordingNotifier(),
        navigator=NullNavigator(),
        config_factory=lambda name: ConfigManager(name, path=tmp_path / "config.json"),
        store_factory=lambda settings: fake_store,
        events=EventBus(),
    )
