import asyncio

import pytest

from alertdesk.core.model import AlertStatus
from alertdesk.ui.alert_list_model import AlertListModel
from alertdesk.ui.controllers.bulk_actions import (
    BulkAction,
    BulkActionCoordinator,
    success_message,
)
from tests.store_utils import FakeAlertStore, RecordingNotifier, make_alert

pytestmark = pytest.mark.unit


def _coordinator(store):
    notifier = RecordingNotifier()
    list_model = AlertListModel(store)
    return BulkActionCoordinator(store, notifier, list_model), notifier


def test_follow_fans_out_one_request_per_id_and_refreshes():
    store = FakeAlertStore()
    coordinator, notifier = _coordinator(store)

    result = asyncio.run(coordinator.apply(BulkAction.FOLLOW, ["a", "b", "c"]))

    assert result.ok
    assert sorted(store.mutations) == [("follow", "a"), ("follow", "b"), ("follow", "c")]
    assert len(store.search_requests) == 1
    assert notifier.messages == [("success", "The 3 selected alerts have been followed")]
    assert notifier.errors == []


def test_partial_failure_reports_once_without_rollback():
    store = FakeAlertStore()
    store.fail("unfollow", "b", status=404, data={"type": "NotFoundError", "message": "gone"})
    coordinator, notifier = _coordinator(store)

    result = asyncio.run(coordinator.apply(BulkAction.UNFOLLOW, ["a", "b", "c"]))

    assert result.ok is False
    assert result.error.status == 404
    assert result.succeeded == ("a", "c")
    assert sorted(store.mutations) == [("unfollow", "a"), ("unfollow", "b"), ("unfollow", "c")]
    assert notifier.errors == [("AlertList", {"type": "NotFoundError", "message": "gone"}, 404)]
    assert notifier.messages == []
    assert store.search_requests == []


def test_every_failing_id_still_yields_one_notification():
    store = FakeAlertStore()
    store.fail("mark_as_read")
    coordinator, notifier = _coordinator(store)

    result = asyncio.run(coordinator.apply(BulkAction.MARK_READ, ["a", "b"]))

    assert [alert_id for alert_id, _exc in result.failures] == ["a", "b"]
    assert len(notifier.errors) == 1


def test_delete_uses_single_bulk_request():
    store = FakeAlertStore()
    coordinator, notifier = _coordinator(store)

    result = asyncio.run(coordinator.delete(["a", "b"]))

    assert result.ok
    assert store.mutations == [("bulk_remove", ("a", "b"))]
    assert notifier.messages == [("success", "The 2 selected alerts have been deleted")]


def test_failed_delete_marks_all_ids_failed():
    store = FakeAlertStore()
    store.fail("bulk_remove", status=400)
    coordinator, notifier = _coordinator(store)

    result = asyncio.run(coordinator.delete(["a", "b"]))

    assert result.succeeded == ()
    assert notifier.errors[0][2] == 400


def test_empty_ids_are_a_silent_noop():
    store = FakeAlertStore()
    coordinator, notifier = _coordinator(store)

    result = asyncio.run(coordinator.apply(BulkAction.DELETE, []))

    assert result.ok
    assert store.calls == []
    assert notifier.messages == []
    assert notifier.errors == []


def test_mark_as_read_direction_comes_from_first_item():
    store = FakeAlertStore()
    coordinator, _notifier = _coordinator(store)
    selection = [
        make_alert("a", status=AlertStatus.NEW),
        make_alert("b", status=AlertStatus.IGNORED),
    ]

    result = asyncio.run(coordinator.mark_as_read(True, selection))

    assert result.action is BulkAction.MARK_READ
    assert sorted(store.mutations) == [("mark_as_read", "a"), ("mark_as_read", "b")]


def test_mark_as_read_switches_to_unread_when_first_item_is_read():
    store = FakeAlertStore()
    coordinator, notifier = _coordinator(store)
    selection = [
        make_alert("a", status=AlertStatus.IGNORED),
        make_alert("b", status=AlertStatus.NEW),
    ]

    result = asyncio.run(coordinator.mark_as_read(True, selection))

    assert result.action is BulkAction.MARK_UNREAD
    assert notifier.messages == [("success", "The 2 selected alerts have been marked as unread")]


def test_refresh_failure_after_success_is_reported_separately():
    store = FakeAlertStore()
    store.fail("list_alerts", status=502)
    coordinator, notifier = _coordinator(store)

    result = asyncio.run(coordinator.follow(False, ["a"]))

    assert result.ok
    assert [error[2] for error in notifier.errors] == [502]
    assert notifier.messages == [("success", "The selected alert has been unfollowed")]


def test_success_message_is_count_aware():
    assert success_message(BulkAction.FOLLOW, 1) == "The selected alert has been followed"
    assert success_message(BulkAction.MARK_READ, 4) == (
        "The 4 selected alerts have been marked as read"
    )
