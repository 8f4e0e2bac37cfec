import asyncio

import pytest

from alertdesk.services.alert_store import RemoteRequestError
from alertdesk.ui.alert_list_model import AlertListModel, ListState
from tests.store_utils import FakeAlertStore, GatedAlertStore, make_alert

pytestmark = pytest.mark.unit


def test_update_replaces_values_and_reports_ready():
    store = FakeAlertStore([make_alert("a"), make_alert("b")])
    model = AlertListModel(store, filter='status:"New"', sort=["-date"], page_size=15)
    states: list[ListState] = []
    model.add_state_listener(states.append)
    updates: list[int] = []
    model.on_update = lambda: updates.append(len(model.values))

    assert asyncio.run(model.update()) is True

    assert [alert.id for alert in model.values] == ["a", "b"]
    assert model.total == 2
    assert states == [ListState.LOADING, ListState.READY]
    assert updates == [2]
    request = store.search_requests[0]
    assert request.filter == 'status:"New"'
    assert request.sort == ("-date",)
    assert request.page_size == 15
    assert request.load_all is False


def test_failed_update_keeps_previous_values():
    store = FakeAlertStore([make_alert("a")])
    model = AlertListModel(store)
    asyncio.run(model.update())
    previous = model.values
    store.fail("list_alerts", status=503)
    states: list[ListState] = []
    model.add_state_listener(states.append)

    with pytest.raises(RemoteRequestError) as excinfo:
        asyncio.run(model.update())

    assert excinfo.value.status == 503
    assert model.values is previous
    assert states == [ListState.LOADING, ListState.ERROR, ListState.IDLE]
    assert model.state is ListState.IDLE


class _BrokenPayloadStore(FakeAlertStore):
    async def list_alerts(self, request):
        self.search_requests.append(request)
        raise ValueError("invalid status: Resolved")


def test_unexpected_error_leaves_loading_state():
    store = _BrokenPayloadStore()
    model = AlertListModel(store)
    states: list[ListState] = []
    model.add_state_listener(states.append)

    with pytest.raises(ValueError):
        asyncio.run(model.update())

    assert states == [ListState.LOADING, ListState.ERROR, ListState.IDLE]
    assert model.pending is False
    assert model.values == []


@pytest.mark.parametrize("first_released", ["A", "B"])
def test_stale_response_never_overwrites_newer_query(first_released):
    async def scenario():
        store = GatedAlertStore()
        model = AlertListModel(store)
        model.filter = "A"
        task_a = asyncio.create_task(model.update())
        await asyncio.sleep(0)
        model.filter = "B"
        task_b = asyncio.create_task(model.update())
        await asyncio.sleep(0)
        second = "A" if first_released == "B" else "B"
        store.release(first_released)
        await asyncio.sleep(0)
        store.release(second)
        return model, await task_a, await task_b

    model, applied_a, applied_b = asyncio.run(scenario())
    assert applied_a is False
    assert applied_b is True
    assert [alert.title for alert in model.values] == ["B"]
    assert model.state is ListState.READY


def test_state_listener_can_be_removed():
    model = AlertListModel(FakeAlertStore())
    states: list[ListState] = []
    remove = model.add_state_listener(states.append)
    remove()
    asyncio.run(model.update())
    assert states == []


def test_go_to_page_requests_that_page():
    store = FakeAlertStore()
    model = AlertListModel(store, page_size=10)
    asyncio.run(model.go_to_page(3))
    assert store.search_requests[-1].page == 3
    with pytest.raises(ValueError):
        asyncio.run(model.go_to_page(0))
